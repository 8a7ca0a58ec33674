import json
import logging
import os
from typing import Any, Optional

from foodheaven_mcp.errors import StorageError

logger = logging.getLogger(__name__)

STATE_PATH = os.environ.get("FOODHEAVEN_STATE_PATH", "/tmp/foodheaven_state.json")

CART_KEY = "cart"
WISHLIST_KEY = "wishlist"
THEME_KEY = "theme"
PROFILE_VIEW_KEY = "profile_last_view"
ADDRESSES_KEY = "addresses"


class LocalStore:
    """Named slots of JSON data kept in a single file on disk.

    Every ``set``/``remove`` replaces the file before returning; a failed
    write leaves both the file and the in-memory slots as they were. Reads never
    fail: a missing or unreadable file starts the store empty.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path or STATE_PATH
        self._slots: dict[str, Any] = {}
        self._load()

    def _load(self):
        try:
            if os.path.exists(self.path):
                with open(self.path) as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    self._slots = data
                else:
                    logger.warning(f"Ignoring malformed local store at {self.path}")
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read local store {self.path}: {e}")

    def _save(self, slots: dict[str, Any]) -> None:
        tmp_path = f"{self.path}.tmp"
        try:
            state_dir = os.path.dirname(self.path)
            if state_dir:
                os.makedirs(state_dir, exist_ok=True)
            with open(tmp_path, "w") as f:
                json.dump(slots, f)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageError(f"Failed to write local store {self.path}: {e}") from e
        self._slots = slots

    def get(self, key: str, default: Any = None) -> Any:
        return self._slots.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._save({**self._slots, key: value})

    def remove(self, key: str) -> None:
        if key in self._slots:
            self._save({k: v for k, v in self._slots.items() if k != key})

    def keys(self) -> list[str]:
        return list(self._slots)
