import asyncio
import logging
from typing import Callable, Optional

from foodheaven_mcp.errors import FoodHeavenError
from foodheaven_mcp.local_store import WISHLIST_KEY, LocalStore
from foodheaven_mcp.menu import MenuCache
from foodheaven_mcp.models import MenuItem
from foodheaven_mcp.notify import Notifier
from foodheaven_mcp.remote import USERS, DocumentStore
from foodheaven_mcp.sync import BestEffortWriter, WriteOutcome

logger = logging.getLogger(__name__)


class WishlistManager:
    """Saved item ids.

    During a session the local set is the source of truth: every toggle is
    stored locally first, then pushed to ``users/<uid>`` as a best-effort
    write that is never rolled back. At sign-in ``sync_from_remote`` replaces
    the local set with the remote one.
    """

    def __init__(
        self,
        store: LocalStore,
        remote: DocumentStore,
        writer: BestEffortWriter,
        notifier: Notifier,
        menu: MenuCache,
        current_uid: Callable[[], Optional[str]],
        on_change: Optional[Callable[["WishlistManager", Optional[str]], None]] = None,
    ):
        self.store = store
        self.remote = remote
        self.writer = writer
        self.notifier = notifier
        self.menu = menu
        self.current_uid = current_uid
        self.on_change = on_change
        saved = store.get(WISHLIST_KEY, []) or []
        self._saved: set[str] = {str(item_id) for item_id in saved}

    def save(self) -> None:
        self.store.set(WISHLIST_KEY, sorted(self._saved))

    def _changed(self, item_id: Optional[str] = None) -> None:
        if self.on_change:
            self.on_change(self, item_id)

    def is_saved(self, item_id: str) -> bool:
        return item_id in self._saved

    def saved_ids(self) -> set[str]:
        return set(self._saved)

    def toggle_save(self, item_id: str) -> "Optional[asyncio.Task[WriteOutcome]]":
        """Flip membership of ``item_id``. Returns the pending remote write, if any."""
        if item_id in self._saved:
            self._saved.discard(item_id)
            action = "removed from"
        else:
            self._saved.add(item_id)
            action = "added to"
        self.save()

        pending = None
        uid = self.current_uid()
        if uid:
            wishlist = sorted(self._saved)
            pending = self.writer.issue(
                f"wishlist:{uid}",
                lambda: self.remote.set(USERS, uid, {"wishlist": wishlist}, merge=True),
                "Failed to save wishlist online.",
            )

        self._changed(item_id)
        item = self.menu.get(item_id)
        name = item.name if item else "Item"
        self.notifier.push(f"{name} {action} Wishlist!")
        return pending

    def set_saved(self, item_id: str, saved: bool) -> "Optional[asyncio.Task[WriteOutcome]]":
        """Save or unsave explicitly; repeating the same call changes nothing."""
        if self.is_saved(item_id) == saved:
            return None
        return self.toggle_save(item_id)

    async def sync_from_remote(self, user_id: Optional[str]) -> bool:
        """Replace the local wishlist with the profile's. Returns True if replaced."""
        if not user_id:
            return False
        try:
            profile = await self.remote.get(USERS, user_id)
        except FoodHeavenError:
            logger.exception("Error syncing wishlist")
            self.notifier.push("Could not sync your wishlist.", "error")
            return False

        if profile is None or profile.data.get("wishlist") is None:
            return False

        self._saved = {str(item_id) for item_id in profile.data["wishlist"]}
        self.save()
        self._changed()
        logger.info(f"Wishlist for {user_id} synced from remote ({len(self._saved)} items)")
        return True

    def saved_item_details(self) -> list[tuple[str, Optional[MenuItem]]]:
        """Saved ids paired with their catalog entry (None when no longer on the menu)."""
        return [(item_id, self.menu.get(item_id)) for item_id in sorted(self._saved)]
