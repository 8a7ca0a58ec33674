import logging
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from foodheaven_mcp.errors import FoodHeavenError
from foodheaven_mcp.models import MenuItem
from foodheaven_mcp.notify import Notifier
from foodheaven_mcp.remote import ITEMS, DocumentStore

logger = logging.getLogger(__name__)

# Item category -> menu page section
CATEGORY_SECTIONS = {
    "biryani": "biryani",
    "pizza": "pizza",
    "chinese": "chinese",
    "tiffin": "tiffin",
    "cake": "desserts",
    "icecream": "desserts",
    "beverage": "desserts",
}
SECTIONS = ["biryani", "pizza", "chinese", "tiffin", "desserts"]
DEFAULT_SECTION = "biryani"

EMPTY_MENU_MESSAGE = "Menu not available at the moment."


def section_for(category: str) -> str:
    return CATEGORY_SECTIONS.get(category, DEFAULT_SECTION)


class MenuCache:
    """Last fetched copy of the ``items`` collection, keyed by item id.

    ``reload`` replaces the whole cache; entries deleted server-side disappear
    on the next reload. The render callback sees the cache in its loading
    state first and again once the fetch settles.
    """

    def __init__(
        self,
        store: DocumentStore,
        notifier: Notifier,
        on_render: Optional[Callable[["MenuCache"], None]] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.on_render = on_render
        self._items: dict[str, MenuItem] = {}
        self.loading = False
        self.loaded = False

    def _render(self):
        if self.on_render:
            self.on_render(self)

    async def reload(self) -> bool:
        self.loading = True
        self.notifier.push("Loading menu...", "info")
        self._render()
        try:
            snapshots = await self.store.list(ITEMS)
        except FoodHeavenError:
            logger.exception("Error loading menu")
            self.notifier.push("Failed to load menu. Please refresh.", "error")
            self.loading = False
            self._render()
            return False

        items: dict[str, MenuItem] = {}
        for snap in snapshots:
            try:
                items[snap.id] = MenuItem.model_validate({**snap.data, "id": snap.id})
            except PydanticValidationError as e:
                logger.warning(f"Skipping malformed menu item {snap.id}: {e.error_count()} errors")

        self._items = items
        self.loading = False
        self.loaded = True
        if items:
            self.notifier.push("Menu loaded successfully!")
        else:
            self.notifier.push("No menu items found", "error")
        self._render()
        return True

    def get(self, item_id: str) -> Optional[MenuItem]:
        return self._items.get(item_id)

    def items(self) -> list[MenuItem]:
        return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def sections(self) -> dict[str, list[MenuItem]]:
        grouped: dict[str, list[MenuItem]] = {name: [] for name in SECTIONS}
        for item in self._items.values():
            grouped[section_for(item.category)].append(item)
        return grouped

    def search(self, text: str) -> list[MenuItem]:
        query = (text or "").strip().lower()
        if not query:
            return self.items()
        return [
            item
            for item in self._items.values()
            if query in item.name.lower() or query in item.description.lower()
        ]
