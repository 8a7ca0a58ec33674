import logging
import math
from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from foodheaven_mcp.errors import FoodHeavenError, NotFoundError, ValidationError
from foodheaven_mcp.menu import CATEGORY_SECTIONS
from foodheaven_mcp.models import MenuItem
from foodheaven_mcp.notify import Notifier
from foodheaven_mcp.remote import ITEMS, DocumentStore

logger = logging.getLogger(__name__)

DEFAULT_STOCK = 999


class ItemForm(BaseModel):
    name: str = ""
    description: str = ""
    price: Union[str, float, None] = None
    category: str = ""
    image_url: str = ""
    is_new: bool = False


def item_document(form: ItemForm) -> dict[str, Any]:
    """Validate the admin item form and build the ``items`` document."""
    name = form.name.strip()
    if not name:
        raise ValidationError("Error: Item name is required.", code="MISSING_FIELDS")
    try:
        price = float(form.price)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ValidationError("Error: Invalid price entered.", code="INVALID_PRICE")
    if math.isnan(price) or math.isinf(price) or price < 0:
        raise ValidationError("Error: Invalid price entered.", code="INVALID_PRICE")
    category = form.category.strip().lower()
    if category not in CATEGORY_SECTIONS:
        raise ValidationError(
            f"Error: Unknown category '{form.category}'. "
            f"Use one of: {', '.join(CATEGORY_SECTIONS)}.",
            code="INVALID_CATEGORY",
        )
    return {
        "name": name,
        "description": form.description.strip(),
        "price": price,
        "category": category,
        "imageUrl": form.image_url.strip(),
        "isNew": form.is_new,
        "stock": DEFAULT_STOCK,
        "timestamp": datetime.now(timezone.utc),
    }


class MenuAdmin:
    """Create, edit and delete menu items from the admin panel."""

    def __init__(self, remote: DocumentStore, notifier: Notifier):
        self.remote = remote
        self.notifier = notifier

    async def list_items(self) -> list[MenuItem]:
        try:
            snapshots = await self.remote.list(ITEMS)
        except FoodHeavenError:
            logger.exception("Error loading items")
            self.notifier.push("Error loading items.", "error")
            raise
        items = []
        for snap in snapshots:
            try:
                items.append(MenuItem.model_validate({**snap.data, "id": snap.id}))
            except PydanticValidationError as e:
                logger.warning(f"Skipping malformed item {snap.id}: {e.error_count()} errors")
        return items

    async def load_item(self, item_id: str) -> Optional[MenuItem]:
        """The item to edit, or None when it was deleted meanwhile."""
        try:
            snap = await self.remote.get(ITEMS, item_id)
        except FoodHeavenError:
            logger.exception("Error loading item for edit")
            self.notifier.push("Failed to load item data for editing.", "error")
            raise
        if snap is None:
            return None
        return MenuItem.model_validate({**snap.data, "id": snap.id})

    async def save_item(self, form: ItemForm, editing_id: Optional[str] = None) -> Optional[str]:
        """Add a new item, or update ``editing_id``. Returns the item id.

        Updating an item that no longer exists is a silent no-op (None).
        """
        data = item_document(form)
        try:
            if editing_id:
                await self.remote.update(ITEMS, editing_id, data)
                self.notifier.push(f"{data['name']} updated successfully!")
                return editing_id
            item_id = await self.remote.add(ITEMS, data)
        except NotFoundError:
            logger.info(f"Item {editing_id} was deleted before the edit was saved")
            return None
        except FoodHeavenError:
            logger.exception("Error submitting item")
            self.notifier.push("Error: Failed to connect to database.", "error")
            raise
        self.notifier.push(f"{data['name']} added successfully and is visible on the menu page!")
        return item_id

    async def delete_item(self, item_id: str) -> None:
        try:
            await self.remote.delete(ITEMS, item_id)
        except FoodHeavenError:
            logger.exception("Error deleting item")
            self.notifier.push(f"Error deleting item {item_id[:5]}.", "error")
            raise
        self.notifier.push("Item deleted successfully!")
