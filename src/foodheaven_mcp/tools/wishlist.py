import logging
from typing import Any

from foodheaven_mcp import views
from foodheaven_mcp.session import AppContext
from foodheaven_mcp.tools.common import failure

logger = logging.getLogger(__name__)


async def get_wishlist(app: AppContext) -> dict[str, Any]:
    """Saved items with their current menu details."""
    if not app.menu.loaded:
        await app.menu.reload()
    return {"success": True, **views.render_wishlist(app.wishlist, app.symbol)}


async def toggle_wishlist(app: AppContext, item_id: str) -> dict[str, Any]:
    """Save or unsave an item. Signed-in users also get it synced online in the background."""
    try:
        pending = app.wishlist.toggle_save(item_id)
        return {
            "success": True,
            "item_id": item_id,
            "saved": app.wishlist.is_saved(item_id),
            "synced_online": pending is not None,
            "wishlist_count": len(app.wishlist.saved_ids()),
        }
    except Exception as e:
        logger.exception("Error toggling wishlist")
        return failure(e, "WISHLIST_FAILED")


async def add_wishlist_item_to_cart(app: AppContext, item_id: str) -> dict[str, Any]:
    """Move a saved item into the cart, using its current menu entry."""
    if not app.menu.loaded:
        await app.menu.reload()
    item = app.menu.get(item_id)
    if item is None:
        return {
            "success": False,
            "error": "This item is no longer on the menu.",
            "code": "NOT_FOUND",
        }
    line = app.cart.add_to_cart(item.id, item, 1)
    if line is None:
        return {"success": False, "error": "Invalid item data. Cannot add to cart.", "code": "INVALID_ITEM"}
    return {"success": True, "cart": views.render_cart(app.cart, app.symbol)}
