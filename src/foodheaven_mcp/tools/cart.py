import logging
from typing import Any

from foodheaven_mcp import views
from foodheaven_mcp.session import AppContext
from foodheaven_mcp.tools.common import failure

logger = logging.getLogger(__name__)


async def get_cart(app: AppContext) -> dict[str, Any]:
    """View the current cart contents and running total."""
    return {"success": True, **views.render_cart(app.cart, app.symbol)}


async def add_to_cart(app: AppContext, item_id: str, quantity: int = 1) -> dict[str, Any]:
    """Add a menu item to the cart, copying its current name, price and image."""
    try:
        if not app.menu.loaded:
            await app.menu.reload()

        snapshot = app.menu.get(item_id)
        if snapshot is None:
            line = app.cart.get_line(item_id)
            if line is None:
                return {
                    "success": False,
                    "error": f"Item {item_id} is not on the menu.",
                    "code": "NOT_FOUND",
                }
            # Removed from the catalog after it was added; keep selling the cart copy.
            snapshot = line

        added = app.cart.add_to_cart(item_id, snapshot, quantity)
        if added is None:
            return {
                "success": False,
                "error": "Invalid item data. Cannot add to cart.",
                "code": "INVALID_ITEM",
            }
        return {
            "success": True,
            "item": {"id": added.id, "name": added.name, "quantity": added.quantity},
            "cart": views.render_cart(app.cart, app.symbol),
        }

    except Exception as e:
        logger.exception("Error adding to cart")
        return failure(e, "ADD_FAILED")


async def remove_from_cart(app: AppContext, item_id: str, quantity: int = 1) -> dict[str, Any]:
    """Take ``quantity`` of an item out of the cart; the line is dropped at zero."""
    try:
        if app.cart.get_line(item_id) is None:
            return {
                "success": False,
                "error": f"Item {item_id} is not in the cart.",
                "code": "NOT_IN_CART",
            }
        app.cart.remove_from_cart(item_id, quantity)
        return {
            "success": True,
            "remaining_quantity": app.cart.get_item_quantity(item_id),
            "cart": views.render_cart(app.cart, app.symbol),
        }

    except Exception as e:
        logger.exception("Error removing from cart")
        return failure(e, "REMOVE_FAILED")


async def clear_cart(app: AppContext) -> dict[str, Any]:
    """Empty the entire cart."""
    app.cart.clear()
    return {"success": True, "message": "Cart cleared."}
