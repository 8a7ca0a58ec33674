import logging
from typing import Any

from foodheaven_mcp import views
from foodheaven_mcp.admin import ItemForm
from foodheaven_mcp.errors import FoodHeavenError
from foodheaven_mcp.orders import current_status, update_order_status
from foodheaven_mcp.session import AppContext
from foodheaven_mcp.tools.common import failure

logger = logging.getLogger(__name__)


async def open_admin_dashboard(app: AppContext) -> dict[str, Any]:
    """Check the admin role, load the item list and start the live orders feed."""
    try:
        feed = await app.open_admin_dashboard()
        items = await app.menu_admin.list_items()
        return {
            "success": True,
            "items": views.render_admin_items(items, app.symbol),
            "orders": views.render_orders_feed(feed, app.symbol),
        }
    except FoodHeavenError as e:
        logger.warning(f"Admin dashboard not opened: {e}")
        return failure(e, "ADMIN_FAILED")


async def close_admin_dashboard(app: AppContext) -> dict[str, Any]:
    """Leave the admin dashboard and release the orders feed."""
    await app.close_admin_dashboard()
    return {"success": True, "message": "Admin dashboard closed."}


async def get_orders_feed(app: AppContext) -> dict[str, Any]:
    """Latest pushed snapshot of all orders, newest first."""
    feed = app.orders_feed
    if feed is None or not feed.active:
        return {
            "success": False,
            "error": "Admin dashboard is not open. Call open_admin_dashboard first.",
            "code": "DASHBOARD_CLOSED",
        }
    return {"success": True, **views.render_orders_feed(feed, app.symbol)}


async def list_items(app: AppContext) -> dict[str, Any]:
    try:
        await app.accounts.require_admin()
        items = await app.menu_admin.list_items()
        return {"success": True, **views.render_admin_items(items, app.symbol)}
    except FoodHeavenError as e:
        return failure(e, "ITEMS_FAILED")


async def load_item(app: AppContext, item_id: str) -> dict[str, Any]:
    """Fetch an item into the edit form."""
    try:
        await app.accounts.require_admin()
        item = await app.menu_admin.load_item(item_id)
        if item is None:
            return {"success": True, "item": None, "message": "Item no longer exists."}
        return {"success": True, "item": item.model_dump(by_alias=True)}
    except FoodHeavenError as e:
        return failure(e, "LOAD_FAILED")


async def save_item(app: AppContext, form: ItemForm, item_id: str = "") -> dict[str, Any]:
    """Add a menu item, or update ``item_id`` when editing."""
    try:
        await app.accounts.require_admin()
        saved_id = await app.menu_admin.save_item(form, editing_id=item_id or None)
        items = await app.menu_admin.list_items()
        return {
            "success": True,
            "item_id": saved_id,
            "updated": bool(item_id) and saved_id is not None,
            "items": views.render_admin_items(items, app.symbol),
        }
    except FoodHeavenError as e:
        return failure(e, "SAVE_FAILED")


async def delete_item(app: AppContext, item_id: str, confirm: bool = False) -> dict[str, Any]:
    """Permanently delete a menu item. Requires ``confirm=True``."""
    if not confirm:
        return {
            "success": False,
            "error": "Deleting an item cannot be undone. Pass confirm=true to proceed.",
            "code": "NOT_CONFIRMED",
        }
    try:
        await app.accounts.require_admin()
        await app.menu_admin.delete_item(item_id)
        items = await app.menu_admin.list_items()
        return {"success": True, "items": views.render_admin_items(items, app.symbol)}
    except FoodHeavenError as e:
        return failure(e, "DELETE_FAILED")


async def set_order_status(
    app: AppContext,
    order_id: str,
    confirm: bool = False,
    status: str = "",
) -> dict[str, Any]:
    """Advance an order's status (New -> Processing -> Delivered -> New).

    Cancelled orders need ``status`` to be typed as 'New' or 'Cancelled'.
    """
    try:
        await app.accounts.require_admin()
        feed = app.orders_feed
        current = feed.status_of(order_id) if feed is not None else None
        if current is None:
            current = await current_status(app.remote, order_id)

        user = app.current_user
        new_status = await update_order_status(
            app.remote,
            app.notifier,
            order_id,
            current,
            user.email if user else None,
            requested=status or None,
            confirmed=confirm,
            audit_path=app.config.storage.audit_log_path,
        )
        return {
            "success": True,
            "order_id": order_id,
            "previous_status": current.value,
            "status": new_status.value,
        }
    except FoodHeavenError as e:
        logger.info(f"Order {order_id} status unchanged: {e}")
        return failure(e, "STATUS_FAILED")
