import logging
from typing import Any

from foodheaven_mcp import views
from foodheaven_mcp.errors import FoodHeavenError
from foodheaven_mcp.profile import order_history
from foodheaven_mcp.session import AppContext
from foodheaven_mcp.tools.common import failure

logger = logging.getLogger(__name__)


async def sign_up(app: AppContext, email: str, password: str, name: str = "") -> dict[str, Any]:
    """Create a customer account and sign in."""
    try:
        result = await app.accounts.sign_up(email, password, name)
        return {"success": True, "uid": result.user.uid, "redirect": result.redirect}
    except FoodHeavenError as e:
        logger.info(f"Sign up failed for {email}: {e}")
        return failure(e, "SIGNUP_FAILED")


async def sign_in(app: AppContext, email: str, password: str) -> dict[str, Any]:
    """Sign in; admins are sent to the admin dashboard, everyone else to the menu."""
    try:
        result = await app.accounts.sign_in(email, password)
        return {"success": True, "uid": result.user.uid, "redirect": result.redirect}
    except FoodHeavenError as e:
        logger.info(f"Login failed for {email}: {e}")
        return failure(e, "LOGIN_FAILED")


async def sign_out(app: AppContext) -> dict[str, Any]:
    try:
        await app.accounts.sign_out()
        return {"success": True, "redirect": "index"}
    except Exception as e:
        logger.exception("Logout error")
        return failure(e, "LOGOUT_FAILED")


async def get_profile(app: AppContext) -> dict[str, Any]:
    """Profile header, preferences and the last opened profile tab."""
    user = app.current_user
    if user is None:
        header = {
            "name": "Guest User",
            "email": "Please Login to access features",
            "initials": None,
            "signed_in": False,
        }
    else:
        name = user.display_name or "Food Lover"
        header = {
            "name": name,
            "email": user.email or "No email provided",
            "initials": views.initials(name),
            "signed_in": True,
        }
    return {
        "success": True,
        "profile": header,
        "theme": app.preferences.theme(),
        "last_view": app.preferences.last_view(),
        "addresses": app.addresses.addresses(),
    }


async def toggle_theme(app: AppContext) -> dict[str, Any]:
    try:
        return {"success": True, "theme": app.preferences.toggle_theme()}
    except FoodHeavenError as e:
        return failure(e, "THEME_FAILED")


async def open_profile_view(app: AppContext, view: str) -> dict[str, Any]:
    """Switch profile tab and return its content."""
    try:
        opened = app.preferences.switch_view(view, signed_in=app.current_user is not None)
        if opened is None:
            return {
                "success": False,
                "error": "Please login to access this section",
                "code": "NOT_SIGNED_IN",
            }

        content: dict[str, Any] = {}
        if opened == "saved-items":
            if not app.menu.loaded:
                await app.menu.reload()
            content = views.render_wishlist(app.wishlist, app.symbol)
        elif opened == "address-book":
            content = {"addresses": app.addresses.addresses()}
        elif opened == "order-history":
            orders = []
            if app.current_user:
                orders = await order_history(app.remote, app.notifier, app.current_user.uid)
            content = views.render_order_history(orders, app.symbol)
        return {"success": True, "view": opened, "content": content}
    except FoodHeavenError as e:
        return failure(e, "VIEW_FAILED")


async def add_address(app: AppContext, street: str, city: str) -> dict[str, Any]:
    try:
        entry = app.addresses.add(street, city, signed_in=app.current_user is not None)
        return {"success": True, "address": entry, "addresses": app.addresses.addresses()}
    except FoodHeavenError as e:
        return failure(e, "ADDRESS_FAILED")
