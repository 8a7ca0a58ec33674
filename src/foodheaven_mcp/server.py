import json
import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Any

from mcp.server.fastmcp import Context, FastMCP

from foodheaven_mcp.admin import ItemForm
from foodheaven_mcp.checkout import CheckoutForm
from foodheaven_mcp.config import load_config
from foodheaven_mcp.session import AppContext, build_context
from foodheaven_mcp.tools import account, admin, cart, checkout, menu, wishlist

# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(server: FastMCP):
    """Build the storefront session on startup and release it on shutdown."""
    logger.info("Starting Food Heaven MCP server...")

    try:
        config = load_config()
        logger.info("Config loaded successfully")
    except FileNotFoundError as e:
        logger.error(str(e))
        raise

    app = build_context(config)
    app.render_all()

    try:
        yield {"app": app}
    finally:
        await app.aclose()
        logger.info("Shutting down Food Heaven MCP server")


host = os.environ.get("HOST", "0.0.0.0")
port = int(os.environ.get("PORT", "8000"))

mcp = FastMCP(
    "Food Heaven Storefront MCP Server",
    lifespan=lifespan,
    host=host,
    port=port,
)


def _get_app(ctx) -> AppContext:
    """Extract the storefront session from the MCP context."""
    return ctx.request_context.lifespan_context["app"]


def _respond(app: AppContext, result: dict[str, Any]) -> str:
    """Attach pending notifications and serialize the tool result."""
    result["notifications"] = app.notifier.drain()
    return json.dumps(result, default=str)


# --- Menu Tools ---


@mcp.tool()
async def tool_get_menu(ctx: Context, section: str = "All", reload: bool = False) -> str:
    """Get the menu grouped by section: biryani, pizza, chinese, tiffin, desserts, or All.
    Each card shows price, NEW badge, quantity already in the cart and whether it is saved.
    Pass reload=true to fetch the catalog again."""
    app = _get_app(ctx)
    return _respond(app, await menu.get_menu(app, section, reload))


@mcp.tool()
async def tool_search_menu_items(ctx: Context, query: str) -> str:
    """Search menu items by name or description (case-insensitive)."""
    app = _get_app(ctx)
    return _respond(app, await menu.search_menu_items(app, query))


# --- Cart Tools ---


@mcp.tool()
async def tool_get_cart(ctx: Context) -> str:
    """View the current cart contents and running total."""
    app = _get_app(ctx)
    return _respond(app, await cart.get_cart(app))


@mcp.tool()
async def tool_add_to_cart(ctx: Context, item_id: str, quantity: int = 1) -> str:
    """Add a menu item to the cart. Use tool_get_menu or tool_search_menu_items for item ids."""
    app = _get_app(ctx)
    return _respond(app, await cart.add_to_cart(app, item_id, quantity))


@mcp.tool()
async def tool_remove_from_cart(ctx: Context, item_id: str, quantity: int = 1) -> str:
    """Decrease an item's quantity in the cart; it is removed when it reaches zero."""
    app = _get_app(ctx)
    return _respond(app, await cart.remove_from_cart(app, item_id, quantity))


@mcp.tool()
async def tool_clear_cart(ctx: Context) -> str:
    """Empty the entire cart."""
    app = _get_app(ctx)
    return _respond(app, await cart.clear_cart(app))


# --- Wishlist Tools ---


@mcp.tool()
async def tool_get_wishlist(ctx: Context) -> str:
    """List saved items. Items removed from the menu are shown as unavailable."""
    app = _get_app(ctx)
    return _respond(app, await wishlist.get_wishlist(app))


@mcp.tool()
async def tool_toggle_wishlist(ctx: Context, item_id: str) -> str:
    """Save an item to the wishlist, or remove it if already saved."""
    app = _get_app(ctx)
    return _respond(app, await wishlist.toggle_wishlist(app, item_id))


@mcp.tool()
async def tool_add_wishlist_item_to_cart(ctx: Context, item_id: str) -> str:
    """Add one of a saved item to the cart."""
    app = _get_app(ctx)
    return _respond(app, await wishlist.add_wishlist_item_to_cart(app, item_id))


# --- Checkout Tools ---


@mcp.tool()
async def tool_get_payment_summary(
    ctx: Context, service: str = "delivery", payment_method: str = "card"
) -> str:
    """Price the cart: subtotal, delivery fee (delivery only), 5% tax and total.
    service is 'delivery' or 'dinein'; payment_method is 'card', 'upi' or 'cod'."""
    app = _get_app(ctx)
    return _respond(app, await checkout.get_payment_summary(app, service, payment_method))


@mcp.tool()
async def tool_get_checkout_details(ctx: Context) -> str:
    """Contact details and saved addresses to prefill checkout for the signed-in user."""
    app = _get_app(ctx)
    return _respond(app, await checkout.get_checkout_details(app))


@mcp.tool()
async def tool_place_order(
    ctx: Context,
    email: str,
    name: str,
    phone: str,
    service: str = "delivery",
    payment_method: str = "card",
    address: str = "",
    city: str = "",
    zip: str = "",
    instructions: str = "",
    people: int = 2,
    time: str = "",
) -> str:
    """Place the order for the current cart. Payment is simulated.
    Delivery needs address, city and zip; dine-in needs people and time (HH:MM).
    The cart is cleared after a successful order."""
    app = _get_app(ctx)
    form = CheckoutForm(
        email=email,
        name=name,
        phone=phone,
        service=service,
        payment_method=payment_method,
        address=address,
        city=city,
        zip=zip,
        instructions=instructions,
        people=people,
        time=time,
    )
    return _respond(app, await checkout.place_order(app, form))


# --- Account Tools ---


@mcp.tool()
async def tool_sign_up(ctx: Context, email: str, password: str, name: str = "") -> str:
    """Create a customer account (password of at least 6 characters) and sign in."""
    app = _get_app(ctx)
    return _respond(app, await account.sign_up(app, email, password, name))


@mcp.tool()
async def tool_sign_in(ctx: Context, email: str, password: str) -> str:
    """Sign in. Your saved wishlist replaces the one on this device."""
    app = _get_app(ctx)
    return _respond(app, await account.sign_in(app, email, password))


@mcp.tool()
async def tool_sign_out(ctx: Context) -> str:
    """Sign out of the current session."""
    app = _get_app(ctx)
    return _respond(app, await account.sign_out(app))


@mcp.tool()
async def tool_get_profile(ctx: Context) -> str:
    """Profile header, theme and saved addresses."""
    app = _get_app(ctx)
    return _respond(app, await account.get_profile(app))


@mcp.tool()
async def tool_toggle_theme(ctx: Context) -> str:
    """Switch between light and dark theme."""
    app = _get_app(ctx)
    return _respond(app, await account.toggle_theme(app))


@mcp.tool()
async def tool_open_profile_view(ctx: Context, view: str = "order-history") -> str:
    """Open a profile tab: order-history, saved-items, address-book or account-settings."""
    app = _get_app(ctx)
    return _respond(app, await account.open_profile_view(app, view))


@mcp.tool()
async def tool_add_address(ctx: Context, street: str, city: str) -> str:
    """Save an address to the address book (signed-in users only)."""
    app = _get_app(ctx)
    return _respond(app, await account.add_address(app, street, city))


# --- Admin Tools ---


@mcp.tool()
async def tool_open_admin_dashboard(ctx: Context) -> str:
    """Open the admin dashboard: item list plus a live feed of all orders.
    Non-admin sessions are signed out."""
    app = _get_app(ctx)
    return _respond(app, await admin.open_admin_dashboard(app))


@mcp.tool()
async def tool_close_admin_dashboard(ctx: Context) -> str:
    """Leave the admin dashboard and stop the live orders feed."""
    app = _get_app(ctx)
    return _respond(app, await admin.close_admin_dashboard(app))


@mcp.tool()
async def tool_get_orders_feed(ctx: Context) -> str:
    """Current orders from the live feed, newest first."""
    app = _get_app(ctx)
    return _respond(app, await admin.get_orders_feed(app))


@mcp.tool()
async def tool_list_menu_items(ctx: Context) -> str:
    """Admin: list all menu items."""
    app = _get_app(ctx)
    return _respond(app, await admin.list_items(app))


@mcp.tool()
async def tool_load_menu_item(ctx: Context, item_id: str) -> str:
    """Admin: load a menu item for editing."""
    app = _get_app(ctx)
    return _respond(app, await admin.load_item(app, item_id))


@mcp.tool()
async def tool_save_menu_item(
    ctx: Context,
    name: str,
    price: str,
    category: str,
    description: str = "",
    image_url: str = "",
    is_new: bool = False,
    item_id: str = "",
) -> str:
    """Admin: add a menu item, or update it when item_id is given.
    category is one of biryani, pizza, chinese, tiffin, cake, icecream, beverage."""
    app = _get_app(ctx)
    form = ItemForm(
        name=name,
        description=description,
        price=price,
        category=category,
        image_url=image_url,
        is_new=is_new,
    )
    return _respond(app, await admin.save_item(app, form, item_id))


@mcp.tool()
async def tool_delete_menu_item(ctx: Context, item_id: str, confirm: bool = False) -> str:
    """Admin: permanently delete a menu item. Requires confirm=true."""
    app = _get_app(ctx)
    return _respond(app, await admin.delete_item(app, item_id, confirm))


@mcp.tool()
async def tool_update_order_status(
    ctx: Context, order_id: str, confirm: bool = False, status: str = ""
) -> str:
    """Admin: move an order to its next status (New -> Processing -> Delivered -> New).
    Requires confirm=true. status='Cancelled' cancels an open order.
    A cancelled order only changes when status is typed as 'New' or 'Cancelled'."""
    app = _get_app(ctx)
    return _respond(app, await admin.set_order_status(app, order_id, confirm, status))


def main():
    logger.info(f"Starting MCP server on {host}:{port}")
    mcp.run(transport="streamable-http")


if __name__ == "__main__":
    main()
