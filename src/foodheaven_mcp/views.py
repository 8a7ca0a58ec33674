"""Pure render functions: manager state in, JSON-ready payloads out."""

from typing import Any, Iterable, Optional

from foodheaven_mcp.cart import CartManager
from foodheaven_mcp.checkout import PaymentSummary
from foodheaven_mcp.menu import EMPTY_MENU_MESSAGE, MenuCache
from foodheaven_mcp.models import DEFAULT_IMAGE, MenuItem, Order, ServiceType
from foodheaven_mcp.orders import OrdersFeed
from foodheaven_mcp.remote import DocumentSnapshot
from foodheaven_mcp.wishlist import WishlistManager

DEFAULT_DESCRIPTION = "Freshly prepared delicious food."
EMPTY_CART_MESSAGE = "Your cart is empty. Start shopping!"
EMPTY_WISHLIST_MESSAGE = "Your wishlist is empty. Browse the menu and save your favorites!"
EMPTY_ORDERS_MESSAGE = "No active orders found."
EMPTY_HISTORY_MESSAGE = "No orders yet. Your first order will appear here."
UNAVAILABLE_NAME = "Item no longer available"

STATUS_CLASSES = {
    "New": "status-new",
    "Processing": "status-processing",
    "Delivered": "status-delivered",
    "Cancelled": "status-cancelled",
}


def format_currency(value: Any, symbol: str = "₹") -> str:
    try:
        amount = float(value or 0)
    except (TypeError, ValueError):
        amount = 0.0
    return f"{symbol}{amount:.2f}"


def initials(display_name: Optional[str]) -> str:
    parts = [p for p in (display_name or "").split(" ") if p]
    if not parts:
        return "?"
    if len(parts) > 1:
        return (parts[0][0] + parts[-1][0]).upper()
    return parts[0][0].upper()


def render_cart(cart: CartManager, symbol: str = "₹") -> dict[str, Any]:
    items = [
        {
            "id": line.id,
            "name": line.name,
            "price": line.price,
            "quantity": line.quantity,
            "line_total": format_currency(line.line_total, symbol),
            "image_url": line.image_url,
        }
        for line in cart.lines()
    ]
    count = cart.get_total_items()
    return {
        "items": items,
        "item_count": count,
        "total": format_currency(cart.get_total_price(), symbol),
        "checkout_enabled": count > 0,
        "message": None if items else EMPTY_CART_MESSAGE,
    }


def render_menu_card(
    item: MenuItem,
    cart: CartManager,
    wishlist: WishlistManager,
    symbol: str = "₹",
) -> dict[str, Any]:
    quantity = cart.get_item_quantity(item.id)
    return {
        "id": item.id,
        "name": item.name or "Unnamed Dish",
        "description": item.description or DEFAULT_DESCRIPTION,
        "price": format_currency(item.price, symbol),
        "image_url": item.image_url or DEFAULT_IMAGE,
        "badge": "NEW" if item.is_new else None,
        "in_cart": quantity,
        "saved": wishlist.is_saved(item.id),
    }


def render_menu(
    menu: MenuCache,
    cart: CartManager,
    wishlist: WishlistManager,
    symbol: str = "₹",
    items: Optional[Iterable[MenuItem]] = None,
) -> dict[str, Any]:
    if menu.loading:
        return {"loading": True, "sections": {}, "message": "Loading menu..."}
    if not len(menu):
        return {"loading": False, "sections": {}, "message": EMPTY_MENU_MESSAGE}

    if items is None:
        grouped = menu.sections()
    else:
        wanted = {item.id for item in items}
        grouped = {
            name: [item for item in section if item.id in wanted]
            for name, section in menu.sections().items()
        }
    return {
        "loading": False,
        "sections": {
            name: [render_menu_card(item, cart, wishlist, symbol) for item in section]
            for name, section in grouped.items()
            if section
        },
        "message": None,
    }


def render_wishlist(wishlist: WishlistManager, symbol: str = "₹") -> dict[str, Any]:
    items = []
    for item_id, item in wishlist.saved_item_details():
        if item is None:
            items.append(
                {
                    "id": item_id,
                    "name": UNAVAILABLE_NAME,
                    "price": None,
                    "image_url": DEFAULT_IMAGE,
                    "available": False,
                }
            )
            continue
        items.append(
            {
                "id": item.id,
                "name": item.name,
                "price": format_currency(item.price, symbol),
                "image_url": item.image_url or DEFAULT_IMAGE,
                "available": True,
            }
        )
    return {"items": items, "message": None if items else EMPTY_WISHLIST_MESSAGE}


def render_summary(
    summary: PaymentSummary, payment_method: str = "card", symbol: str = "₹"
) -> dict[str, Any]:
    is_delivery = summary.service == ServiceType.DELIVERY
    total = format_currency(summary.total, symbol)
    label = f"Place Order ({total})" if payment_method == "cod" else f"Pay Now ({total})"
    return {
        "service": summary.service.value,
        "subtotal": format_currency(summary.subtotal, symbol),
        "delivery_fee": format_currency(summary.delivery_fee, symbol) if is_delivery else "N/A",
        "taxable_base": format_currency(summary.taxable_base, symbol),
        "tax": format_currency(summary.tax, symbol),
        "total": total,
        "amounts": {
            "subtotal": float(summary.subtotal),
            "delivery_fee": float(summary.delivery_fee),
            "taxable_base": float(summary.taxable_base),
            "tax": float(summary.tax),
            "total": float(summary.total),
        },
        "pay_button": label,
    }


def _order_address(data: dict[str, Any]) -> str:
    if data.get("shippingAddress"):
        return data["shippingAddress"]
    details = data.get("details") or {}
    if data.get("service") == ServiceType.DINEIN.value:
        return f"Dine-in: {details.get('people', '?')} people at {details.get('time', '?')}"
    parts = [details.get(k) for k in ("address", "city", "zip") if details.get(k)]
    return ", ".join(parts) if parts else "No Address Provided"


def render_order_row(snap: DocumentSnapshot, symbol: str = "₹") -> dict[str, Any]:
    data = snap.data
    status = data.get("status") or "New"
    lines = data.get("orderItems")
    timestamp = data.get("timestamp")
    return {
        "id": snap.id,
        "short_id": f"#{snap.id[:5]}",
        "customer": data.get("customerName") or data.get("customerEmail") or "Guest User",
        "phone": data.get("customerPhone") or "N/A",
        "address": _order_address(data),
        "summary": (
            ", ".join(f"{line.get('quantity')}x {line.get('name')}" for line in lines)
            if lines
            else "Items not listed."
        ),
        "total": format_currency(data.get("total"), symbol),
        "status": status,
        "status_class": STATUS_CLASSES.get(status, "status-new"),
        "completed": status in ("Delivered", "Cancelled"),
        "timestamp": timestamp.isoformat() if hasattr(timestamp, "isoformat") else "N/A",
    }


def render_orders_feed(feed: OrdersFeed, symbol: str = "₹") -> dict[str, Any]:
    if feed.error:
        return {"orders": [], "message": feed.error}
    rows = [render_order_row(snap, symbol) for snap in feed.orders]
    return {"orders": rows, "message": None if rows else EMPTY_ORDERS_MESSAGE}


def render_order_history(orders: list[Order], symbol: str = "₹") -> dict[str, Any]:
    rows = [
        {
            "id": order.id,
            "total": format_currency(order.total, symbol),
            "status": order.status.value,
            "date": order.timestamp.date().isoformat(),
        }
        for order in orders
    ]
    return {"orders": rows, "message": None if rows else EMPTY_HISTORY_MESSAGE}


def render_admin_items(items: list[MenuItem], symbol: str = "₹") -> dict[str, Any]:
    rows = []
    for item in items:
        description = item.description
        rows.append(
            {
                "id": item.id,
                "name": item.name or "Unnamed Dish",
                "category": item.category or "N/A",
                "price": format_currency(item.price, symbol),
                "image_url": item.image_url
                or "https://via.placeholder.com/50x50/cccccc/ffffff?text=Food",
                "description": f"{description[:40]}..." if len(description) > 40 else description,
            }
        )
    return {"items": rows, "message": None if rows else "No items found. Add one above!"}
