import logging
from typing import Any

from foodheaven_mcp import views
from foodheaven_mcp.checkout import CheckoutForm
from foodheaven_mcp.errors import FoodHeavenError
from foodheaven_mcp.session import AppContext
from foodheaven_mcp.tools.common import failure

logger = logging.getLogger(__name__)


async def get_payment_summary(
    app: AppContext,
    service: str = "delivery",
    payment_method: str = "card",
) -> dict[str, Any]:
    """Subtotal, delivery fee, tax and total for the current cart."""
    try:
        if not app.cart.lines():
            return {
                "success": False,
                "error": "Your cart is empty! Add items from the menu.",
                "code": "EMPTY_CART",
            }
        summary = app.checkout.summary(service)
        items = [
            {
                "name": line.name,
                "quantity": line.quantity,
                "total": views.format_currency(line.line_total, app.symbol),
            }
            for line in app.cart.lines()
        ]
        return {
            "success": True,
            "items": items,
            "pricing": views.render_summary(summary, payment_method, app.symbol),
        }
    except Exception as e:
        logger.exception("Error pricing order")
        return failure(e, "PRICE_FAILED")


async def get_checkout_details(app: AppContext) -> dict[str, Any]:
    """Contact details and saved addresses of the signed-in user."""
    user = app.current_user
    if user is None:
        return {
            "success": True,
            "guest": True,
            "message": "Guest checkout (Login for saved addresses)",
        }
    details = await app.checkout.prefill(user.uid)
    if not details.get("email"):
        details["email"] = user.email or ""
    return {"success": True, "guest": False, "details": details}


async def place_order(app: AppContext, form: CheckoutForm) -> dict[str, Any]:
    """Simulate payment and submit the order. The cart is cleared on success."""
    try:
        user = app.current_user
        order = await app.checkout.place_order(form, user.uid if user else None)
        return {
            "success": True,
            "order_id": order.id,
            "total_charged": order.total,
            "status": order.status.value,
            "redirect": "menu",
            "message": f"Order {order.id} placed successfully.",
        }
    except FoodHeavenError as e:
        logger.info(f"Order not placed: {e}")
        return failure(e, "PLACE_FAILED")
    except Exception as e:
        logger.exception("Error placing order")
        return failure(e, "PLACE_FAILED")
