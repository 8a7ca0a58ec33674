from datetime import datetime, timezone
from decimal import Decimal

import pytest

from foodheaven_mcp import views
from foodheaven_mcp.checkout import PaymentSummary
from foodheaven_mcp.models import ServiceType
from foodheaven_mcp.remote import DocumentSnapshot


@pytest.mark.parametrize(
    "name,expected",
    [("Asha Rao", "AR"), ("asha", "A"), ("Asha  Devi Rao", "AR"), ("", "?"), (None, "?")],
)
def test_initials(name, expected):
    assert views.initials(name) == expected


@pytest.mark.parametrize("value,expected", [(252, "₹252.00"), (None, "₹0.00"), ("x", "₹0.00")])
def test_format_currency(value, expected):
    assert views.format_currency(value) == expected


def summary(service):
    return PaymentSummary(
        service=service,
        subtotal=Decimal("200.00"),
        delivery_fee=Decimal("40.00") if service == ServiceType.DELIVERY else Decimal("0.00"),
        taxable_base=Decimal("240.00"),
        tax=Decimal("12.00"),
        total=Decimal("252.00"),
    )


def test_render_summary_pay_button():
    card = views.render_summary(summary(ServiceType.DELIVERY), "card")
    assert card["pay_button"] == "Pay Now (₹252.00)"
    assert card["delivery_fee"] == "₹40.00"
    assert card["amounts"]["total"] == 252.0

    cod = views.render_summary(summary(ServiceType.DINEIN), "cod")
    assert cod["pay_button"] == "Place Order (₹252.00)"
    assert cod["delivery_fee"] == "N/A"


def test_order_row_fallbacks():
    row = views.render_order_row(DocumentSnapshot(id="abcdefgh", data={}))
    assert row["short_id"] == "#abcde"
    assert row["customer"] == "Guest User"
    assert row["phone"] == "N/A"
    assert row["address"] == "No Address Provided"
    assert row["summary"] == "Items not listed."
    assert row["total"] == "₹0.00"
    assert row["status"] == "New"
    assert row["timestamp"] == "N/A"
    assert not row["completed"]


def test_order_row_for_dinein():
    when = datetime(2024, 5, 1, 19, 30, tzinfo=timezone.utc)
    row = views.render_order_row(
        DocumentSnapshot(
            id="order-1",
            data={
                "customerEmail": "asha@example.com",
                "service": "dinein",
                "details": {"people": 4, "time": "19:30"},
                "orderItems": [{"name": "Dosa", "quantity": 2}],
                "status": "Cancelled",
                "timestamp": when,
            },
        )
    )
    assert row["customer"] == "asha@example.com"
    assert row["address"] == "Dine-in: 4 people at 19:30"
    assert row["summary"] == "2x Dosa"
    assert row["status_class"] == "status-cancelled"
    assert row["completed"]
    assert row["timestamp"] == when.isoformat()


async def test_render_wishlist_marks_removed_items(app):
    app.wishlist.toggle_save("pizza-1")
    app.wishlist.toggle_save("retired-9")
    await app.menu.reload()

    rendered = views.render_wishlist(app.wishlist, app.symbol)
    by_id = {item["id"]: item for item in rendered["items"]}
    assert by_id["pizza-1"]["available"]
    assert by_id["pizza-1"]["price"] == "₹199.00"
    assert by_id["retired-9"] == {
        "id": "retired-9",
        "name": views.UNAVAILABLE_NAME,
        "price": None,
        "image_url": views.DEFAULT_IMAGE,
        "available": False,
    }


async def test_render_menu_states(app):
    assert views.render_menu(app.menu, app.cart, app.wishlist)["message"] == views.EMPTY_MENU_MESSAGE

    await app.menu.reload()
    app.cart.add_to_cart("biryani-1", app.menu.get("biryani-1"), 2)
    app.wishlist.toggle_save("biryani-1")

    rendered = views.render_menu(app.menu, app.cart, app.wishlist)
    card = rendered["sections"]["biryani"][0]
    assert card["badge"] == "NEW"
    assert card["in_cart"] == 2
    assert card["saved"]
    assert "chinese" not in rendered["sections"]
    assert rendered["sections"]["pizza"][0]["description"] == "Tomato, basil and mozzarella"
    assert rendered["sections"]["desserts"][-1]["description"] == views.DEFAULT_DESCRIPTION


def test_render_cart_empty(app):
    rendered = views.render_cart(app.cart)
    assert rendered["message"] == views.EMPTY_CART_MESSAGE
    assert not rendered["checkout_enabled"]
