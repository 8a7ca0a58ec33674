from decimal import Decimal

import pytest

from foodheaven_mcp.cart import CartManager
from foodheaven_mcp.checkout import Checkout, CheckoutForm, compute_summary, validate_form
from foodheaven_mcp.config import PricingConfig
from foodheaven_mcp.errors import RemoteError, ValidationError
from foodheaven_mcp.models import CartLine, ServiceType


def delivery_form(**overrides):
    fields = dict(
        email="asha@example.com",
        name="Asha Rao",
        phone="9876543210",
        service="delivery",
        payment_method="card",
        address="12 MG Road",
        city="Pune",
        zip="411001",
    )
    fields.update(overrides)
    return CheckoutForm(**fields)


def dinein_form(**overrides):
    fields = dict(
        email="asha@example.com",
        name="Asha Rao",
        phone="9876543210",
        service="dinein",
        payment_method="cod",
        people=4,
        time="19:30",
    )
    fields.update(overrides)
    return CheckoutForm(**fields)


@pytest.fixture
def cart(local, notifier):
    return CartManager(local, notifier)


@pytest.fixture
def checkout(cart, remote, notifier, config):
    return Checkout(cart, remote, notifier, config.pricing, config.storage.audit_log_path)


LINES = [CartLine(id="a", name="Veg Thali", price=100.0, quantity=2)]


def test_delivery_summary():
    summary = compute_summary(LINES, ServiceType.DELIVERY, PricingConfig())
    assert summary.subtotal == Decimal("200.00")
    assert summary.delivery_fee == Decimal("40.00")
    assert summary.taxable_base == Decimal("240.00")
    assert summary.tax == Decimal("12.00")
    assert summary.total == Decimal("252.00")


def test_dinein_summary_has_no_delivery_fee():
    summary = compute_summary(LINES, ServiceType.DINEIN, PricingConfig())
    assert summary.delivery_fee == Decimal("0.00")
    assert summary.taxable_base == Decimal("200.00")
    assert summary.tax == Decimal("10.00")
    assert summary.total == Decimal("210.00")


def test_summary_rounds_half_up_to_cents():
    lines = [CartLine(id="b", name="Chai", price=0.1, quantity=3)]
    summary = compute_summary(lines, ServiceType.DINEIN, PricingConfig())
    # 0.30 * 0.05 = 0.015
    assert summary.subtotal == Decimal("0.30")
    assert summary.tax == Decimal("0.02")
    assert summary.total == Decimal("0.32")


def test_summary_uses_configured_pricing():
    pricing = PricingConfig(delivery_fee=25, tax_rate=0.18)
    summary = compute_summary(LINES, ServiceType.DELIVERY, pricing)
    assert summary.taxable_base == Decimal("225.00")
    assert summary.tax == Decimal("40.50")
    assert summary.total == Decimal("265.50")


def test_validate_delivery_form_builds_details():
    service, method, details = validate_form(delivery_form(instructions=" Ring twice "))
    assert service == ServiceType.DELIVERY
    assert method.value == "card"
    assert details == {
        "address": "12 MG Road",
        "city": "Pune",
        "zip": "411001",
        "instructions": "Ring twice",
    }


def test_validate_dinein_form_builds_details():
    service, method, details = validate_form(dinein_form())
    assert service == ServiceType.DINEIN
    assert method.value == "cod"
    assert details == {"people": 4, "time": "19:30"}


@pytest.mark.parametrize(
    "form,missing",
    [
        (delivery_form(email=""), "email"),
        (delivery_form(phone="  "), "phone"),
        (delivery_form(zip=""), "zip"),
        (dinein_form(time=""), "time"),
    ],
)
def test_missing_fields_are_reported(form, missing):
    with pytest.raises(ValidationError) as exc_info:
        validate_form(form)
    assert exc_info.value.code == "MISSING_FIELDS"
    assert missing in str(exc_info.value)


def test_dinein_needs_address_fields_only_for_delivery():
    validate_form(dinein_form(address="", city="", zip=""))


@pytest.mark.parametrize(
    "form",
    [
        delivery_form(service="takeaway"),
        delivery_form(payment_method="cheque"),
        dinein_form(people=0),
    ],
)
def test_invalid_choices_are_rejected(form):
    with pytest.raises(ValidationError):
        validate_form(form)


async def test_place_order_on_empty_cart_fails(checkout, remote):
    with pytest.raises(ValidationError) as exc_info:
        await checkout.place_order(delivery_form())
    assert exc_info.value.code == "EMPTY_CART"
    assert ("add", "orders") not in remote.calls


async def test_place_order_creates_document_and_clears_cart(checkout, cart, remote, notifier, config):
    cart.add_to_cart("a", {"name": "Veg Thali", "price": 100.0}, 2)

    order = await checkout.place_order(delivery_form(), user_id="u-1")

    snap = await remote.get("orders", order.id)
    assert snap.data["userId"] == "u-1"
    assert snap.data["customerName"] == "Asha Rao"
    assert snap.data["orderItems"] == [{"id": "a", "name": "Veg Thali", "quantity": 2, "price": 100.0}]
    assert snap.data["total"] == 252.0
    assert snap.data["service"] == "delivery"
    assert snap.data["paymentMethod"] == "card"
    assert snap.data["status"] == "New"
    assert snap.data["details"]["city"] == "Pune"
    assert "updatedBy" not in snap.data

    assert cart.lines() == []
    assert notifier.peek()[-1].message == "Order placed successfully!"
    with open(config.storage.audit_log_path) as f:
        log = f.read()
    assert "PLACE_ORDER | CONFIRMED | user=u-1" in log
    assert f"order_id={order.id}" in log


async def test_guest_order_gets_guest_user_id(checkout, cart):
    cart.add_to_cart("a", {"name": "Veg Thali", "price": 100.0})
    order = await checkout.place_order(dinein_form())
    assert order.user_id.startswith("GUEST_")
    assert order.total == 105.0


async def test_failed_submission_keeps_cart(checkout, cart, remote, notifier):
    cart.add_to_cart("a", {"name": "Veg Thali", "price": 100.0})
    remote.inject_failure("add")

    with pytest.raises(RemoteError):
        await checkout.place_order(delivery_form())

    assert cart.get_item_quantity("a") == 1
    assert notifier.peek()[-1].message == "Order submission failed. Please try again."


async def test_invalid_form_is_audited_and_keeps_cart(checkout, cart, config):
    cart.add_to_cart("a", {"name": "Veg Thali", "price": 100.0})
    with pytest.raises(ValidationError):
        await checkout.place_order(delivery_form(address=""))
    assert cart.get_item_quantity("a") == 1
    with open(config.storage.audit_log_path) as f:
        assert "PLACE_ORDER | ABORTED | reason=MISSING_FIELDS" in f.read()


async def test_prefill_uses_default_saved_address(checkout, remote):
    await remote.set(
        "users",
        "u-1",
        {
            "email": "asha@example.com",
            "name": "Asha Rao",
            "phone": "9876543210",
            "savedAddresses": [
                {"addressLine": "1 Old Street", "city": "Mumbai", "pincode": "400001"},
                {"addressLine": "12 MG Road", "city": "Pune", "pincode": "411001", "isDefault": True},
            ],
        },
    )
    details = await checkout.prefill("u-1")
    assert details["name"] == "Asha Rao"
    assert (details["address"], details["city"], details["zip"]) == ("12 MG Road", "Pune", "411001")
    assert len(details["saved_addresses"]) == 2


async def test_prefill_without_profile_is_empty(checkout):
    assert await checkout.prefill("nobody") == {}
