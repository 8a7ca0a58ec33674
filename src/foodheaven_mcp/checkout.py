"""Payment summary and order placement.

Payment is simulated: a valid form and a non-empty cart are enough to
create the order document.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional

from pydantic import BaseModel

from foodheaven_mcp.audit import audit_log
from foodheaven_mcp.cart import CartManager
from foodheaven_mcp.config import PricingConfig
from foodheaven_mcp.errors import FoodHeavenError, ValidationError
from foodheaven_mcp.models import (
    CartLine,
    DeliveryDetails,
    DineInDetails,
    Order,
    OrderLine,
    PaymentMethod,
    SavedAddress,
    ServiceType,
)
from foodheaven_mcp.notify import Notifier
from foodheaven_mcp.profile import profile_from_snapshot
from foodheaven_mcp.remote import ORDERS, USERS, DocumentStore

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def _money(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PaymentSummary:
    service: ServiceType
    subtotal: Decimal
    delivery_fee: Decimal
    taxable_base: Decimal
    tax: Decimal
    total: Decimal


def compute_summary(
    lines: Iterable[CartLine], service: ServiceType, pricing: PricingConfig
) -> PaymentSummary:
    subtotal = sum(
        (Decimal(str(line.price)) * line.quantity for line in lines), Decimal("0")
    )
    delivery = Decimal(str(pricing.delivery_fee)) if service == ServiceType.DELIVERY else Decimal("0")
    taxable_base = subtotal + delivery
    tax = taxable_base * Decimal(str(pricing.tax_rate))
    return PaymentSummary(
        service=service,
        subtotal=_money(subtotal),
        delivery_fee=_money(delivery),
        taxable_base=_money(taxable_base),
        tax=_money(tax),
        total=_money(taxable_base + tax),
    )


def parse_service(value: str) -> ServiceType:
    try:
        return ServiceType((value or "").strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown service type '{value}'. Use delivery or dinein.")


class CheckoutForm(BaseModel):
    email: str = ""
    name: str = ""
    phone: str = ""
    service: str = "delivery"
    payment_method: str = "card"
    address: str = ""
    city: str = ""
    zip: str = ""
    instructions: str = ""
    people: int = 2
    time: str = ""


def validate_form(form: CheckoutForm) -> tuple[ServiceType, PaymentMethod, dict[str, Any]]:
    """Check every required field. Returns service, payment method and order details."""
    service = parse_service(form.service)
    try:
        method = PaymentMethod((form.payment_method or "").strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown payment method '{form.payment_method}'.")

    missing = [
        label
        for label, value in (("email", form.email), ("name", form.name), ("phone", form.phone))
        if not value.strip()
    ]
    if service == ServiceType.DELIVERY:
        missing += [
            label
            for label, value in (("address", form.address), ("city", form.city), ("zip", form.zip))
            if not value.strip()
        ]
    elif not form.time.strip():
        missing.append("time")
    if missing:
        raise ValidationError(f"Please fill in: {', '.join(missing)}.", code="MISSING_FIELDS")

    if service == ServiceType.DELIVERY:
        details = DeliveryDetails(
            address=form.address.strip(),
            city=form.city.strip(),
            zip=form.zip.strip(),
            instructions=form.instructions.strip(),
        )
    else:
        if form.people < 1:
            raise ValidationError("Dine-in needs at least one guest.")
        details = DineInDetails(people=form.people, time=form.time.strip())
    return service, method, details.model_dump(by_alias=True)


class Checkout:
    def __init__(
        self,
        cart: CartManager,
        remote: DocumentStore,
        notifier: Notifier,
        pricing: PricingConfig,
        audit_path: str,
    ):
        self.cart = cart
        self.remote = remote
        self.notifier = notifier
        self.pricing = pricing
        self.audit_path = audit_path

    def summary(self, service: str = "delivery") -> PaymentSummary:
        return compute_summary(self.cart.lines(), parse_service(service), self.pricing)

    async def place_order(self, form: CheckoutForm, user_id: Optional[str] = None) -> Order:
        """Validate, simulate payment and store the order. Clears the cart on success."""
        if not self.cart.lines():
            audit_log(self.audit_path, "PLACE_ORDER | ABORTED | reason=EMPTY_CART")
            raise ValidationError("Your cart is empty! Add items from the menu.", code="EMPTY_CART")

        try:
            service, method, details = validate_form(form)
        except ValidationError as e:
            audit_log(self.audit_path, f"PLACE_ORDER | ABORTED | reason={e.code}")
            raise

        now = datetime.now(timezone.utc)
        summary = compute_summary(self.cart.lines(), service, self.pricing)
        order = Order(
            user_id=user_id or f"GUEST_{int(now.timestamp() * 1000)}",
            customer_email=form.email.strip(),
            customer_name=form.name.strip(),
            customer_phone=form.phone.strip(),
            order_items=[
                OrderLine(id=line.id, name=line.name, quantity=line.quantity, price=line.price)
                for line in self.cart.lines()
            ],
            total=float(summary.total),
            service=service,
            details=details,
            payment_method=method,
            timestamp=now,
        )
        item_summary = [f"{line.id} x{line.quantity}" for line in order.order_items]

        try:
            order.id = await self.remote.add(ORDERS, order.to_document())
        except FoodHeavenError as e:
            logger.exception("Error placing order")
            audit_log(self.audit_path, f"PLACE_ORDER | ERROR | reason={e}")
            self.notifier.push("Order submission failed. Please try again.", "error")
            raise

        audit_log(
            self.audit_path,
            f"PLACE_ORDER | CONFIRMED | user={order.user_id} | "
            f"items={json.dumps(item_summary)} | total={order.total} | order_id={order.id}",
        )
        logger.info(f"Order {order.id} placed with total {order.total}")
        self.cart.clear()
        self.notifier.push("Order placed successfully!")
        return order

    async def prefill(self, user_id: str) -> dict[str, Any]:
        """Contact fields and saved addresses from the profile, for the checkout form."""
        try:
            snap = await self.remote.get(USERS, user_id)
        except FoodHeavenError:
            logger.exception("Could not load user details for checkout")
            self.notifier.push("Could not load your saved details.", "error")
            return {}
        profile = profile_from_snapshot(snap)
        if profile is None:
            return {}

        default: Optional[SavedAddress] = next(
            (addr for addr in profile.saved_addresses if addr.is_default), None
        )
        return {
            "email": profile.email or "",
            "name": profile.name or "",
            "phone": profile.phone or "",
            "saved_addresses": [
                addr.model_dump(by_alias=True) for addr in profile.saved_addresses
            ],
            "address": default.address_line if default else "",
            "city": default.city if default else "",
            "zip": default.pincode if default else "",
        }
