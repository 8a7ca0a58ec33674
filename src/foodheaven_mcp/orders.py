"""Admin side of orders: the status state machine and the live orders feed."""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from foodheaven_mcp.audit import audit_log
from foodheaven_mcp.errors import FoodHeavenError, NotFoundError, ValidationError
from foodheaven_mcp.models import OrderStatus
from foodheaven_mcp.notify import Notifier
from foodheaven_mcp.remote import ORDERS, DocumentSnapshot, DocumentStore, Subscription

logger = logging.getLogger(__name__)

STATUS_CYCLE = {
    OrderStatus.NEW: OrderStatus.PROCESSING,
    OrderStatus.PROCESSING: OrderStatus.DELIVERED,
    OrderStatus.DELIVERED: OrderStatus.NEW,
    OrderStatus.CANCELLED: OrderStatus.NEW,
}
CANCELLABLE = (OrderStatus.NEW, OrderStatus.PROCESSING)
CANCELLED_EXITS = (OrderStatus.NEW.value, OrderStatus.CANCELLED.value)


class InvalidTransition(ValidationError):
    code = "INVALID_TRANSITION"


def parse_status(value: Union[str, OrderStatus, None]) -> OrderStatus:
    if not value:
        return OrderStatus.NEW
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown order status '{value}'.", code="UNKNOWN_STATUS")


def next_status(current: Union[str, OrderStatus]) -> OrderStatus:
    return STATUS_CYCLE[parse_status(current)]


def resolve_transition(
    current: Union[str, OrderStatus],
    requested: Optional[str] = None,
    confirmed: bool = False,
) -> OrderStatus:
    """Work out the status an admin action leads to, or raise.

    A cancelled order only leaves its state through an explicitly typed
    ``New`` (or stays with ``Cancelled``). Every other state needs the admin
    to confirm the default next step, or to ask for ``Cancelled`` while the
    order is still open.
    """
    current = parse_status(current)
    choice = (requested or "").strip()

    if current == OrderStatus.CANCELLED:
        if choice not in CANCELLED_EXITS:
            raise InvalidTransition(
                "Order is CANCELLED. Enter 'New' or 'Cancelled' to confirm the status."
            )
        return OrderStatus(choice)

    if not confirmed:
        raise ValidationError("Status change was not confirmed.", code="NOT_CONFIRMED")
    default = STATUS_CYCLE[current]
    if not choice or choice == default.value:
        return default
    if choice == OrderStatus.CANCELLED.value and current in CANCELLABLE:
        return OrderStatus.CANCELLED
    raise InvalidTransition(f"Cannot move an order from {current.value} to {choice}.")


async def update_order_status(
    remote: DocumentStore,
    notifier: Notifier,
    order_id: str,
    current: Union[str, OrderStatus],
    actor_email: Optional[str],
    requested: Optional[str] = None,
    confirmed: bool = False,
    audit_path: Optional[str] = None,
) -> OrderStatus:
    """Write the next status with an audit stamp.

    Nothing local is updated here: the orders subscription re-renders the
    badge once the write lands, and a failed write leaves it as it was.
    """
    target = resolve_transition(current, requested, confirmed)
    short_id = order_id[:5]
    try:
        await remote.update(
            ORDERS,
            order_id,
            {
                "status": target.value,
                "updatedBy": actor_email,
                "updateTimestamp": datetime.now(timezone.utc),
            },
        )
    except FoodHeavenError as e:
        logger.exception("Error updating order status")
        notifier.push("Failed to update order status. Check database rules.", "error")
        if audit_path:
            audit_log(audit_path, f"ORDER_STATUS | ERROR | order_id={order_id} | reason={e}")
        raise

    if audit_path:
        audit_log(
            audit_path,
            f"ORDER_STATUS | {parse_status(current).value} -> {target.value} | "
            f"order_id={order_id} | by={actor_email}",
        )
    notifier.push(f"Order {short_id} updated to {target.value}.")
    return target


class OrdersFeed:
    """Live view of the ``orders`` collection, newest first.

    Use as an async context manager: the subscription exists exactly while
    the admin dashboard is open.
    """

    def __init__(
        self,
        remote: DocumentStore,
        notifier: Notifier,
        on_render: Optional[Callable[["OrdersFeed"], None]] = None,
    ):
        self.remote = remote
        self.notifier = notifier
        self.on_render = on_render
        self.orders: list[DocumentSnapshot] = []
        self.error: Optional[str] = None
        self._subscription: Optional[Subscription] = None

    @property
    def active(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    async def __aenter__(self) -> "OrdersFeed":
        self._subscription = self.remote.subscribe(
            ORDERS,
            self._on_snapshot,
            self._on_error,
            order_by="timestamp",
            descending=True,
        )
        logger.info("Orders feed opened")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
            logger.info("Orders feed closed")

    def _on_snapshot(self, snapshots: list[DocumentSnapshot]) -> None:
        self.orders = snapshots
        self.error = None
        if self.on_render:
            self.on_render(self)

    def _on_error(self, error: Exception) -> None:
        logger.error(f"Real-time order listener failed: {error}")
        self.error = "Error fetching real-time orders. Please check network connection."
        self.notifier.push(self.error, "error")
        if self.on_render:
            self.on_render(self)

    def get(self, order_id: str) -> Optional[DocumentSnapshot]:
        return next((snap for snap in self.orders if snap.id == order_id), None)

    def status_of(self, order_id: str) -> Optional[OrderStatus]:
        snap = self.get(order_id)
        if snap is None:
            return None
        return parse_status(snap.data.get("status"))


async def current_status(remote: DocumentStore, order_id: str) -> OrderStatus:
    """Fetch the stored status when no feed is open."""
    snap = await remote.get(ORDERS, order_id)
    if snap is None:
        raise NotFoundError(f"Order {order_id} not found.")
    return parse_status(snap.data.get("status"))
