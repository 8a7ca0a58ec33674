import logging
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from foodheaven_mcp.local_store import CART_KEY, LocalStore
from foodheaven_mcp.models import DEFAULT_IMAGE, CartLine
from foodheaven_mcp.notify import Notifier

logger = logging.getLogger(__name__)

INVALID_ITEM_MESSAGE = "Invalid item data. Cannot add to cart."


def _snapshot_field(snapshot: Any, name: str, alias: str = "") -> Any:
    if isinstance(snapshot, BaseModel):
        return getattr(snapshot, name, None)
    if isinstance(snapshot, Mapping):
        value = snapshot.get(name)
        if value is None and alias:
            value = snapshot.get(alias)
        return value
    return None


def _valid_price(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if price != price or price <= 0:  # NaN or free
        return None
    return price


class CartManager:
    """Authoritative cart state: item id -> CartLine.

    Lines copy name, price and image from the snapshot passed to
    ``add_to_cart`` so later catalog edits never change what is in the cart.
    The full cart is written to the local store after every mutation.
    """

    def __init__(
        self,
        store: LocalStore,
        notifier: Notifier,
        on_change: Optional[Callable[["CartManager", Optional[str]], None]] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.on_change = on_change
        self._lines: dict[str, CartLine] = {}
        self._load()

    def _load(self):
        for raw in self.store.get(CART_KEY, []) or []:
            try:
                line = CartLine.model_validate(raw)
            except PydanticValidationError as e:
                logger.warning(f"Dropping invalid cart line {raw!r}: {e.error_count()} errors")
                continue
            self._lines[line.id] = line

    def save(self) -> None:
        self.store.set(CART_KEY, [line.model_dump(mode="json", by_alias=True) for line in self._lines.values()])

    def _changed(self, item_id: Optional[str] = None) -> None:
        if self.on_change:
            self.on_change(self, item_id)

    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    def get_line(self, item_id: str) -> Optional[CartLine]:
        return self._lines.get(item_id)

    def get_total_items(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def get_total_price(self) -> float:
        return sum(line.quantity * line.price for line in self._lines.values())

    def get_item_quantity(self, item_id: str) -> int:
        line = self._lines.get(item_id)
        return line.quantity if line else 0

    def add_to_cart(self, item_id: str, snapshot: Any, quantity_delta: int = 1) -> Optional[CartLine]:
        """Add ``quantity_delta`` of an item. Returns the line, or None if rejected."""
        price = _valid_price(_snapshot_field(snapshot, "price"))
        if not item_id or price is None or quantity_delta < 1:
            logger.info(f"Rejected add_to_cart for {item_id!r}: invalid price or quantity")
            self.notifier.push(INVALID_ITEM_MESSAGE, "error")
            return None

        line = self._lines.get(item_id)
        if line:
            line.quantity += quantity_delta
        else:
            name = _snapshot_field(snapshot, "name") or "Unnamed Dish"
            image = _snapshot_field(snapshot, "image_url", "imageUrl") or DEFAULT_IMAGE
            line = CartLine(id=item_id, name=name, price=price, quantity=quantity_delta, image_url=image)
            self._lines[item_id] = line

        self.save()
        self._changed(item_id)
        self.notifier.push(f"{line.name} added to cart ({line.quantity})")
        return line

    def remove_from_cart(self, item_id: str, quantity_delta: int = 1) -> Optional[CartLine]:
        """Take ``quantity_delta`` off a line; the line goes away at zero."""
        line = self._lines.get(item_id)
        if line is None or quantity_delta < 1:
            return line

        remaining = line.quantity - quantity_delta
        if remaining <= 0:
            del self._lines[item_id]
            self.notifier.push("Item fully removed from cart")
        else:
            line.quantity = remaining
            self.notifier.push("Item quantity decreased")

        self.save()
        self._changed(item_id)
        return self._lines.get(item_id)

    def clear(self) -> None:
        self._lines.clear()
        self.store.remove(CART_KEY)
        self._changed()
