"""User profile documents, the local address book and UI preferences."""

import logging
import time
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from foodheaven_mcp.errors import FoodHeavenError, ValidationError
from foodheaven_mcp.local_store import ADDRESSES_KEY, PROFILE_VIEW_KEY, THEME_KEY, LocalStore
from foodheaven_mcp.models import Order, UserProfile
from foodheaven_mcp.notify import Notifier
from foodheaven_mcp.remote import ORDERS, DocumentSnapshot, DocumentStore

logger = logging.getLogger(__name__)

PROFILE_VIEWS = ("order-history", "saved-items", "address-book", "account-settings")
GUEST_VIEWS = ("order-history",)
DEFAULT_VIEW = "order-history"


def profile_from_snapshot(snap: Optional[DocumentSnapshot]) -> Optional[UserProfile]:
    if snap is None:
        return None
    try:
        return UserProfile.model_validate({**snap.data, "uid": snap.id})
    except PydanticValidationError as e:
        logger.warning(f"Malformed profile document users/{snap.id}: {e.error_count()} errors")
        return None


class Preferences:
    def __init__(self, store: LocalStore, notifier: Notifier, prefers_dark: bool = False):
        self.store = store
        self.notifier = notifier
        self.prefers_dark = prefers_dark

    def theme(self) -> str:
        saved = self.store.get(THEME_KEY)
        if saved in ("dark", "light"):
            return saved
        return "dark" if self.prefers_dark else "light"

    def set_theme(self, dark: bool) -> str:
        theme = "dark" if dark else "light"
        self.store.set(THEME_KEY, theme)
        return theme

    def toggle_theme(self) -> str:
        theme = self.set_theme(self.theme() != "dark")
        self.notifier.push(f"Theme switched to {theme.title()} mode")
        return theme

    def last_view(self) -> str:
        view = self.store.get(PROFILE_VIEW_KEY)
        return view if view in PROFILE_VIEWS else DEFAULT_VIEW

    def switch_view(self, view: str, signed_in: bool) -> Optional[str]:
        """Open a profile tab. Guests only get the order history."""
        if view not in PROFILE_VIEWS:
            raise ValidationError(f"Profile view not found: {view}", code="UNKNOWN_VIEW")
        if not signed_in and view not in GUEST_VIEWS:
            self.notifier.push("Please login to access this section", "info")
            return None
        self.store.set(PROFILE_VIEW_KEY, view)
        return view


class AddressBook:
    """Street/city entries saved on this device."""

    def __init__(self, store: LocalStore, notifier: Notifier):
        self.store = store
        self.notifier = notifier

    def addresses(self) -> list[dict[str, Any]]:
        return list(self.store.get(ADDRESSES_KEY, []) or [])

    def add(self, street: str, city: str, signed_in: bool) -> dict[str, Any]:
        if not signed_in:
            self.notifier.push("Please login first", "error")
            raise ValidationError("Please login first", code="NOT_SIGNED_IN")
        street, city = (street or "").strip(), (city or "").strip()
        if not street or not city:
            raise ValidationError("Street and city are required.", code="MISSING_FIELDS")

        entry = {"id": int(time.time() * 1000), "street": street, "city": city}
        self.store.set(ADDRESSES_KEY, self.addresses() + [entry])
        self.notifier.push("Address saved!")
        return entry


async def order_history(remote: DocumentStore, notifier: Notifier, user_id: str) -> list[Order]:
    """The user's past orders, newest first. Empty when the query fails."""
    try:
        snapshots = await remote.list(
            ORDERS, where=("userId", user_id), order_by="timestamp", descending=True
        )
    except FoodHeavenError:
        logger.exception("Error loading order history")
        notifier.push("Could not load your orders.", "error")
        return []

    orders = []
    for snap in snapshots:
        try:
            orders.append(Order.model_validate({**snap.data, "id": snap.id}))
        except PydanticValidationError as e:
            logger.warning(f"Skipping malformed order {snap.id}: {e.error_count()} errors")
    return orders
