from datetime import datetime, timedelta, timezone

import pytest

from conftest import add_order
from foodheaven_mcp.errors import ValidationError
from foodheaven_mcp.local_store import LocalStore
from foodheaven_mcp.profile import AddressBook, Preferences, order_history, profile_from_snapshot
from foodheaven_mcp.remote import DocumentSnapshot


def test_theme_defaults_to_system_preference(local, notifier):
    assert Preferences(local, notifier, prefers_dark=False).theme() == "light"
    assert Preferences(local, notifier, prefers_dark=True).theme() == "dark"


def test_toggle_theme_persists(state_path, notifier):
    prefs = Preferences(LocalStore(state_path), notifier)
    assert prefs.toggle_theme() == "dark"
    assert notifier.peek()[-1].message == "Theme switched to Dark mode"

    reopened = Preferences(LocalStore(state_path), notifier, prefers_dark=False)
    assert reopened.theme() == "dark"
    assert reopened.toggle_theme() == "light"


def test_guest_can_only_open_order_history(local, notifier):
    prefs = Preferences(local, notifier)
    assert prefs.switch_view("saved-items", signed_in=False) is None
    assert notifier.peek()[-1].message == "Please login to access this section"
    assert prefs.switch_view("order-history", signed_in=False) == "order-history"


def test_last_view_is_remembered(state_path, notifier):
    Preferences(LocalStore(state_path), notifier).switch_view("address-book", signed_in=True)
    assert Preferences(LocalStore(state_path), notifier).last_view() == "address-book"


def test_unknown_view_is_rejected(local, notifier):
    with pytest.raises(ValidationError) as exc_info:
        Preferences(local, notifier).switch_view("billing", signed_in=True)
    assert exc_info.value.code == "UNKNOWN_VIEW"


def test_address_book_requires_sign_in(local, notifier):
    book = AddressBook(local, notifier)
    with pytest.raises(ValidationError) as exc_info:
        book.add("12 MG Road", "Pune", signed_in=False)
    assert exc_info.value.code == "NOT_SIGNED_IN"
    assert book.addresses() == []


def test_address_book_saves_entries(local, notifier):
    book = AddressBook(local, notifier)
    entry = book.add(" 12 MG Road ", "Pune", signed_in=True)
    assert entry["street"] == "12 MG Road"
    assert [a["city"] for a in book.addresses()] == ["Pune"]

    with pytest.raises(ValidationError):
        book.add("", "Pune", signed_in=True)


def test_profile_from_snapshot():
    snap = DocumentSnapshot(id="u-1", data={"email": "asha@example.com", "role": "admin"})
    profile = profile_from_snapshot(snap)
    assert profile.uid == "u-1"
    assert profile.is_admin
    assert profile.wishlist is None

    assert profile_from_snapshot(None) is None
    assert profile_from_snapshot(DocumentSnapshot(id="u-2", data={"role": 42})) is None


async def test_order_history_filters_by_user_newest_first(remote, notifier):
    now = datetime.now(timezone.utc)
    first = await add_order(remote, timestamp=now - timedelta(days=2))
    second = await add_order(remote, timestamp=now)
    await remote.set("orders", "other", {"userId": "u-2", "timestamp": now})

    orders = await order_history(remote, notifier, "u-1")
    assert [order.id for order in orders] == [second, first]


async def test_order_history_failure_is_empty(remote, notifier):
    remote.inject_failure("list")
    assert await order_history(remote, notifier, "u-1") == []
    assert notifier.peek()[-1].message == "Could not load your orders."
