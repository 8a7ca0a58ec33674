import pytest
from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as google_auth_exceptions

from foodheaven_mcp.config import FirebaseSettings
from foodheaven_mcp.errors import NotFoundError, RemoteError
from foodheaven_mcp.firestore import FirestoreDocumentStore
from foodheaven_mcp.menu import MenuCache
from foodheaven_mcp.sync import BestEffortWriter


class FailingReference:
    """Stands in for a Firestore collection, query and document reference."""

    def __init__(self, error):
        self.error = error

    def document(self, doc_id):
        return self

    def where(self, filter=None):
        return self

    def order_by(self, field_name, direction=None):
        return self

    def stream(self):
        raise self.error

    def get(self):
        raise self.error

    def add(self, data):
        raise self.error

    def set(self, data, merge=False):
        raise self.error

    def update(self, data):
        raise self.error

    def delete(self):
        raise self.error

    def on_snapshot(self, callback):
        raise self.error


class FailingClient:
    def __init__(self, error):
        self.error = error
        self.closed = False

    def collection(self, name):
        return FailingReference(self.error)

    def close(self):
        self.closed = True


def deadline_exceeded():
    return google_exceptions.RetryError("Deadline of 60s exceeded", None)


def store_raising(error):
    return FirestoreDocumentStore(FirebaseSettings(), client=FailingClient(error))


@pytest.mark.parametrize(
    "error",
    [
        deadline_exceeded(),
        google_auth_exceptions.RefreshError("Token refresh failed"),
        google_exceptions.ServiceUnavailable("backend down"),
    ],
)
async def test_client_errors_become_remote_errors(error):
    store = store_raising(error)
    with pytest.raises(RemoteError):
        await store.list("items")
    with pytest.raises(RemoteError):
        await store.get("users", "u-1")
    with pytest.raises(RemoteError):
        await store.add("orders", {"total": 1})
    with pytest.raises(RemoteError):
        await store.set("users", "u-1", {"wishlist": []}, merge=True)
    with pytest.raises(RemoteError):
        await store.delete("items", "x")


async def test_missing_document_on_update_is_not_found():
    store = store_raising(google_exceptions.NotFound("No document to update"))
    with pytest.raises(NotFoundError):
        await store.update("items", "gone", {"price": 1})


async def test_subscribe_error_goes_to_error_callback():
    store = store_raising(deadline_exceeded())
    errors = []
    subscription = store.subscribe("orders", lambda docs: None, errors.append)
    assert isinstance(errors[0], RemoteError)
    subscription.close()
    assert subscription.closed


async def test_menu_reload_survives_deadline(notifier):
    menu = MenuCache(store_raising(deadline_exceeded()), notifier)

    assert await menu.reload() is False
    assert not menu.loading
    assert notifier.peek()[-1].message == "Failed to load menu. Please refresh."


async def test_best_effort_write_reports_deadline(notifier):
    store = store_raising(deadline_exceeded())
    writer = BestEffortWriter(notifier)

    writer.issue(
        "wishlist:u-1",
        lambda: store.set("users", "u-1", {"wishlist": ["pizza-1"]}, merge=True),
        "Failed to save wishlist online.",
    )
    outcomes = await writer.drain()

    assert [o.ok for o in outcomes] == [False]
    assert notifier.peek()[-1].message == "Failed to save wishlist online."


def test_close_closes_client():
    client = FailingClient(deadline_exceeded())
    FirestoreDocumentStore(FirebaseSettings(), client=client).close()
    assert client.closed
