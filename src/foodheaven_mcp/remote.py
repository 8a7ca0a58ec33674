"""Remote document store interface and the in-process backend.

The storefront talks to three collections (``items``, ``orders``, ``users``)
through :class:`DocumentStore`. Every call that reaches the network is a
coroutine; subscriptions push full query snapshots to a callback until they
are closed.
"""

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Optional
from uuid import uuid4

from foodheaven_mcp.errors import NotFoundError, RemoteError

logger = logging.getLogger(__name__)

ITEMS = "items"
ORDERS = "orders"
USERS = "users"


@dataclass
class DocumentSnapshot:
    id: str
    data: dict[str, Any] = field(default_factory=dict)


SnapshotCallback = Callable[[list[DocumentSnapshot]], None]
ErrorCallback = Callable[[Exception], None]


class Subscription:
    """Handle for a live query. ``close`` releases it and is idempotent."""

    def __init__(self, collection: str, release: Callable[[], None]):
        self.collection = collection
        self._release = release
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._release()
        logger.debug(f"Subscription on {self.collection} released")


class DocumentStore(ABC):
    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        """Return the document, or ``None`` when it does not exist."""

    @abstractmethod
    async def list(
        self,
        collection: str,
        where: Optional[tuple[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[DocumentSnapshot]:
        """Return every document of ``collection``, optionally filtered by one equality."""

    @abstractmethod
    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """Create a document with a generated id and return the id."""

    @abstractmethod
    async def set(
        self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False
    ) -> None:
        """Create or overwrite a document; with ``merge`` only the given fields change."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Change fields of an existing document. Raises NotFoundError if absent."""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        pass

    @abstractmethod
    def subscribe(
        self,
        collection: str,
        on_change: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> Subscription:
        """Push the query result to ``on_change`` now and after every change."""

    def close(self) -> None:
        pass


def _sorted(docs: list[DocumentSnapshot], order_by: Optional[str], descending: bool):
    if not order_by:
        return docs
    present = [d for d in docs if d.data.get(order_by) is not None]
    missing = [d for d in docs if d.data.get(order_by) is None]
    present.sort(key=lambda d: d.data[order_by], reverse=descending)
    return present + missing


@dataclass
class _Listener:
    on_change: SnapshotCallback
    on_error: Optional[ErrorCallback]
    order_by: Optional[str]
    descending: bool


class MemoryDocumentStore(DocumentStore):
    """Document store kept in process memory.

    Used by the ``memory`` backend and by the test suite. Documents are deep
    copied on the way in and out so callers never share state with the store.
    ``inject_failure`` makes an operation raise until ``clear_failures``.
    """

    def __init__(self, seed: Optional[dict[str, dict[str, dict[str, Any]]]] = None):
        self._collections: dict[str, dict[str, dict[str, Any]]] = copy.deepcopy(seed or {})
        self._listeners: dict[str, list[_Listener]] = {}
        self._failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, str]] = []

    def inject_failure(self, operation: str, error: Optional[Exception] = None) -> None:
        self._failures[operation] = error or RemoteError(f"{operation} failed: backend unavailable")

    def clear_failures(self) -> None:
        self._failures.clear()

    def _check(self, operation: str, collection: str) -> None:
        self.calls.append((operation, collection))
        if operation in self._failures:
            raise self._failures[operation]

    def _docs(self, collection: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    def _query(self, collection, where=None, order_by=None, descending=False):
        docs = [
            DocumentSnapshot(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._docs(collection).items()
        ]
        if where is not None:
            field_name, value = where
            docs = [d for d in docs if d.data.get(field_name) == value]
        return _sorted(docs, order_by, descending)

    def _publish(self, collection: str) -> None:
        for listener in list(self._listeners.get(collection, [])):
            snapshot = self._query(collection, None, listener.order_by, listener.descending)
            listener.on_change(snapshot)

    async def get(self, collection, doc_id):
        self._check("get", collection)
        data = self._docs(collection).get(doc_id)
        if data is None:
            return None
        return DocumentSnapshot(id=doc_id, data=copy.deepcopy(data))

    async def list(self, collection, where=None, order_by=None, descending=False):
        self._check("list", collection)
        return self._query(collection, where, order_by, descending)

    async def add(self, collection, data):
        self._check("add", collection)
        doc_id = uuid4().hex[:20]
        self._docs(collection)[doc_id] = copy.deepcopy(data)
        self._publish(collection)
        return doc_id

    async def set(self, collection, doc_id, data, merge=False):
        self._check("set", collection)
        docs = self._docs(collection)
        if merge and doc_id in docs:
            docs[doc_id].update(copy.deepcopy(data))
        else:
            docs[doc_id] = copy.deepcopy(data)
        self._publish(collection)

    async def update(self, collection, doc_id, data):
        self._check("update", collection)
        docs = self._docs(collection)
        if doc_id not in docs:
            raise NotFoundError(f"{collection}/{doc_id} does not exist")
        docs[doc_id].update(copy.deepcopy(data))
        self._publish(collection)

    async def delete(self, collection, doc_id):
        self._check("delete", collection)
        self._docs(collection).pop(doc_id, None)
        self._publish(collection)

    def subscribe(self, collection, on_change, on_error=None, order_by=None, descending=False):
        if "subscribe" in self._failures:
            error = self._failures["subscribe"]
            if on_error is None:
                raise error
            on_error(error)
            return Subscription(collection, lambda: None)

        listener = _Listener(on_change, on_error, order_by, descending)
        listeners = self._listeners.setdefault(collection, [])
        listeners.append(listener)
        on_change(self._query(collection, None, order_by, descending))
        return Subscription(collection, lambda: listeners.remove(listener))

    def listener_count(self, collection: str) -> int:
        return len(self._listeners.get(collection, []))
