import asyncio
import logging

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as google_auth_exceptions
from google.cloud.firestore_v1.base_query import FieldFilter

from foodheaven_mcp.config import FirebaseSettings
from foodheaven_mcp.errors import NotFoundError, RemoteError
from foodheaven_mcp.remote import DocumentSnapshot, DocumentStore, Subscription

logger = logging.getLogger(__name__)

APP_NAME = "foodheaven"

# RetryError (deadline exceeded) is not a GoogleAPICallError; credential refresh
# failures come from google.auth.
REMOTE_ERRORS = (google_exceptions.GoogleAPIError, google_auth_exceptions.GoogleAuthError)


def _get_app(settings: FirebaseSettings):
    """Initialize (once) and return the firebase-admin app for this server."""
    try:
        return firebase_admin.get_app(APP_NAME)
    except ValueError:
        pass

    if settings.credentials_path:
        cred = credentials.Certificate(settings.credentials_path)
    else:
        cred = credentials.ApplicationDefault()
    options = {"projectId": settings.project_id} if settings.project_id else None
    return firebase_admin.initialize_app(cred, options, name=APP_NAME)


def _snapshot(doc) -> DocumentSnapshot:
    return DocumentSnapshot(id=doc.id, data=doc.to_dict() or {})


class FirestoreDocumentStore(DocumentStore):
    """Document store backed by Cloud Firestore through firebase-admin."""

    def __init__(self, settings: FirebaseSettings, client=None):
        self.settings = settings
        self._client = client or firestore.client(app=_get_app(settings))

    def _wrap(self, action: str, path: str, e: Exception) -> Exception:
        if isinstance(e, google_exceptions.NotFound):
            return NotFoundError(f"{path} does not exist")
        logger.warning(f"Firestore {action} on {path} failed: {e}")
        return RemoteError(f"Firestore {action} on {path} failed: {e}")

    async def get(self, collection, doc_id):
        try:
            doc = self._client.collection(collection).document(doc_id).get()
        except REMOTE_ERRORS as e:
            raise self._wrap("get", f"{collection}/{doc_id}", e) from e
        if not doc.exists:
            return None
        return _snapshot(doc)

    def _query(self, collection, where=None, order_by=None, descending=False):
        query = self._client.collection(collection)
        if where is not None:
            field_name, value = where
            query = query.where(filter=FieldFilter(field_name, "==", value))
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        return query

    async def list(self, collection, where=None, order_by=None, descending=False):
        try:
            docs = self._query(collection, where, order_by, descending).stream()
            return [_snapshot(doc) for doc in docs]
        except REMOTE_ERRORS as e:
            raise self._wrap("list", collection, e) from e

    async def add(self, collection, data):
        try:
            _, ref = self._client.collection(collection).add(data)
        except REMOTE_ERRORS as e:
            raise self._wrap("add", collection, e) from e
        return ref.id

    async def set(self, collection, doc_id, data, merge=False):
        try:
            self._client.collection(collection).document(doc_id).set(data, merge=merge)
        except REMOTE_ERRORS as e:
            raise self._wrap("set", f"{collection}/{doc_id}", e) from e

    async def update(self, collection, doc_id, data):
        try:
            self._client.collection(collection).document(doc_id).update(data)
        except REMOTE_ERRORS as e:
            raise self._wrap("update", f"{collection}/{doc_id}", e) from e

    async def delete(self, collection, doc_id):
        try:
            self._client.collection(collection).document(doc_id).delete()
        except REMOTE_ERRORS as e:
            raise self._wrap("delete", f"{collection}/{doc_id}", e) from e

    def subscribe(self, collection, on_change, on_error=None, order_by=None, descending=False):
        # Snapshot callbacks run on the watch thread; hop back onto the loop.
        loop = asyncio.get_running_loop()

        def _on_snapshot(docs, changes, read_time):
            snapshot = [_snapshot(doc) for doc in docs]
            loop.call_soon_threadsafe(on_change, snapshot)

        try:
            watch = self._query(collection, None, order_by, descending).on_snapshot(_on_snapshot)
        except REMOTE_ERRORS as e:
            error = self._wrap("subscribe", collection, e)
            if on_error is None:
                raise error from e
            on_error(error)
            return Subscription(collection, lambda: None)

        return Subscription(collection, watch.unsubscribe)

    def close(self) -> None:
        self._client.close()
