"""Cloud Firestore implementation of the DocumentStore interface."""

import asyncio
import logging
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter as FirestoreFieldFilter
from google.oauth2 import service_account

from notescafe.config import Settings
from notescafe.db.store import (
    DocumentRef,
    DocumentSnapshot,
    ErrorCallback,
    FieldFilter,
    ListenerRegistration,
    SnapshotCallback,
)
from notescafe.errors import DataProviderError

logger = logging.getLogger(__name__)

# Order matters: subclasses before their bases
_ERROR_CODES: list[tuple[type[Exception], str]] = [
    (gcp_exceptions.NotFound, "not-found"),
    (gcp_exceptions.PermissionDenied, "permission-denied"),
    (gcp_exceptions.Forbidden, "permission-denied"),
    (gcp_exceptions.AlreadyExists, "already-exists"),
    (gcp_exceptions.Conflict, "already-exists"),
    (gcp_exceptions.FailedPrecondition, "failed-precondition"),
    (gcp_exceptions.ServiceUnavailable, "unavailable"),
    (gcp_exceptions.DeadlineExceeded, "unavailable"),
]


def _to_data_error(error: gcp_exceptions.GoogleAPIError) -> DataProviderError:
    for exc_type, code in _ERROR_CODES:
        if isinstance(error, exc_type):
            return DataProviderError(code, str(error))
    return DataProviderError("unknown", str(error))


@contextmanager
def _translate_errors() -> Iterator[None]:
    """Re-raise google-api-core failures as DataProviderError."""
    try:
        yield
    except gcp_exceptions.GoogleAPIError as e:
        raise _to_data_error(e) from e


def _stream_error(reason: Any) -> Exception:
    """Error for a listen stream that ended without being unsubscribed."""
    if isinstance(reason, gcp_exceptions.GoogleAPIError):
        return _to_data_error(reason)
    if isinstance(reason, Exception):
        return reason
    return DataProviderError("unavailable", f"Listen stream closed: {reason}")


def _to_snapshot(doc: Any) -> DocumentSnapshot:
    return DocumentSnapshot(
        id=doc.id,
        path=doc.reference.path,
        data=doc.to_dict() if doc.exists else None,
    )


class FirestoreDocumentStore:
    """
    DocumentStore backed by google-cloud-firestore.

    Reads and writes go through the async client. Live queries use the sync
    client's watch stream, which calls back on a background thread; callbacks
    are handed back to the event loop that opened the subscription.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        client: firestore.AsyncClient | None = None,
        watch_client: firestore.Client | None = None,
    ):
        client_kwargs: dict[str, Any] = {}
        if settings.firebase_project_id:
            client_kwargs["project"] = settings.firebase_project_id
        if settings.firebase_credentials_file:
            client_kwargs["credentials"] = service_account.Credentials.from_service_account_file(
                settings.firebase_credentials_file
            )

        self._client_kwargs = client_kwargs
        self.client = client or firestore.AsyncClient(**client_kwargs)
        self._watch_client: firestore.Client | None = watch_client

    async def get(self, path: str) -> DocumentSnapshot:
        with _translate_errors():
            doc = await self.client.document(path).get()
        return _to_snapshot(doc)

    async def set(self, path: str, fields: dict[str, Any], *, merge: bool = False) -> None:
        with _translate_errors():
            await self.client.document(path).set(fields, merge=merge)

    async def add(self, collection_path: str, fields: dict[str, Any]) -> DocumentRef:
        with _translate_errors():
            _, doc_ref = await self.client.collection(collection_path).add(fields)
        return DocumentRef(id=doc_ref.id, path=doc_ref.path)

    async def update(self, path: str, fields: dict[str, Any]) -> None:
        with _translate_errors():
            await self.client.document(path).update(fields)

    async def delete(self, path: str) -> None:
        with _translate_errors():
            await self.client.document(path).delete()

    async def query(
        self,
        collection_path: str,
        *,
        order_by: str | None = None,
        descending: bool = False,
        filters: Sequence[FieldFilter] = (),
    ) -> list[DocumentSnapshot]:
        query = self._build_query(self.client, collection_path, order_by, descending, filters)
        with _translate_errors():
            return [_to_snapshot(doc) async for doc in query.stream()]

    def subscribe(
        self,
        collection_path: str,
        on_change: SnapshotCallback,
        on_error: ErrorCallback | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> ListenerRegistration:
        loop = asyncio.get_running_loop()
        if self._watch_client is None:
            self._watch_client = firestore.Client(**self._client_kwargs)
        query = self._build_query(self._watch_client, collection_path, order_by, descending, ())

        def handle_snapshot(docs: list[Any], changes: Any, read_time: Any) -> None:
            # Runs on the watch thread
            try:
                snapshots = [_to_snapshot(doc) for doc in docs]
            except Exception as e:
                logger.error("Failed to read snapshot for %s: %s", collection_path, e, exc_info=True)
                if on_error is not None:
                    loop.call_soon_threadsafe(on_error, e)
                return
            loop.call_soon_threadsafe(on_change, snapshots)

        with _translate_errors():
            watch = query.on_snapshot(handle_snapshot)

        # The watch ends its stream through close(reason=...) on a background
        # thread and never tells the snapshot callback. Unless we unsubscribed,
        # report that as a stream error.
        lock = threading.Lock()
        ended = False
        close_watch = watch.close

        def end_stream(unsubscribed: bool) -> bool:
            nonlocal ended
            with lock:
                first, ended = not ended, True
            return first and not unsubscribed

        def close(reason: Any = None) -> None:
            close_watch(reason=reason)
            if end_stream(unsubscribed=False):
                error = _stream_error(reason)
                logger.error("Listen stream for %s closed: %s", collection_path, error)
                if on_error is not None:
                    loop.call_soon_threadsafe(on_error, error)

        def unsubscribe() -> None:
            end_stream(unsubscribed=True)
            watch.unsubscribe()

        watch.close = close
        return ListenerRegistration(unsubscribe)

    @staticmethod
    def _build_query(
        client: Any,
        collection_path: str,
        order_by: str | None,
        descending: bool,
        filters: Sequence[FieldFilter],
    ) -> Any:
        query = client.collection(collection_path)
        for field_name, op, value in filters:
            query = query.where(filter=FirestoreFieldFilter(field_name, op, value))
        if order_by is not None:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        return query
