"""In-memory implementation of the DocumentStore interface."""

import copy
import logging
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from notescafe.db.store import (
    SERVER_TIMESTAMP,
    DocumentRef,
    DocumentSnapshot,
    ErrorCallback,
    FieldFilter,
    ListenerRegistration,
    SnapshotCallback,
)
from notescafe.errors import DataProviderError

logger = logging.getLogger(__name__)


@dataclass
class _Listener:
    collection_path: str
    on_change: SnapshotCallback
    on_error: ErrorCallback | None
    order_by: str | None
    descending: bool


def _parent(path: str) -> str:
    return path.rsplit("/", 1)[0] if "/" in path else ""


class InMemoryDocumentStore:
    """
    Process-local document store.

    Behaves like Firestore where the application relies on it:
    - server timestamps are resolved at write time and strictly increase
    - update of a missing document fails with ``not-found``
    - delete of a missing document succeeds
    - ordered queries leave out documents lacking the order field
    - listeners get the full ordered result once on registration and after
      every write to their collection, synchronously and in write order
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._docs: dict[str, dict[str, Any]] = {}
        self._listeners: dict[int, _Listener] = {}
        self._next_listener_id = 0
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._last_timestamp: datetime | None = None

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get(self, path: str) -> DocumentSnapshot:
        data = self._docs.get(path)
        return DocumentSnapshot(
            id=path.rsplit("/", 1)[-1],
            path=path,
            data=copy.deepcopy(data) if data is not None else None,
        )

    async def query(
        self,
        collection_path: str,
        *,
        order_by: str | None = None,
        descending: bool = False,
        filters: Sequence[FieldFilter] = (),
    ) -> list[DocumentSnapshot]:
        return self._run_query(collection_path, order_by, descending, filters)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def set(self, path: str, fields: dict[str, Any], *, merge: bool = False) -> None:
        resolved = self._resolve(fields)
        if merge and path in self._docs:
            self._docs[path].update(resolved)
        else:
            self._docs[path] = resolved
        self._notify(_parent(path))

    async def add(self, collection_path: str, fields: dict[str, Any]) -> DocumentRef:
        doc_id = uuid.uuid4().hex[:20]
        path = f"{collection_path}/{doc_id}"
        self._docs[path] = self._resolve(fields)
        self._notify(collection_path)
        return DocumentRef(id=doc_id, path=path)

    async def update(self, path: str, fields: dict[str, Any]) -> None:
        if path not in self._docs:
            raise DataProviderError("not-found", f"No document to update: {path}")
        self._docs[path].update(self._resolve(fields))
        self._notify(_parent(path))

    async def delete(self, path: str) -> None:
        if self._docs.pop(path, None) is not None:
            self._notify(_parent(path))

    # -------------------------------------------------------------------------
    # Live queries
    # -------------------------------------------------------------------------

    def subscribe(
        self,
        collection_path: str,
        on_change: SnapshotCallback,
        on_error: ErrorCallback | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> ListenerRegistration:
        listener_id = self._next_listener_id
        self._next_listener_id += 1
        listener = _Listener(collection_path, on_change, on_error, order_by, descending)
        self._listeners[listener_id] = listener

        self._deliver(listener)
        return ListenerRegistration(lambda: self._listeners.pop(listener_id, None))

    def fail_listeners(self, collection_path: str, error: Exception) -> None:
        """Break every live query on a collection, the way a dropped stream would."""
        for listener_id, listener in list(self._listeners.items()):
            if listener.collection_path != collection_path:
                continue
            del self._listeners[listener_id]
            if listener.on_error is not None:
                listener.on_error(error)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _server_now(self) -> datetime:
        now = self._clock()
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    def _resolve(self, fields: dict[str, Any]) -> dict[str, Any]:
        resolved: dict[str, Any] = {}
        timestamp: datetime | None = None
        for key, value in fields.items():
            if value is SERVER_TIMESTAMP:
                # One write commits at one server time
                if timestamp is None:
                    timestamp = self._server_now()
                resolved[key] = timestamp
            else:
                resolved[key] = copy.deepcopy(value)
        return resolved

    def _run_query(
        self,
        collection_path: str,
        order_by: str | None,
        descending: bool,
        filters: Sequence[FieldFilter],
    ) -> list[DocumentSnapshot]:
        matches = []
        for path, data in self._docs.items():
            if _parent(path) != collection_path:
                continue
            if not all(self._matches(data, f) for f in filters):
                continue
            if order_by is not None and order_by not in data:
                continue
            matches.append(DocumentSnapshot(id=path.rsplit("/", 1)[-1], path=path, data=copy.deepcopy(data)))

        if order_by is not None:
            matches.sort(key=lambda snap: snap.data[order_by], reverse=descending)
        return matches

    @staticmethod
    def _matches(data: dict[str, Any], field_filter: FieldFilter) -> bool:
        field_name, op, value = field_filter
        if op != "==":
            raise DataProviderError("failed-precondition", f"Unsupported filter operator: {op}")
        return field_name in data and data[field_name] == value

    def _deliver(self, listener: _Listener) -> None:
        snapshots = self._run_query(listener.collection_path, listener.order_by, listener.descending, ())
        try:
            listener.on_change(snapshots)
        except Exception:
            logger.exception("Snapshot listener on %s raised", listener.collection_path)

    def _notify(self, collection_path: str) -> None:
        for listener in list(self._listeners.values()):
            if listener.collection_path == collection_path:
                self._deliver(listener)
