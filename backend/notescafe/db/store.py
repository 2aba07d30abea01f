"""
Document store interface.

The application never talks to Firestore directly: repositories depend on the
DocumentStore protocol below, addressed with slash-separated paths
(``users/{uid}``, ``users/{uid}/tasks``, ``subjects/{id}/pdfs``).

Backends:
- FirestoreDocumentStore (db/firestore.py): production
- InMemoryDocumentStore (db/inmemory.py): local development and tests
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from google.cloud.firestore import SERVER_TIMESTAMP

__all__ = [
    "SERVER_TIMESTAMP",
    "DocumentRef",
    "DocumentSnapshot",
    "DocumentStore",
    "FieldFilter",
    "ListenerRegistration",
    "SnapshotCallback",
    "ErrorCallback",
]

# (field, operator, value); only "==" is required by the application
FieldFilter = tuple[str, str, Any]


@dataclass(frozen=True)
class DocumentRef:
    """Reference to a stored document."""

    id: str
    path: str


@dataclass
class DocumentSnapshot:
    """A document as read from the store. ``data`` is None when absent."""

    id: str
    path: str
    data: dict[str, Any] | None = field(default=None)

    @property
    def exists(self) -> bool:
        return self.data is not None

    def to_dict(self) -> dict[str, Any]:
        return dict(self.data or {})


SnapshotCallback = Callable[[list[DocumentSnapshot]], None]
ErrorCallback = Callable[[Exception], None]


class ListenerRegistration:
    """Handle for a live query. ``unsubscribe`` releases it; repeat calls are no-ops."""

    def __init__(self, release: Callable[[], None]):
        self._release: Callable[[], None] | None = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def unsubscribe(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()


class DocumentStore(Protocol):
    """Call/response contract of the external document database."""

    async def get(self, path: str) -> DocumentSnapshot: ...

    async def set(self, path: str, fields: dict[str, Any], *, merge: bool = False) -> None: ...

    async def add(self, collection_path: str, fields: dict[str, Any]) -> DocumentRef: ...

    async def update(self, path: str, fields: dict[str, Any]) -> None: ...

    async def delete(self, path: str) -> None: ...

    async def query(
        self,
        collection_path: str,
        *,
        order_by: str | None = None,
        descending: bool = False,
        filters: Sequence[FieldFilter] = (),
    ) -> list[DocumentSnapshot]: ...

    def subscribe(
        self,
        collection_path: str,
        on_change: SnapshotCallback,
        on_error: ErrorCallback | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> ListenerRegistration: ...
