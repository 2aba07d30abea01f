"""Document store backends."""

from notescafe.config import Settings
from notescafe.db.inmemory import InMemoryDocumentStore
from notescafe.db.store import SERVER_TIMESTAMP, DocumentRef, DocumentSnapshot, DocumentStore


def build_document_store(settings: Settings) -> DocumentStore:
    """Create the store selected by ``document_store_backend``."""
    if settings.document_store_backend == "memory":
        return InMemoryDocumentStore()

    from notescafe.db.firestore import FirestoreDocumentStore

    return FirestoreDocumentStore(settings)


__all__ = [
    "SERVER_TIMESTAMP",
    "DocumentRef",
    "DocumentSnapshot",
    "DocumentStore",
    "InMemoryDocumentStore",
    "build_document_store",
]
