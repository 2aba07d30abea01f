"""Tests for the Firestore adapter: error translation, snapshots and live queries."""

import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from google.api_core import exceptions as gcp_exceptions

from notescafe.config import get_settings
from notescafe.db.firestore import FirestoreDocumentStore, _to_snapshot, _translate_errors
from notescafe.errors import DataProviderError


@pytest.mark.parametrize(
    ("exc", "code"),
    [
        (gcp_exceptions.NotFound("gone"), "not-found"),
        (gcp_exceptions.PermissionDenied("nope"), "permission-denied"),
        (gcp_exceptions.AlreadyExists("dup"), "already-exists"),
        (gcp_exceptions.FailedPrecondition("index missing"), "failed-precondition"),
        (gcp_exceptions.ServiceUnavailable("down"), "unavailable"),
        (gcp_exceptions.DeadlineExceeded("slow"), "unavailable"),
        (gcp_exceptions.InternalServerError("boom"), "unknown"),
    ],
)
def test_translate_errors(exc: Exception, code: str) -> None:
    with pytest.raises(DataProviderError) as exc_info:
        with _translate_errors():
            raise exc

    assert exc_info.value.code == code
    assert exc_info.value.__cause__ is exc


def test_translate_errors_leaves_other_exceptions() -> None:
    with pytest.raises(KeyError):
        with _translate_errors():
            raise KeyError("title")


def test_to_snapshot() -> None:
    reference = SimpleNamespace(path="notes/n1")
    existing = SimpleNamespace(id="n1", reference=reference, exists=True, to_dict=lambda: {"title": "Monsoon"})
    missing = SimpleNamespace(id="n1", reference=reference, exists=False, to_dict=lambda: None)

    snapshot = _to_snapshot(existing)
    assert snapshot.id == "n1"
    assert snapshot.path == "notes/n1"
    assert snapshot.exists
    assert snapshot.to_dict() == {"title": "Monsoon"}

    assert not _to_snapshot(missing).exists


class FakeWatch:
    """Stands in for firestore's Watch: close(reason) ends the stream, unsubscribe() closes it."""

    def __init__(self, callback):
        self.callback = callback
        self.close_reasons: list[object] = []

    def close(self, reason=None):
        self.close_reasons.append(reason)

    def unsubscribe(self):
        self.close()


class FakeQuery:
    def __init__(self):
        self.watch: FakeWatch | None = None

    def order_by(self, field_path, direction=None):
        return self

    def on_snapshot(self, callback):
        self.watch = FakeWatch(callback)
        return self.watch


class FakeWatchClient:
    def __init__(self):
        self.query = FakeQuery()

    def collection(self, path):
        return self.query


@pytest.fixture
def watch_client() -> FakeWatchClient:
    return FakeWatchClient()


@pytest.fixture
def firestore_store(watch_client: FakeWatchClient) -> FirestoreDocumentStore:
    return FirestoreDocumentStore(get_settings(), client=MagicMock(), watch_client=watch_client)


async def test_watch_snapshots_reach_the_loop(firestore_store: FirestoreDocumentStore, watch_client: FakeWatchClient) -> None:
    changes: list[list] = []
    firestore_store.subscribe("users/u1/tasks", changes.append, order_by="createdAt", descending=True)
    doc = SimpleNamespace(id="t1", reference=SimpleNamespace(path="users/u1/tasks/t1"), exists=True, to_dict=lambda: {"title": "x"})

    await asyncio.to_thread(watch_client.query.watch.callback, [doc], [], None)
    await asyncio.sleep(0)

    assert [[snapshot.id for snapshot in snapshots] for snapshots in changes] == [["t1"]]


async def test_stream_termination_reaches_error_callback(
    firestore_store: FirestoreDocumentStore, watch_client: FakeWatchClient
) -> None:
    errors: list[Exception] = []
    firestore_store.subscribe("users/u1/tasks", lambda snapshots: None, errors.append)
    watch = watch_client.query.watch

    reason = gcp_exceptions.ServiceUnavailable("stream reset")
    await asyncio.to_thread(watch.close, reason=reason)
    await asyncio.to_thread(watch.close, reason=reason)
    await asyncio.sleep(0)

    assert watch.close_reasons == [reason, reason]
    assert len(errors) == 1
    assert isinstance(errors[0], DataProviderError)
    assert errors[0].code == "unavailable"


async def test_stream_closed_without_exception(firestore_store: FirestoreDocumentStore, watch_client: FakeWatchClient) -> None:
    errors: list[Exception] = []
    firestore_store.subscribe("users/u1/tasks", lambda snapshots: None, errors.append)

    await asyncio.to_thread(watch_client.query.watch.close, reason="rpc done")
    await asyncio.sleep(0)

    assert len(errors) == 1
    assert errors[0].code == "unavailable"


async def test_unsubscribe_is_not_an_error(firestore_store: FirestoreDocumentStore, watch_client: FakeWatchClient) -> None:
    errors: list[Exception] = []
    registration = firestore_store.subscribe("users/u1/tasks", lambda snapshots: None, errors.append)
    watch = watch_client.query.watch

    registration.unsubscribe()
    registration.unsubscribe()
    await asyncio.sleep(0)

    assert watch.close_reasons == [None]
    assert errors == []
