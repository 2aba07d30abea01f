"""Tests for the planner task repository and its live subscription."""

from datetime import date, datetime, timedelta, timezone

import pytest

from notescafe.db import InMemoryDocumentStore
from notescafe.errors import DataProviderError
from notescafe.repositories import PlannerRepository
from notescafe.repositories.planner import productivity_stats, upcoming_tasks
from notescafe.schemas.tasks import Task

UID = "user-1"


@pytest.fixture
def planner(store: InMemoryDocumentStore) -> PlannerRepository:
    return PlannerRepository(store)


# =============================================================================
# WRITES
# =============================================================================


async def test_add_stamps_owner_and_timestamps(planner: PlannerRepository, store: InMemoryDocumentStore) -> None:
    ref = await planner.add(UID, {"title": "Revise Polity", "priority": "high"})

    assert ref.path == f"users/{UID}/tasks/{ref.id}"
    data = (await store.get(ref.path)).to_dict()
    assert data["title"] == "Revise Polity"
    assert data["userId"] == UID
    assert isinstance(data["createdAt"], datetime)
    assert data["createdAt"] == data["updatedAt"]


async def test_update_restamps_updated_at_only(planner: PlannerRepository) -> None:
    ref = await planner.add(UID, {"title": "Revise Polity"})
    before = await planner.get_task(UID, ref.id)

    await planner.update(UID, ref.id, {"title": "Revise Polity ch. 3"})

    after = await planner.get_task(UID, ref.id)
    assert after.title == "Revise Polity ch. 3"
    assert after.created_at == before.created_at
    assert after.updated_at > before.updated_at


async def test_update_missing_task(planner: PlannerRepository) -> None:
    with pytest.raises(DataProviderError) as exc_info:
        await planner.update(UID, "nope", {"title": "x"})
    assert exc_info.value.code == "not-found"


async def test_complete_task(planner: PlannerRepository) -> None:
    ref = await planner.add(UID, {"title": "Mock test", "completed": False})

    await planner.complete(UID, ref.id)

    task = await planner.get_task(UID, ref.id)
    assert task.completed is True
    assert task.completedAt == task.updated_at


async def test_repeated_delete_succeeds(planner: PlannerRepository) -> None:
    ref = await planner.add(UID, {"title": "Mock test"})

    await planner.delete(UID, ref.id)
    await planner.delete(UID, ref.id)

    assert await planner.get_task(UID, ref.id) is None


async def test_list_tasks_newest_first(planner: PlannerRepository) -> None:
    first = await planner.add(UID, {"title": "first"})
    second = await planner.add(UID, {"title": "second"})
    await planner.add("someone-else", {"title": "not mine"})

    assert [task.id for task in await planner.list_tasks(UID)] == [second.id, first.id]


# =============================================================================
# LIVE SUBSCRIPTION
# =============================================================================


async def test_subscription_delivers_full_ordered_list(planner: PlannerRepository) -> None:
    deliveries: list[list[Task]] = []
    subscription = planner.subscribe(UID, on_change=deliveries.append)

    # Current state on registration
    assert deliveries == [[]]

    first = await planner.add(UID, {"title": "first"})
    assert len(deliveries) == 2
    assert [t.id for t in deliveries[-1]] == [first.id]

    second = await planner.add(UID, {"title": "second"})
    assert len(deliveries) == 3
    assert [t.id for t in deliveries[-1]] == [second.id, first.id]

    await planner.delete(UID, second.id)
    assert len(deliveries) == 4
    assert [t.id for t in deliveries[-1]] == [first.id]

    subscription.cancel()
    subscription.cancel()
    await planner.add(UID, {"title": "third"})
    await planner.delete(UID, first.id)

    assert len(deliveries) == 4
    assert subscription.cancelled


async def test_subscription_ignores_other_users(planner: PlannerRepository) -> None:
    deliveries: list[list[Task]] = []
    subscription = planner.subscribe(UID, on_change=deliveries.append)

    await planner.add("someone-else", {"title": "not mine"})

    assert deliveries == [[]]
    subscription.cancel()


async def test_subscription_stream_error(planner: PlannerRepository, store: InMemoryDocumentStore) -> None:
    deliveries: list[list[Task]] = []
    errors: list[Exception] = []
    subscription = planner.subscribe(UID, on_change=deliveries.append, on_error=errors.append)

    failure = RuntimeError("stream dropped")
    store.fail_listeners(planner.collection_path(UID), failure)
    await planner.add(UID, {"title": "after failure"})

    assert errors == [failure]
    assert deliveries == [[]]
    assert subscription.cancelled


async def test_subscription_as_async_iterator(planner: PlannerRepository) -> None:
    async with planner.subscribe(UID) as subscription:
        ref = await planner.add(UID, {"title": "first"})
        subscription.cancel()
        snapshots = [[task.id for task in tasks] async for tasks in subscription]

    assert snapshots == [[], [ref.id]]


async def test_iterator_ends_on_stream_error(planner: PlannerRepository, store: InMemoryDocumentStore) -> None:
    subscription = planner.subscribe(UID)
    store.fail_listeners(planner.collection_path(UID), RuntimeError("stream dropped"))

    snapshots = [tasks async for tasks in subscription]

    assert snapshots == [[]]


async def test_callback_subscription_cannot_be_iterated(planner: PlannerRepository) -> None:
    subscription = planner.subscribe(UID, on_change=lambda tasks: None)

    with pytest.raises(RuntimeError):
        async for _ in subscription:
            pass
    subscription.cancel()


# =============================================================================
# DASHBOARD SUMMARIES
# =============================================================================


def test_upcoming_tasks() -> None:
    today = date(2026, 3, 1)
    tasks = [
        Task(id="later-same-day", date="2026-03-03", time="18:00"),
        Task(id="past", date="2026-02-28"),
        Task(id="early-same-day", date="2026-03-03", time="07:30"),
        Task(id="today", date="2026-03-01"),
        Task(id="edge", date="2026-03-08"),
        Task(id="too-far", date="2026-03-09"),
        Task(id="undated"),
        Task(id="bad-date", date="soon"),
    ]

    upcoming = upcoming_tasks(tasks, today=today)

    assert [t.id for t in upcoming] == ["today", "early-same-day", "later-same-day", "edge"]


def test_productivity_stats() -> None:
    now = datetime(2026, 3, 1, tzinfo=timezone.utc)
    recent = now - timedelta(days=3)
    tasks = [
        Task(id="a", created_at=recent, completed=True, category="study", priority="high"),
        Task(id="b", created_at=recent, completed=False, category="study", priority="medium"),
        Task(id="c", created_at=recent, completed=True, category="revision", priority="low"),
        Task(id="d", created_at=recent),
        Task(id="old", created_at=now - timedelta(days=60), completed=True),
        Task(id="unsaved"),
    ]

    stats = productivity_stats(tasks, now=now)

    assert stats.total_tasks == 4
    assert stats.completed_tasks == 2
    assert stats.pending_tasks == 2
    assert stats.completion_rate == 50
    assert stats.average_tasks_per_day == 0
    assert stats.category_breakdown == {"study": 2, "revision": 1, "general": 1}
    assert stats.priority_breakdown == {"high": 1, "medium": 2, "low": 1}


def test_productivity_stats_empty() -> None:
    stats = productivity_stats([])

    assert stats.total_tasks == 0
    assert stats.completion_rate == 0
    assert stats.category_breakdown == {}
    assert stats.priority_breakdown == {"high": 0, "medium": 0, "low": 0}


async def test_unreadable_task_ends_subscription(planner: PlannerRepository, store: InMemoryDocumentStore) -> None:
    deliveries: list[list[Task]] = []
    errors: list[Exception] = []
    subscription = planner.subscribe(UID, on_change=deliveries.append, on_error=errors.append)

    await store.set(
        f"{planner.collection_path(UID)}/corrupt",
        {"title": "x", "userId": 42, "createdAt": datetime.now(timezone.utc)},
    )

    assert deliveries == [[]]
    assert len(errors) == 1
    assert subscription.cancelled
