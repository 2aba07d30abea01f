"""
Planner tasks, one sub-collection per user at ``users/{uid}/tasks``.

Live view: ``subscribe`` opens a query ordered by ``createdAt`` descending and
delivers the full current task list on every change until cancelled. A
subscription is consumed either through a callback or by iterating it:

    subscription = repo.subscribe(uid, on_change=render)
    ...
    subscription.cancel()

    async with repo.subscribe(uid) as subscription:
        async for tasks in subscription:
            ...
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Iterable, Mapping
from datetime import date, datetime, timedelta, timezone
from typing import Any

from pydantic import ValidationError

from notescafe.db.store import SERVER_TIMESTAMP, DocumentRef, DocumentSnapshot, DocumentStore, ListenerRegistration
from notescafe.schemas.tasks import ProductivityStats, Task

logger = logging.getLogger(__name__)

TASKS_SUBCOLLECTION = "tasks"

# Assigned by the server; never taken from the caller
RESERVED_TASK_FIELDS = frozenset(
    {"id", "userId", "createdAt", "updatedAt", "user_id", "created_at", "updated_at"}
)

TaskListCallback = Callable[[list[Task]], None]
TaskErrorCallback = Callable[[Exception], None]

_CLOSED = object()


def _to_task(snapshot: DocumentSnapshot) -> Task:
    return Task.model_validate({**snapshot.to_dict(), "id": snapshot.id})


def _writable(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if key not in RESERVED_TASK_FIELDS}


class TaskSubscription:
    """
    Cancellable live view of one user's tasks.

    With ``on_change`` every snapshot goes to the callback. Without it the
    snapshots are buffered and the subscription is an async iterator that ends
    when it is cancelled or the stream fails. ``cancel`` may be called any
    number of times; only the first releases the listener.
    """

    def __init__(
        self,
        on_change: TaskListCallback | None = None,
        on_error: TaskErrorCallback | None = None,
    ):
        self._on_change = on_change
        self._on_error = on_error
        self._queue: asyncio.Queue[Any] | None = asyncio.Queue() if on_change is None else None
        self._registration: ListenerRegistration | None = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def attach(self, registration: ListenerRegistration) -> None:
        self._registration = registration
        if self._cancelled:
            registration.unsubscribe()

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._registration is not None:
            self._registration.unsubscribe()
        if self._queue is not None:
            self._queue.put_nowait(_CLOSED)

    def handle_snapshot(self, snapshots: list[DocumentSnapshot]) -> None:
        if self._cancelled:
            return
        try:
            tasks = [_to_task(snapshot) for snapshot in snapshots]
        except ValidationError as e:
            self.handle_error(e)
            return
        if self._on_change is not None:
            self._on_change(tasks)
        else:
            self._queue.put_nowait(tasks)

    def handle_error(self, error: Exception) -> None:
        if self._cancelled:
            return
        logger.error("Error listening to tasks: %s", error)
        if self._on_error is not None:
            self._on_error(error)
        # No retry: the stream is over
        self.cancel()

    async def __aiter__(self) -> AsyncIterator[list[Task]]:
        if self._queue is None:
            raise RuntimeError("Subscription delivers to a callback; it cannot be iterated")
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item

    async def __aenter__(self) -> "TaskSubscription":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.cancel()


class PlannerRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    @staticmethod
    def collection_path(user_id: str) -> str:
        return f"users/{user_id}/{TASKS_SUBCOLLECTION}"

    def task_path(self, user_id: str, task_id: str) -> str:
        return f"{self.collection_path(user_id)}/{task_id}"

    def subscribe(
        self,
        user_id: str,
        on_change: TaskListCallback | None = None,
        on_error: TaskErrorCallback | None = None,
    ) -> TaskSubscription:
        """Open a live, newest-first view of the user's tasks. The caller must cancel it."""
        subscription = TaskSubscription(on_change, on_error)
        registration = self.store.subscribe(
            self.collection_path(user_id),
            subscription.handle_snapshot,
            subscription.handle_error,
            order_by="createdAt",
            descending=True,
        )
        subscription.attach(registration)
        return subscription

    async def list_tasks(self, user_id: str) -> list[Task]:
        snapshots = await self.store.query(
            self.collection_path(user_id), order_by="createdAt", descending=True
        )
        return [_to_task(snapshot) for snapshot in snapshots]

    async def get_task(self, user_id: str, task_id: str) -> Task | None:
        snapshot = await self.store.get(self.task_path(user_id, task_id))
        if not snapshot.exists:
            return None
        return _to_task(snapshot)

    async def add(self, user_id: str, task: Mapping[str, Any]) -> DocumentRef:
        return await self.store.add(
            self.collection_path(user_id),
            {
                **_writable(task),
                "userId": user_id,
                "createdAt": SERVER_TIMESTAMP,
                "updatedAt": SERVER_TIMESTAMP,
            },
        )

    async def update(self, user_id: str, task_id: str, updates: Mapping[str, Any]) -> None:
        await self.store.update(
            self.task_path(user_id, task_id),
            {**_writable(updates), "updatedAt": SERVER_TIMESTAMP},
        )

    async def complete(self, user_id: str, task_id: str) -> None:
        await self.store.update(
            self.task_path(user_id, task_id),
            {"completed": True, "completedAt": SERVER_TIMESTAMP, "updatedAt": SERVER_TIMESTAMP},
        )

    async def delete(self, user_id: str, task_id: str) -> None:
        """Hard delete. Deleting a task that is already gone succeeds."""
        await self.store.delete(self.task_path(user_id, task_id))


# =============================================================================
# DASHBOARD SUMMARIES
# =============================================================================


def _field(task: Task, name: str, default: Any = None) -> Any:
    value = getattr(task, name, None)
    return default if value is None else value


def upcoming_tasks(tasks: Iterable[Task], today: date | None = None, days: int = 7) -> list[Task]:
    """Tasks dated from today through the next ``days`` days, by date then time."""
    today = today or date.today()
    horizon = today + timedelta(days=days)

    upcoming = []
    for task in tasks:
        date_key = _field(task, "date")
        if not date_key:
            continue
        try:
            task_date = date.fromisoformat(date_key)
        except ValueError:
            continue
        if today <= task_date <= horizon:
            upcoming.append(task)

    return sorted(upcoming, key=lambda t: (_field(t, "date"), _field(t, "time", "")))


def productivity_stats(
    tasks: Iterable[Task],
    date_range: int = 30,
    now: datetime | None = None,
) -> ProductivityStats:
    """Completion figures for tasks created within the last ``date_range`` days."""
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=date_range)
    recent = [t for t in tasks if t.created_at is not None and t.created_at >= since]

    total = len(recent)
    completed = sum(1 for t in recent if _field(t, "completed", False))
    stats = ProductivityStats(
        total_tasks=total,
        completed_tasks=completed,
        pending_tasks=total - completed,
        completion_rate=0,
        average_tasks_per_day=0,
    )
    if total == 0:
        return stats

    stats.completion_rate = round(completed / total * 100)
    stats.average_tasks_per_day = round(total / date_range)

    categories: dict[str, int] = {}
    priorities = dict(stats.priority_breakdown)
    for task in recent:
        category = _field(task, "category", "general")
        categories[category] = categories.get(category, 0) + 1
        priority = _field(task, "priority", "medium")
        priorities[priority] = priorities.get(priority, 0) + 1

    stats.category_breakdown = categories
    stats.priority_breakdown = priorities
    return stats
