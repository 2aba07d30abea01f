"""
Planner task routes.

Tasks live under the signed-in user; the user id always comes from the
session, never from the request body.

GET /planner/tasks/stream is a server-sent event stream: one ``data:`` frame
with the full newest-first task list per change, starting with the current
list. The live subscription is released when the client disconnects.
"""

import json
from collections.abc import AsyncIterator

from fastapi import APIRouter, Query, status
from fastapi.responses import StreamingResponse

from notescafe.api.deps import CurrentUser, Planner
from notescafe.errors import DataProviderError
from notescafe.repositories.planner import PlannerRepository, TaskSubscription, productivity_stats, upcoming_tasks
from notescafe.schemas.tasks import ProductivityStats, Task, TaskCreate, TaskCreated, TaskUpdate

router = APIRouter(prefix="/planner/tasks", tags=["planner"])


async def _task_events(subscription: TaskSubscription) -> AsyncIterator[str]:
    async with subscription:
        async for tasks in subscription:
            payload = [task.model_dump(mode="json", by_alias=True) for task in tasks]
            yield f"data: {json.dumps(payload)}\n\n"


async def _get_task_or_404(planner: PlannerRepository, user_id: str, task_id: str) -> Task:
    task = await planner.get_task(user_id, task_id)
    if task is None:
        raise DataProviderError("not-found", "Task not found")
    return task


# =============================================================================
# READS
# =============================================================================


@router.get("", response_model=list[Task])
async def list_tasks(current_user: CurrentUser, planner: Planner) -> list[Task]:
    """All of the user's tasks, newest first."""
    return await planner.list_tasks(current_user.uid)


@router.get("/upcoming", response_model=list[Task])
async def list_upcoming_tasks(
    current_user: CurrentUser,
    planner: Planner,
    days: int = Query(7, ge=1, le=365),
) -> list[Task]:
    """Tasks dated within the next ``days`` days, by date then time."""
    return upcoming_tasks(await planner.list_tasks(current_user.uid), days=days)


@router.get("/stats", response_model=ProductivityStats)
async def get_productivity_stats(
    current_user: CurrentUser,
    planner: Planner,
    date_range: int = Query(30, ge=1, le=365, alias="dateRange"),
) -> ProductivityStats:
    return productivity_stats(await planner.list_tasks(current_user.uid), date_range=date_range)


@router.get("/stream")
async def stream_tasks(current_user: CurrentUser, planner: Planner) -> StreamingResponse:
    subscription = planner.subscribe(current_user.uid)
    return StreamingResponse(
        _task_events(subscription),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


# =============================================================================
# WRITES
# =============================================================================


@router.post("", response_model=TaskCreated, status_code=status.HTTP_201_CREATED)
async def create_task(data: TaskCreate, current_user: CurrentUser, planner: Planner) -> TaskCreated:
    ref = await planner.add(current_user.uid, data.model_dump(mode="json", by_alias=True))
    return TaskCreated(id=ref.id, path=ref.path)


@router.patch("/{task_id}", response_model=Task)
async def update_task(task_id: str, data: TaskUpdate, current_user: CurrentUser, planner: Planner) -> Task:
    """Update the fields sent; ``updatedAt`` is restamped by the server."""
    await planner.update(current_user.uid, task_id, data.model_dump(mode="json", by_alias=True, exclude_unset=True))
    return await _get_task_or_404(planner, current_user.uid, task_id)


@router.post("/{task_id}/complete", response_model=Task)
async def complete_task(task_id: str, current_user: CurrentUser, planner: Planner) -> Task:
    await planner.complete(current_user.uid, task_id)
    return await _get_task_or_404(planner, current_user.uid, task_id)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: str, current_user: CurrentUser, planner: Planner) -> None:
    """Hard delete. Deleting a task that is already gone still succeeds."""
    await planner.delete(current_user.uid, task_id)
