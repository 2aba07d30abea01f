"""Planner task schemas."""

from typing import Literal

from pydantic import ConfigDict, Field

from notescafe.schemas.base import BaseSchema, TimestampMixin

# Type aliases for enums (used as literals for API validation)
TaskPriorityType = Literal["high", "medium", "low"]

DATE_KEY_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^\d{2}:\d{2}$"


class TaskCreate(BaseSchema):
    """
    Schema for creating a planner task.

    The known fields are validated; any other keys are kept as a passthrough
    bag so the planner UI can store its own fields alongside.
    """

    model_config = ConfigDict(extra="allow")

    title: str = Field(..., min_length=1, max_length=255)
    date: str | None = Field(None, pattern=DATE_KEY_PATTERN)
    time: str | None = Field(None, pattern=TIME_PATTERN)
    priority: TaskPriorityType = "medium"
    category: str = Field(default="study", max_length=50)
    completed: bool = False
    estimated_duration: int = Field(default=60, gt=0)  # minutes


class TaskUpdate(BaseSchema):
    """Schema for updating a task. All fields optional."""

    model_config = ConfigDict(extra="allow")

    title: str | None = Field(None, min_length=1, max_length=255)
    date: str | None = Field(None, pattern=DATE_KEY_PATTERN)
    time: str | None = Field(None, pattern=TIME_PATTERN)
    priority: TaskPriorityType | None = None
    category: str | None = Field(None, max_length=50)
    completed: bool | None = None
    estimated_duration: int | None = Field(None, gt=0)


class Task(TimestampMixin):
    """Schema for reading a task. Caller-supplied fields pass through."""

    model_config = ConfigDict(extra="allow")

    id: str
    user_id: str | None = None


class TaskCreated(BaseSchema):
    id: str
    path: str


class ProductivityStats(BaseSchema):
    total_tasks: int
    completed_tasks: int
    pending_tasks: int
    completion_rate: int
    average_tasks_per_day: int
    category_breakdown: dict[str, int] = Field(default_factory=dict)
    priority_breakdown: dict[str, int] = Field(
        default_factory=lambda: {"high": 0, "medium": 0, "low": 0}
    )
