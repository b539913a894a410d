"""Task models."""

from math import ceil
from typing import Any, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, computed_field

from src.models.enums import TaskPriority, TaskStatus


class Task(BaseModel):
    """Persisted task.

    Field names match the database columns; aliases are the camelCase
    names used on the wire.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Task ID (ULID, store generated)")
    title: str = Field(..., min_length=1, description="Task title")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Status: TODO, IN_PROGRESS, DONE")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Priority: low, medium, high")
    due_date: Optional[datetime] = Field(None, alias="dueDate", description="Due date")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    def to_response(self) -> dict[str, Any]:
        """JSON-ready representation with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class TaskCreate(BaseModel):
    """Normalized input for creating a task; defaults applied."""
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, description="Trimmed task title")
    status: TaskStatus = Field(default=TaskStatus.TODO)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    due_date: Optional[datetime] = Field(None, alias="dueDate")

    def to_row(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class TaskUpdate(BaseModel):
    """Normalized partial update.

    Only fields explicitly set at construction are applied, so an omitted
    due_date leaves the stored value alone while due_date=None clears it.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(None, min_length=1)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = Field(None, alias="dueDate")

    def changes(self) -> dict[str, Any]:
        """Column values for the fields the caller supplied."""
        return self.model_dump(mode="json", exclude_unset=True)

    @property
    def is_empty(self) -> bool:
        return not self.model_fields_set


class DateRange(BaseModel):
    """Due-date window; either bound may be open."""
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    end_inclusive: bool = True

    def contains(self, instant: Optional[datetime]) -> bool:
        """Whether a due date falls inside the window. Missing dates never match."""
        if instant is None:
            return False
        if self.start is not None and instant < self.start:
            return False
        if self.end is not None:
            if self.end_inclusive:
                return instant <= self.end
            return instant < self.end
        return True


class TaskQuery(BaseModel):
    """Conjunctive task filter plus the page window to read."""
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_range: Optional[DateRange] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def matches(self, task: Task) -> bool:
        """Evaluate the filter against a single task (AND of all supplied constraints)."""
        if self.status is not None and task.status != self.status:
            return False
        if self.priority is not None and task.priority != self.priority:
            return False
        if self.due_range is not None and not self.due_range.contains(task.due_date):
            return False
        return True


class Pagination(BaseModel):
    """Pagination metadata for a task listing."""
    model_config = ConfigDict(populate_by_name=True)

    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)

    @computed_field(alias="totalPages")
    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.limit)


class TaskPage(BaseModel):
    """One page of tasks and its pagination metadata."""
    tasks: list[Task] = Field(default_factory=list)
    pagination: Pagination

    def to_response(self) -> dict[str, Any]:
        return {
            "success": True,
            "data": [task.to_response() for task in self.tasks],
            "pagination": self.pagination.model_dump(mode="json", by_alias=True),
        }
