"""Task enumerations and their display metadata."""

from enum import Enum
from typing import Any


class _ValueEnum(str, Enum):
    """String enum with case-sensitive membership helpers."""

    @classmethod
    def values(cls) -> list[str]:
        """Canonical valid values, in declaration order."""
        return [member.value for member in cls]

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        return isinstance(value, str) and value in cls.values()


class TaskStatus(_ValueEnum):
    """Task workflow states."""
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


class TaskPriority(_ValueEnum):
    """Task priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def color_class(self) -> str:
        """Tailwind badge classes used by the board UI."""
        return _PRIORITY_COLORS[self]


class DateFilter(_ValueEnum):
    """Symbolic due-date windows accepted by the task listing."""
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    OVERDUE = "overdue"

    @property
    def label(self) -> str:
        return _DATE_FILTER_LABELS[self]


_STATUS_LABELS = {
    TaskStatus.TODO: "To Do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.DONE: "Done",
}

_PRIORITY_COLORS = {
    TaskPriority.LOW: "bg-green-100 text-green-800",
    TaskPriority.MEDIUM: "bg-yellow-100 text-yellow-800",
    TaskPriority.HIGH: "bg-red-100 text-red-800",
}

_DATE_FILTER_LABELS = {
    DateFilter.TODAY: "Today",
    DateFilter.WEEK: "This Week",
    DateFilter.MONTH: "This Month",
    DateFilter.OVERDUE: "Overdue",
}

DEFAULT_PRIORITY_COLOR = "bg-gray-100 text-gray-800"


def get_status_label(status: Any) -> Any:
    """Human-readable status label; unknown values are returned unchanged."""
    if TaskStatus.is_valid(status):
        return TaskStatus(status).label
    return status


def get_priority_color(priority: Any) -> str:
    """Badge colour classes for a priority; grey for unknown values."""
    if TaskPriority.is_valid(priority):
        return TaskPriority(priority).color_class
    return DEFAULT_PRIORITY_COLOR
