"""Task listing: filter parsing, pagination and result shaping."""

import asyncio
import re
from datetime import datetime
from typing import Any, Mapping, Optional

from src.models.enums import TaskPriority, TaskStatus
from src.models.task import Pagination, TaskPage, TaskQuery
from src.services.date_filters import resolve_date_filter
from src.services.task_validation import INVALID_PAGINATION, validate_enum
from src.utils.config import AppConfig
from src.utils.errors import ValidationError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

_POSITIVE_INT = re.compile(r"^\d+$")


def parse_positive_int(value: Any, default: int, field: str) -> int:
    """Parse a query-string page/limit value."""
    if value is None or value == "":
        return default
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    elif isinstance(value, str) and _POSITIVE_INT.match(value.strip()):
        number = int(value.strip())
    else:
        number = 0

    if number < 1:
        raise ValidationError(
            "Invalid pagination parameters",
            kind=INVALID_PAGINATION,
            field=field,
        )
    return number


def build_task_query(params: Mapping[str, Any], now: Optional[datetime] = None) -> TaskQuery:
    """Turn raw query parameters into a validated TaskQuery.

    Pagination is checked first, then status, priority and dateFilter.
    Empty values are treated as absent.
    """
    page = parse_positive_int(params.get("page"), AppConfig.DEFAULT_PAGE, "page")
    limit = parse_positive_int(params.get("limit"), AppConfig.DEFAULT_LIMIT, "limit")

    filters: dict[str, Any] = {}
    if params.get("status"):
        filters["status"] = validate_enum(params["status"], TaskStatus, "status", "Status")
    if params.get("priority"):
        filters["priority"] = validate_enum(params["priority"], TaskPriority, "priority", "Priority")
    if params.get("dateFilter"):
        filters["due_range"] = resolve_date_filter(params["dateFilter"], now=now)

    return TaskQuery(page=page, limit=limit, **filters)


class TaskQueryService:
    """Read side of the task API."""

    def __init__(self, store):
        self.store = store

    async def list_tasks(self, params: Mapping[str, Any], now: Optional[datetime] = None) -> TaskPage:
        """Return one page of tasks matching every supplied filter, plus the total count."""
        query = build_task_query(params, now=now)

        # Same predicate for both reads; stores with an async client overlap them
        tasks, total = await asyncio.gather(
            self.store.find_tasks(query),
            self.store.count_tasks(query),
        )

        logger.info(
            "Tasks listed",
            status_filter=query.status.value if query.status else None,
            priority_filter=query.priority.value if query.priority else None,
            date_filter=params.get("dateFilter") or None,
            page=query.page,
            limit=query.limit,
            returned=len(tasks),
            total=total,
        )

        return TaskPage(
            tasks=tasks,
            pagination=Pagination(total=total, page=query.page, limit=query.limit),
        )
