"""Resolve symbolic date filters into due-date ranges."""

import calendar
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from src.models.enums import DateFilter
from src.models.task import DateRange
from src.services.task_validation import validate_enum

# Day boundaries stop at millisecond precision: 23:59:59.999
_END_OF_DAY = dict(hour=23, minute=59, second=59, microsecond=999000)
_START_OF_DAY = dict(hour=0, minute=0, second=0, microsecond=0)


def _local(bound: datetime) -> datetime:
    """Attach the local offset in effect on the bound's own date."""
    return bound.astimezone() if bound.tzinfo is None else bound


def _today(now: datetime) -> DateRange:
    return DateRange(
        start=_local(now.replace(**_START_OF_DAY)),
        end=_local(now.replace(**_END_OF_DAY)),
    )


def _week(now: datetime) -> DateRange:
    # Weeks run Sunday through Saturday; isoweekday() is 7 on Sunday
    start = (now - timedelta(days=now.isoweekday() % 7)).replace(**_START_OF_DAY)
    end = (start + timedelta(days=6)).replace(**_END_OF_DAY)
    return DateRange(start=_local(start), end=_local(end))


def _month(now: datetime) -> DateRange:
    last_day = calendar.monthrange(now.year, now.month)[1]
    start = now.replace(day=1, **_START_OF_DAY)
    end = now.replace(day=last_day, **_END_OF_DAY)
    return DateRange(start=_local(start), end=_local(end))


def _overdue(now: datetime) -> DateRange:
    return DateRange(end=_local(now), end_inclusive=False)


_RESOLVERS: dict[DateFilter, Callable[[datetime], DateRange]] = {
    DateFilter.TODAY: _today,
    DateFilter.WEEK: _week,
    DateFilter.MONTH: _month,
    DateFilter.OVERDUE: _overdue,
}


def resolve_date_filter(name: Any, now: Optional[datetime] = None) -> DateRange:
    """Map a filter name (today, week, month, overdue) to a due-date range.

    Ranges are computed against ``now`` (default: the current local time)
    using wall-clock day boundaries. A naive ``now`` is local time, and each
    bound gets the UTC offset of its own date, so windows spanning a
    daylight-saving change keep true local midnights. An aware ``now`` keeps
    its tzinfo. ``overdue`` has no lower bound and an exclusive upper bound
    at ``now``.
    """
    date_filter = validate_enum(name, DateFilter, "dateFilter", "Date filter")
    if now is None:
        now = datetime.now()
    return _RESOLVERS[date_filter](now)
