"""Task payload validation.

Rules run in a fixed order and the first failure wins:

1. title must be a string with content after trimming (required on create)
2. status, if supplied, must exactly match a TaskStatus value
3. priority, if supplied, must exactly match a TaskPriority value
4. dueDate, if supplied and not null, must be a parseable ISO 8601 string

The normalized models only carry fields the caller supplied, which keeps
"omitted" (leave unchanged) distinct from an explicit ``dueDate: null``
(clear the due date).
"""

import re
from datetime import date, datetime, time, timezone
from typing import Any, Optional

from src.models.enums import TaskPriority, TaskStatus, _ValueEnum
from src.models.task import TaskCreate, TaskUpdate
from src.utils.errors import ValidationError

MISSING_OR_INVALID_TITLE = "MissingOrInvalidTitle"
INVALID_TYPE = "InvalidType"
INVALID_ENUM_VALUE = "InvalidEnumValue"
INVALID_DATE_FORMAT = "InvalidDateFormat"
INVALID_PAGINATION = "InvalidPagination"

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_title(title: Any) -> str:
    """Return the trimmed title or raise."""
    if not isinstance(title, str) or not title.strip():
        raise ValidationError(
            "Title is required and must be a non-empty string",
            kind=MISSING_OR_INVALID_TITLE,
            field="title",
        )
    return title.strip()


def validate_enum(value: Any, enum_cls: type[_ValueEnum], field: str, label: str) -> _ValueEnum:
    """Case-sensitive enumeration check shared by request bodies and query strings."""
    if not isinstance(value, str):
        raise ValidationError(
            f"{label} must be a string",
            kind=INVALID_TYPE,
            field=field,
        )
    if not enum_cls.is_valid(value):
        options = enum_cls.values()
        raise ValidationError(
            f"Invalid {label.lower()}. Valid options: {', '.join(options)}",
            kind=INVALID_ENUM_VALUE,
            field=field,
            valid_options=options,
            received_value=value,
        )
    return enum_cls(value)


def parse_due_date(value: Any) -> Optional[datetime]:
    """Parse a dueDate value into an aware datetime.

    ``None`` means "no due date". Date-only strings resolve to midnight UTC;
    timestamps without an offset are taken as local time.
    """
    if value is None:
        return None

    error = ValidationError(
        "Invalid due date format. Use ISO 8601 format (YYYY-MM-DDTHH:MM:SSZ)",
        kind=INVALID_DATE_FORMAT,
        field="dueDate",
    )
    if not isinstance(value, str) or not value.strip():
        raise error

    text = value.strip()
    try:
        if _DATE_ONLY.match(text):
            return datetime.combine(date.fromisoformat(text), time.min, tzinfo=timezone.utc)
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise error from None

    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def _require_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError(
            "Request body must be a JSON object",
            kind=INVALID_TYPE,
            field="body",
        )
    return payload


def _optional_fields(payload: dict) -> dict[str, Any]:
    """Validate status, priority and dueDate when present (rules 2-4)."""
    fields: dict[str, Any] = {}
    if payload.get("status") is not None:
        fields["status"] = validate_enum(payload["status"], TaskStatus, "status", "Status")
    if payload.get("priority") is not None:
        fields["priority"] = validate_enum(payload["priority"], TaskPriority, "priority", "Priority")
    if "dueDate" in payload:
        fields["due_date"] = parse_due_date(payload["dueDate"])
    return fields


def validate_task_payload(payload: Any) -> TaskCreate:
    """Validate a create request body; status and priority fall back to defaults."""
    payload = _require_object(payload)
    title = validate_title(payload.get("title"))
    return TaskCreate(title=title, **_optional_fields(payload))


def validate_task_update(payload: Any) -> TaskUpdate:
    """Validate a partial update body. Every field is optional but checked when supplied."""
    payload = _require_object(payload)
    fields: dict[str, Any] = {}
    if "title" in payload:
        fields["title"] = validate_title(payload["title"])
    fields.update(_optional_fields(payload))
    return TaskUpdate(**fields)
