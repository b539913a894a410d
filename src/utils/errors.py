"""Error handling utilities."""

from typing import Any, Optional


class TaskAPIError(Exception):
    """Base exception for the task API."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self, include_details: bool = False) -> dict[str, Any]:
        """Render the error as the JSON body sent to clients."""
        body: dict[str, Any] = {"success": False, "error": self.message}
        if include_details and self.details:
            body["details"] = self.details
        return body


class ValidationError(TaskAPIError):
    """Malformed, missing or out-of-enumeration client input."""

    status_code = 400

    def __init__(
        self,
        message: str,
        kind: str,
        field: Optional[str] = None,
        valid_options: Optional[list[str]] = None,
        received_value: Any = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.field = field
        self.valid_options = valid_options
        self.received_value = received_value

    def to_dict(self, include_details: bool = False) -> dict[str, Any]:
        body = super().to_dict(include_details)
        if self.field:
            body["field"] = self.field
        if self.valid_options is not None:
            body["validOptions"] = list(self.valid_options)
            body["receivedValue"] = self.received_value
        return body


class NotFoundError(TaskAPIError):
    """No record matches the identifier."""

    status_code = 404


class PersistenceError(TaskAPIError):
    """Unexpected store failure."""

    status_code = 500


class PayloadTooLargeError(TaskAPIError):
    """Request body exceeds the configured size."""

    status_code = 413


class RateLimitError(TaskAPIError):
    """Client exceeded the request quota for the current window."""

    status_code = 429

    def __init__(
        self,
        message: str = "Too many requests, please try again later",
        retry_after: int = 0,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(message)
        self.retry_after = retry_after
        self.headers = headers or {}
