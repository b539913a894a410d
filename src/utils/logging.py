"""Structured request logging: correlation IDs, store timings and title sanitizing."""

import logging
import re
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional

from src.utils.logging_config import LoggingConfig, get_logger

_request_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Inbound IDs are echoed in a response header, so only plain tokens are reused
_SAFE_ID = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")

_REDACTIONS = (
    (re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE), "[REDACTED_EMAIL]"),
    (re.compile(r"(?i)bearer\s+[A-Za-z0-9._~+/=-]+"), "Bearer [REDACTED]"),
    (re.compile(r"(?i)(api[_-]?key|token|secret|password)[\s:=]+\S{8,}"), r"\1=[REDACTED]"),
)


def generate_correlation_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> Optional[str]:
    return _request_id.get()


@contextmanager
def correlation_context(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation ID to everything logged inside the block.

    Missing or malformed client IDs are replaced with a generated one.
    """
    if not correlation_id or not _SAFE_ID.match(correlation_id):
        correlation_id = generate_correlation_id()

    token = _request_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _request_id.reset(token)


def mask_sensitive_data(text: str) -> str:
    if not text or not LoggingConfig.LOG_MASK_SENSITIVE:
        return text
    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)
    return text


def sanitize_message_text(text: Optional[str], max_length: int = 200) -> Optional[str]:
    """Prepare a task title for a log record.

    Returns None when content logging is off. Long titles are truncated
    before masking.
    """
    if not LoggingConfig.LOG_MESSAGE_CONTENT or not text:
        return None
    if len(text) > max_length:
        text = text[:max_length] + "..."
    return mask_sensitive_data(text)


class StructuredLogger:
    """Thin wrapper that sends keyword arguments as record fields.

    The active correlation ID is attached to every record.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _log(self, level: int, message: str, exc_info: bool = False, **fields: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        correlation_id = get_correlation_id()
        if correlation_id:
            fields["correlation_id"] = correlation_id
        self.logger.log(level, message, extra=fields, exc_info=exc_info)

    def debug(self, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, exc_info: bool = False, **fields: Any) -> None:
        self._log(logging.ERROR, message, exc_info=exc_info, **fields)

    def exception(self, message: str, **fields: Any) -> None:
        self._log(logging.ERROR, message, exc_info=True, **fields)


def get_structured_logger(name: str) -> StructuredLogger:
    return StructuredLogger(get_logger(name))


@contextmanager
def log_timing(operation: str, logger: StructuredLogger, **context: Any) -> Iterator[None]:
    """Time a store round trip.

    Logs the duration at debug level, and again as a warning when it exceeds
    LOG_SLOW_OPERATION_THRESHOLD_MS.
    """
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.debug("Store operation finished", operation=operation, duration_ms=elapsed_ms, **context)
        if elapsed_ms > LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS:
            logger.warning(
                "Slow store operation",
                operation=operation,
                duration_ms=elapsed_ms,
                threshold_ms=LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS,
                **context,
            )
