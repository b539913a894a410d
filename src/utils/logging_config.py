"""Root logger setup driven by environment variables."""

import os
import logging
import sys
from pythonjsonlogger import jsonlogger

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"
JSON_FORMAT = "%(levelname)s %(name)s %(message)s"


class _CorrelationDefaultFilter(logging.Filter):
    """Give records logged outside a request a correlation_id so the text format never fails."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = "-"
        return True


class LoggingConfig:
    """Logging settings for the task API."""

    SERVICE_NAME = os.environ.get("SERVICE_NAME", "gradtrack-tasks-api")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json").lower()

    # Task titles are user text; both switches apply to every logged title
    LOG_MESSAGE_CONTENT = os.environ.get("LOG_MESSAGE_CONTENT", "true").lower() == "true"
    LOG_MASK_SENSITIVE = os.environ.get("LOG_MASK_SENSITIVE", "true").lower() == "true"

    LOG_CORRELATION_ID_HEADER = os.environ.get("LOG_CORRELATION_ID_HEADER", "X-Correlation-ID")
    LOG_SLOW_OPERATION_THRESHOLD_MS = int(os.environ.get("LOG_SLOW_OPERATION_THRESHOLD_MS", "500"))

    QUIET_LOGGERS = ("httpx", "httpcore", "hpack", "postgrest", "supabase", "gotrue", "storage3")

    @classmethod
    def build_formatter(cls) -> logging.Formatter:
        if cls.LOG_FORMAT == "json":
            return jsonlogger.JsonFormatter(
                JSON_FORMAT,
                rename_fields={"levelname": "level", "name": "logger"},
                static_fields={"service": cls.SERVICE_NAME},
                timestamp=True,
            )
        return logging.Formatter(TEXT_FORMAT)

    @classmethod
    def setup_logging(cls) -> None:
        """Send all records to stdout in the configured format.

        Safe to call more than once; existing root handlers are replaced.
        """
        level = getattr(logging, cls.LOG_LEVEL, logging.INFO)

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(cls.build_formatter())
        handler.addFilter(_CorrelationDefaultFilter())

        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.setLevel(level)
        root_logger.addHandler(handler)

        for name in cls.QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
