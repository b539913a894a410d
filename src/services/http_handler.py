"""http.server adapter shared by the serverless handlers and the standalone server."""

import threading
from http.server import BaseHTTPRequestHandler
from typing import Optional

from src.services.rate_limiter import RateLimiter
from src.services.router import TaskAPI, error_response
from src.services.supabase_client import SupabaseTaskStore, create_supabase_client
from src.utils.config import AppConfig
from src.utils.errors import PayloadTooLargeError
from src.utils.logging import get_structured_logger
from src.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)

_default_api: Optional[TaskAPI] = None
_default_api_lock = threading.Lock()


def build_api(client=None, rate_limiter: Optional[RateLimiter] = None) -> TaskAPI:
    """Wire the store and services together."""
    store = SupabaseTaskStore(client or create_supabase_client(), AppConfig.TASKS_TABLE)
    return TaskAPI(store, rate_limiter=rate_limiter or RateLimiter())


def get_default_api() -> TaskAPI:
    """API instance for serverless invocations, built on first use per process."""
    global _default_api

    with _default_api_lock:
        if _default_api is None:
            LoggingConfig.setup_logging()
            _default_api = build_api()
    return _default_api


class TaskAPIRequestHandler(BaseHTTPRequestHandler):
    """Translate an HTTP exchange into a TaskAPI request dict and back.

    Servers that expose a ``task_api`` attribute supply their own instance;
    otherwise the per-process default is used.
    """

    server_version = "GradTrackTasks/" + AppConfig.API_VERSION

    def _api(self) -> TaskAPI:
        return getattr(self.server, "task_api", None) or get_default_api()

    def _handle(self) -> None:
        try:
            content_length = int(self.headers.get("Content-Length", 0) or 0)
        except ValueError:
            content_length = 0

        if content_length > AppConfig.MAX_BODY_BYTES:
            self.close_connection = True
            self._write(error_response(PayloadTooLargeError("Request body too large")))
            return

        raw_body = self.rfile.read(content_length) if content_length > 0 else b""
        request = {
            "method": self.command,
            "path": self.path,
            "headers": dict(self.headers.items()),
            "body": raw_body,
            "query": None,
            "client_ip": self.client_address[0] if self.client_address else None,
        }
        self._write(self._api().handle(request))

    def _write(self, response: dict) -> None:
        status_code = response["statusCode"]
        body = response.get("body") or ""
        payload = body.encode("utf-8") if isinstance(body, str) else body

        self.send_response(status_code)
        for name, value in response.get("headers", {}).items():
            self.send_header(name, value)
        if status_code != 204:
            self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        if payload and status_code != 204:
            self.wfile.write(payload)

    def log_message(self, format, *args):
        logger.debug("HTTP access", client=self.address_string(), line=format % args)
