"""Standalone HTTP server for local development and container deployments."""

import asyncio
import signal
import sys
import threading
from http.server import ThreadingHTTPServer

from src.services.http_handler import TaskAPIRequestHandler, build_api
from src.services.router import TaskAPI
from src.utils.config import AppConfig
from src.utils.errors import PersistenceError
from src.utils.logging import get_structured_logger
from src.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)


class RequestHandler(TaskAPIRequestHandler):
    """Serves every route from one process."""

    def do_GET(self):
        self._handle()

    def do_POST(self):
        self._handle()

    def do_PATCH(self):
        self._handle()

    def do_DELETE(self):
        self._handle()

    def do_OPTIONS(self):
        self._handle()


class TaskAPIServer(ThreadingHTTPServer):
    """Thread-per-request server carrying the injected TaskAPI."""

    daemon_threads = True

    def __init__(self, address: tuple[str, int], task_api: TaskAPI):
        super().__init__(address, RequestHandler)
        self.task_api = task_api


def install_signal_handlers(server: TaskAPIServer) -> None:
    """Stop serving on SIGINT/SIGTERM.

    shutdown() blocks until serve_forever() returns, so it runs off the main thread.
    """
    def _shutdown(signum, frame):
        logger.info(
            "Shutdown signal received, shutting down gracefully",
            signal=signal.Signals(signum).name,
        )
        threading.Thread(target=server.shutdown, daemon=True).start()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)


def main() -> int:
    LoggingConfig.setup_logging()

    try:
        api = build_api()
        asyncio.run(api.store.ping())
    except PersistenceError as e:
        logger.error("Database connection failed", error=e.message, details=e.details)
        return 1

    server = TaskAPIServer(("", AppConfig.PORT), api)
    install_signal_handlers(server)

    logger.info(
        "Server running",
        port=AppConfig.PORT,
        environment=AppConfig.ENVIRONMENT,
        docs_url=f"http://localhost:{AppConfig.PORT}{AppConfig.API_DOCS_PATH}",
    )

    try:
        server.serve_forever()
    finally:
        server.server_close()
        asyncio.run(api.store.close())
        logger.info("Server closed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
