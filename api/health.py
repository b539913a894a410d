"""Health check endpoint."""

from src.services.http_handler import TaskAPIRequestHandler


class handler(TaskAPIRequestHandler):
    """Health check handler for Vercel serverless function."""

    def do_GET(self):
        """Report service and database health (200 or 503)."""
        self._handle()

    def do_OPTIONS(self):
        self._handle()
