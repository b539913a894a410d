"""Task collection and item endpoints."""

from src.services.http_handler import TaskAPIRequestHandler


class handler(TaskAPIRequestHandler):
    """Vercel serverless function handler for /tasks and /tasks/{id}."""

    def do_GET(self):
        """List tasks with filters and pagination."""
        self._handle()

    def do_POST(self):
        """Create a task."""
        self._handle()

    def do_PATCH(self):
        """Partially update a task."""
        self._handle()

    def do_DELETE(self):
        """Delete a task."""
        self._handle()

    def do_OPTIONS(self):
        """CORS preflight."""
        self._handle()
