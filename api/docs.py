"""OpenAPI document endpoint."""

from src.services.http_handler import TaskAPIRequestHandler


class handler(TaskAPIRequestHandler):
    """Serve the generated OpenAPI document."""

    def do_GET(self):
        self._handle()
