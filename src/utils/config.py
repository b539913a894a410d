"""Application configuration read from environment variables."""

import os


class AppConfig:
    """Centralized application configuration."""

    # Only an explicit "development" exposes error details to clients
    ENVIRONMENT = os.environ.get("ENVIRONMENT", "production").lower()
    PORT = int(os.environ.get("PORT", "4000"))

    API_VERSION = os.environ.get("API_VERSION", "1.0.0")
    API_BASE_PATH = os.environ.get("API_BASE_PATH", "/api/v1").rstrip("/")
    API_DOCS_PATH = os.environ.get("API_DOCS_PATH", "/api-docs")

    FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:5173")

    SUPABASE_URL = os.environ.get("SUPABASE_URL")
    SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
    TASKS_TABLE = os.environ.get("TASKS_TABLE", "tasks")

    # 100 requests per 15 minutes per client
    RATE_LIMIT_MAX = int(os.environ.get("RATE_LIMIT_MAX", "100"))
    RATE_LIMIT_WINDOW_SECONDS = int(os.environ.get("RATE_LIMIT_WINDOW_SECONDS", "900"))

    MAX_BODY_BYTES = int(os.environ.get("MAX_BODY_BYTES", str(10 * 1024)))

    # Honour X-Forwarded-For only when deployed behind a trusted proxy
    TRUST_PROXY = os.environ.get("TRUST_PROXY", "false").lower() == "true"

    DEFAULT_PAGE = 1
    DEFAULT_LIMIT = 10

    @classmethod
    def is_development(cls) -> bool:
        """Whether error details may be exposed to clients."""
        return cls.ENVIRONMENT == "development"
