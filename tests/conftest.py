"""Shared pytest fixtures and configuration."""

import os
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock
from freezegun import freeze_time

# Set test environment variables before the app reads its configuration
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LOG_FORMAT", "text")

from src.services.router import TaskAPI  # noqa: E402
from tests.fakes import InMemoryTaskStore  # noqa: E402
from tests.utils.helpers import make_query_builder  # noqa: E402


@pytest.fixture
def query_builder():
    """Query builder returning no rows by default."""
    return make_query_builder(data=[], count=0)


@pytest.fixture
def mock_supabase_client(query_builder):
    """Mock Supabase client whose table() returns the query builder fixture."""
    client = MagicMock()
    client.table.return_value = query_builder
    return client


@pytest.fixture
def task_store():
    """Empty in-memory task store."""
    return InMemoryTaskStore()


@pytest.fixture
def task_api(task_store):
    """TaskAPI wired to the in-memory store, without rate limiting."""
    return TaskAPI(task_store)


@pytest.fixture
def fixed_now():
    """Monday 2024-12-09 12:00 UTC."""
    return datetime(2024, 12, 9, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_task_payload():
    """Valid create request body."""
    return {
        "title": "  Submit thesis draft  ",
        "status": "IN_PROGRESS",
        "priority": "high",
        "dueDate": "2024-12-15T17:00:00Z",
    }


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time
