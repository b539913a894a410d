"""Supabase-backed task store."""

from datetime import datetime, timezone
from typing import Any, Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from ulid import ULID

from src.models.task import Task, TaskCreate, TaskQuery
from src.utils.config import AppConfig
from src.utils.errors import NotFoundError, PersistenceError
from src.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)


def create_supabase_client(url: Optional[str] = None, key: Optional[str] = None) -> Client:
    """Build a Supabase client from explicit credentials or the environment.

    Called once at process start; the client is handed to SupabaseTaskStore
    rather than cached here.
    """
    url = url or AppConfig.SUPABASE_URL
    key = key or AppConfig.SUPABASE_SERVICE_ROLE_KEY

    if not url or not key:
        raise PersistenceError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

    options = ClientOptions(
        auto_refresh_token=False,
        persist_session=False,
    )

    client = create_client(url, key, options)
    logger.info("Supabase client initialized", supabase_url=url)
    return client


def generate_task_id() -> str:
    """Generate a text-based task ID (ULID format)."""
    return str(ULID())


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SupabaseTaskStore:
    """Task persistence over a Supabase (PostgREST) table.

    Every method raises NotFoundError for a missing identifier and wraps any
    other client failure in PersistenceError.

    Methods are coroutines so services can await any store, but the sync
    supabase client blocks inside them: reads passed to asyncio.gather run
    back to back on the per-request event loop.
    """

    def __init__(self, client: Client, table: str = AppConfig.TASKS_TABLE):
        self.client = client
        self.table = table

    def _query(self):
        return self.client.table(self.table)

    @staticmethod
    def _apply_filters(builder, query: TaskQuery):
        """Add the AND-ed task filters; shared by reads and counts."""
        if query.status is not None:
            builder = builder.eq("status", query.status.value)
        if query.priority is not None:
            builder = builder.eq("priority", query.priority.value)
        if query.due_range is not None:
            due_range = query.due_range
            if due_range.start is not None:
                builder = builder.gte("due_date", due_range.start.isoformat())
            if due_range.end is not None:
                if due_range.end_inclusive:
                    builder = builder.lte("due_date", due_range.end.isoformat())
                else:
                    builder = builder.lt("due_date", due_range.end.isoformat())
        return builder

    @staticmethod
    def _first_row(result: Any) -> Optional[dict]:
        return result.data[0] if result.data and len(result.data) > 0 else None

    async def create_task(self, data: TaskCreate) -> Task:
        """Insert a task and return the stored record."""
        now = _utc_now_iso()
        row = data.to_row()
        row.update({"id": generate_task_id(), "created_at": now, "updated_at": now})

        with log_timing("tasks.insert", logger=logger, task_id=row["id"]):
            try:
                result = self._query().insert(row).execute()
            except Exception as e:
                raise PersistenceError("Failed to create task", details=str(e)) from e

        created = self._first_row(result)
        if created is None:
            raise PersistenceError("Failed to create task: no data returned")
        return Task.model_validate(created)

    async def get_task(self, task_id: str) -> Task:
        with log_timing("tasks.get", logger=logger, task_id=task_id):
            try:
                result = self._query().select("*").eq("id", task_id).execute()
            except Exception as e:
                raise PersistenceError("Failed to fetch task", details=str(e)) from e

        row = self._first_row(result)
        if row is None:
            raise NotFoundError("Task not found")
        return Task.model_validate(row)

    async def find_tasks(self, query: TaskQuery) -> list[Task]:
        """Read one page, ordered by due date (nulls last) then newest first."""
        builder = self._apply_filters(self._query().select("*"), query)
        builder = (
            builder.order("due_date")
            .order("created_at", desc=True)
            .range(query.offset, query.offset + query.limit - 1)
        )

        with log_timing("tasks.find", logger=logger, page=query.page, limit=query.limit):
            try:
                result = builder.execute()
            except Exception as e:
                raise PersistenceError("Failed to fetch tasks", details=str(e)) from e

        return [Task.model_validate(row) for row in (result.data or [])]

    async def count_tasks(self, query: TaskQuery) -> int:
        builder = self._apply_filters(self._query().select("id", count="exact", head=True), query)

        with log_timing("tasks.count", logger=logger):
            try:
                result = builder.execute()
            except Exception as e:
                raise PersistenceError("Failed to count tasks", details=str(e)) from e

        return result.count or 0

    async def update_task(self, task_id: str, changes: dict[str, Any]) -> Task:
        """Apply column changes to one task; raises NotFoundError if no row matched."""
        updates = dict(changes)
        updates["updated_at"] = _utc_now_iso()

        with log_timing("tasks.update", logger=logger, task_id=task_id, fields=sorted(changes)):
            try:
                result = self._query().update(updates).eq("id", task_id).execute()
            except Exception as e:
                raise PersistenceError("Failed to update task", details=str(e)) from e

        row = self._first_row(result)
        if row is None:
            raise NotFoundError("Task not found")
        return Task.model_validate(row)

    async def delete_task(self, task_id: str) -> None:
        with log_timing("tasks.delete", logger=logger, task_id=task_id):
            try:
                result = self._query().delete().eq("id", task_id).execute()
            except Exception as e:
                raise PersistenceError("Failed to delete task", details=str(e)) from e

        if not result.data:
            raise NotFoundError("Task not found")

    async def ping(self) -> None:
        """Round-trip to the database; raises PersistenceError if unreachable."""
        try:
            self._query().select("id").limit(1).execute()
        except Exception as e:
            raise PersistenceError("Database unreachable", details=str(e)) from e

    async def close(self) -> None:
        """Release the client.

        supabase-py has no explicit close; dropping the reference is enough.
        """
        self.client = None
        logger.info("Supabase task store closed")
