"""Task create, update and delete."""

from typing import Any

from src.models.task import Task, TaskCreate, TaskUpdate
from src.services.task_validation import INVALID_TYPE
from src.utils.errors import ValidationError
from src.utils.logging import get_structured_logger, sanitize_message_text

logger = get_structured_logger(__name__)


def validate_task_id(task_id: Any) -> str:
    if not isinstance(task_id, str) or not task_id.strip():
        raise ValidationError("Invalid task ID", kind=INVALID_TYPE, field="id")
    return task_id.strip()


class TaskMutationService:
    """Write side of the task API.

    NotFoundError and PersistenceError raised by the store propagate
    unchanged to the caller.
    """

    def __init__(self, store):
        self.store = store

    async def create_task(self, data: TaskCreate) -> Task:
        task = await self.store.create_task(data)
        logger.info(
            "Task created",
            task_id=task.id,
            title=sanitize_message_text(task.title),
            status=task.status.value,
            priority=task.priority.value,
        )
        return task

    async def update_task(self, task_id: Any, data: TaskUpdate) -> Task:
        """Apply only the fields present in ``data``.

        An update with no fields reads the task back so unknown identifiers
        still raise NotFoundError.
        """
        task_id = validate_task_id(task_id)
        if data.is_empty:
            return await self.store.get_task(task_id)

        changes = data.changes()
        task = await self.store.update_task(task_id, changes)
        logger.info("Task updated", task_id=task_id, fields=sorted(changes))
        return task

    async def delete_task(self, task_id: Any) -> None:
        task_id = validate_task_id(task_id)
        await self.store.delete_task(task_id)
        logger.info("Task deleted", task_id=task_id)
