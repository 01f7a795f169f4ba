"""Service layer for tasks."""

from __future__ import annotations

import datetime
import logging
from typing import Any

from bandsync.constants import TASKS_COLLECTION
from bandsync.core.collection import GroupCollection
from bandsync.core.types import Module
from bandsync.errors import NotFoundError
from bandsync.store.base import where

from .models import Task

logger = logging.getLogger(__name__)

_FAR_FUTURE = datetime.datetime.max.replace(tzinfo=datetime.timezone.utc)


def split_by_status(tasks: list[Task]) -> tuple[list[Task], list[Task]]:
    """Partition tasks into (pending, completed), keeping their order."""
    pending = [task for task in tasks if not task.completed]
    done = [task for task in tasks if task.completed]
    return pending, done


class TaskService(GroupCollection[Task]):
    """Tasks of a group, listed by due date."""

    collection = TASKS_COLLECTION
    module = Module.TASKS
    model = Task
    label = "Task"

    def sort(self, records: list[Task]) -> list[Task]:
        return sorted(records, key=lambda task: (task.due_date or _FAR_FUTURE, task.id))

    async def list_for_assignee(self, group_id: str, user_id: str) -> list[Task]:
        await self._permissions.check_access(group_id, self.module)
        tasks = await self._query(group_id, where("assignedTo", "==", user_id))
        return self.sort(tasks)

    async def set_completed(
        self, group_id: str, task_id: str, completed: bool = True
    ) -> Task:
        """Mark a task done or open again."""
        await self._check_write(group_id)

        def mutate(current: dict[str, Any]) -> dict[str, Any]:
            if current.get("groupId") != group_id:
                raise NotFoundError("Task not found.")
            task = Task.from_document(current)
            task.completed = completed
            return task.to_document()

        try:
            updated = await self._store.transactional_update(
                self.collection, task_id, mutate
            )
        except NotFoundError as e:
            raise NotFoundError("Task not found.") from e
        logger.info(f"Task {task_id} in group {group_id} completed={completed}")
        return Task.from_document(updated)
