"""
Task Management API: Task Service (Business Logic)
==================================================

What:  Maps validated create/update payloads onto stored tasks and returns
       read-only TaskView projections.
How:   Delegates persistence to TaskStore; stamps timestamps; never raises
       for absence (returns None / False instead).
Who:   Called by the /tasks route handlers after validation.

Operations:
    list_all()                  → [TaskView] newest first
    get_by_id(id)               → TaskView | None
    create(payload)             → TaskView (is_completed=False, created_at=now)
    update(id, payload)         → TaskView | None (updated_at=now)
    delete(id)                  → bool
    list_by_completion(flag)    → [TaskView] newest first
    list_by_priority(priority)  → [TaskView] newest first

Telemetry for create/complete/delete is emitted by the endpoints, which know
the acting user.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

from taskmanager.models.task import TaskItem, TaskPriority
from taskmanager.schemas.task import CreateTaskRequest, TaskView, UpdateTaskRequest
from taskmanager.stores.task_store import TaskStore

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_view(task: TaskItem) -> TaskView:
    return TaskView.model_validate(task)


@dataclass(frozen=True)
class UpdateOutcome:
    """Updated view plus the completion flag it replaced."""

    view: TaskView
    was_completed: bool

    @property
    def just_completed(self) -> bool:
        return self.view.is_completed and not self.was_completed


class TaskService:
    """
    Stateless apart from its collaborators; one instance per application.

    Args:
        store: persistence adapter
        clock: source of "now" for created_at / updated_at stamps
    """

    def __init__(self, store: TaskStore, clock: Callable[[], datetime] = utc_now):
        self._store = store
        self._clock = clock

    async def list_all(self) -> List[TaskView]:
        return [to_view(t) for t in await self._store.list_all()]

    async def get_by_id(self, task_id: int) -> Optional[TaskView]:
        task = await self._store.find_by_id(task_id)
        return to_view(task) if task is not None else None

    async def create(self, payload: CreateTaskRequest) -> TaskView:
        task = TaskItem(
            title=payload.title,
            description=payload.description,
            priority=int(payload.priority),
            due_date=payload.due_date,
            is_completed=False,
            created_at=self._clock(),
        )
        task = await self._store.insert(task)
        logger.info("Task created with ID: %s", task.id)
        return to_view(task)

    async def update(self, task_id: int, payload: UpdateTaskRequest) -> Optional[TaskView]:
        outcome = await self.update_with_outcome(task_id, payload)
        return outcome.view if outcome is not None else None

    async def update_with_outcome(
        self, task_id: int, payload: UpdateTaskRequest
    ) -> Optional[UpdateOutcome]:
        """Same as `update`, also reporting whether the task was already completed."""
        previous = {}

        def apply(task: TaskItem) -> None:
            previous["completed"] = task.is_completed
            task.title = payload.title
            task.description = payload.description
            task.is_completed = payload.is_completed
            task.priority = int(payload.priority)
            task.due_date = payload.due_date
            task.updated_at = self._clock()

        task = await self._store.update_in_place(task_id, apply)
        if task is None:
            return None
        logger.info("Task with ID %s updated successfully", task_id)
        return UpdateOutcome(view=to_view(task), was_completed=previous["completed"])

    async def delete(self, task_id: int) -> bool:
        deleted = await self._store.delete(task_id)
        if deleted:
            logger.info("Task with ID %s deleted", task_id)
        return deleted

    async def list_by_completion(self, is_completed: bool) -> List[TaskView]:
        tasks = await self._store.filter_by(TaskItem.is_completed.is_(is_completed))
        return [to_view(t) for t in tasks]

    async def list_by_priority(self, priority: TaskPriority) -> List[TaskView]:
        tasks = await self._store.filter_by(TaskItem.priority == int(priority))
        return [to_view(t) for t in tasks]
