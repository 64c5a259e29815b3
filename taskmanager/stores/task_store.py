"""
Task Management API: Task Store
===============================

What:  Minimal CRUD facade over the `tasks` table used by TaskService.
How:   Each method is one unit of work from `Database.session()`:
       open session → statement → commit.

Operations:
    insert(task)                → TaskItem with its database-assigned id
    insert_many(tasks)          → None (seeding)
    find_by_id(id)              → TaskItem | None (never raises for absence)
    update_in_place(id, mutate) → TaskItem | None
    delete(id)                  → bool
    filter_by(*criteria)        → [TaskItem], newest created_at first
    list_all()                  → [TaskItem], newest created_at first

Concurrency:
    Units of work are serialized by the database's session lock and ids come
    from the table's autoincrement, so concurrent inserts never share an id.
    Primary-key lookups hit the table's primary index.
"""

import logging
from typing import Any, Callable, Iterable, List, Optional

from sqlalchemy import delete, desc, select

from taskmanager.database import Database
from taskmanager.models.task import TaskItem

logger = logging.getLogger(__name__)


class TaskStore:
    def __init__(self, database: Database):
        self._database = database

    async def insert(self, task: TaskItem) -> TaskItem:
        async with self._database.session() as session:
            session.add(task)
            await session.commit()
            logger.debug("Inserted task %s", task.id)
            return task

    async def insert_many(self, tasks: Iterable[TaskItem]) -> None:
        async with self._database.session() as session:
            session.add_all(list(tasks))
            await session.commit()

    async def find_by_id(self, task_id: int) -> Optional[TaskItem]:
        async with self._database.session() as session:
            return await session.get(TaskItem, task_id)

    async def update_in_place(
        self, task_id: int, mutate: Callable[[TaskItem], None]
    ) -> Optional[TaskItem]:
        """
        Load the task, apply `mutate` to it and commit.

        Returns None (and writes nothing) when the id is absent.
        """
        async with self._database.session() as session:
            task = await session.get(TaskItem, task_id)
            if task is None:
                return None
            mutate(task)
            await session.commit()
            return task

    async def delete(self, task_id: int) -> bool:
        async with self._database.session() as session:
            result = await session.execute(delete(TaskItem).where(TaskItem.id == task_id))
            await session.commit()
            return result.rowcount > 0

    async def filter_by(self, *criteria: Any) -> List[TaskItem]:
        """
        Return tasks matching every SQLAlchemy criterion, newest first.

        Ties on created_at (bulk inserts) fall back to id descending.
        """
        query = select(TaskItem)
        if criteria:
            query = query.where(*criteria)
        query = query.order_by(desc(TaskItem.created_at), desc(TaskItem.id))

        async with self._database.session() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def list_all(self) -> List[TaskItem]:
        return await self.filter_by()
