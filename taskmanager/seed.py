"""
Task Management API: Demo Data Seeding
======================================

What:  Populates an empty database with two demo accounts and four sample
       tasks so the API is usable straight after startup.
When:  Called from the application lifespan when `seed_demo_data` is true.
       Does nothing if any user already exists.

Demo accounts:
    admin / Admin123!   role Admin
    user  / User123!    role User
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List

from starlette.concurrency import run_in_threadpool

from taskmanager.models.task import TaskItem, TaskPriority
from taskmanager.models.user import ROLE_ADMIN, ROLE_USER, User
from taskmanager.services.passwords import hash_password
from taskmanager.stores.task_store import TaskStore
from taskmanager.stores.user_store import UserStore

logger = logging.getLogger(__name__)

DEMO_USERS: Dict[str, Dict[str, str]] = {
    "admin": {"username": "admin", "password": "Admin123!", "role": ROLE_ADMIN},
    "user": {"username": "user", "password": "User123!", "role": ROLE_USER},
}


def _demo_tasks(now: datetime) -> List[TaskItem]:
    def days(n: float) -> datetime:
        return now + timedelta(days=n)

    return [
        TaskItem(
            title="Complete project setup",
            description="Set up the basic structure for the task management API",
            priority=int(TaskPriority.HIGH),
            is_completed=True,
            created_at=days(-5),
            updated_at=days(-4),
        ),
        TaskItem(
            title="Implement CRUD operations",
            description="Add Create, Read, Update, and Delete functionality",
            priority=int(TaskPriority.CRITICAL),
            is_completed=False,
            created_at=days(-3),
            due_date=days(2),
        ),
        TaskItem(
            title="Add unit tests",
            description="Write comprehensive unit tests for all API endpoints",
            priority=int(TaskPriority.MEDIUM),
            is_completed=False,
            created_at=days(-2),
            due_date=days(7),
        ),
        TaskItem(
            title="Document API endpoints",
            description="Create detailed documentation for all available endpoints",
            priority=int(TaskPriority.LOW),
            is_completed=False,
            created_at=days(-1),
            due_date=days(10),
        ),
    ]


async def seed_demo_data(
    users: UserStore,
    tasks: TaskStore,
    bcrypt_rounds: int = 12,
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> bool:
    """Seed demo users and tasks into an empty database. Returns True if it seeded."""
    if await users.count() > 0:
        logger.info("Users already present; skipping demo data")
        return False

    now = clock()
    accounts = []
    for offset, account in zip((10, 5), DEMO_USERS.values()):
        digest = await run_in_threadpool(hash_password, account["password"], bcrypt_rounds)
        accounts.append(
            User(
                username=account["username"],
                password_digest=digest,
                role=account["role"],
                created_at=now - timedelta(days=offset),
                is_active=True,
            )
        )
    await users.add_all(accounts)
    sample_tasks = _demo_tasks(now)
    await tasks.insert_many(sample_tasks)

    logger.info("Seeded %d demo users and %d demo tasks", len(accounts), len(sample_tasks))
    return True
