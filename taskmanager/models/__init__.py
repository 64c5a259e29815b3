"""ORM models. Importing this package registers every table on `Base.metadata`."""

from taskmanager.models.task import TaskItem, TaskPriority
from taskmanager.models.user import User

__all__ = ["TaskItem", "TaskPriority", "User"]
