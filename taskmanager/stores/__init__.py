"""
Persistence adapters.

Stores are the only code that opens database sessions. Each operation is one
short unit of work (session → statement → commit) so callers never hold a
session across an await boundary they do not control.
"""

from taskmanager.stores.task_store import TaskStore
from taskmanager.stores.user_store import UserStore

__all__ = ["TaskStore", "UserStore"]
