"""User lookups for the credential verifier, plus inserts for seeding."""

from typing import Iterable, Optional

from sqlalchemy import func, select

from taskmanager.database import Database
from taskmanager.models.user import User


class UserStore:
    def __init__(self, database: Database):
        self._database = database

    async def find_active_by_username(self, username: str) -> Optional[User]:
        """Exact, case-sensitive username match restricted to active users."""
        query = select(User).where(User.username == username, User.is_active.is_(True))
        async with self._database.session() as session:
            result = await session.execute(query)
            return result.scalar_one_or_none()

    async def add_all(self, users: Iterable[User]) -> None:
        async with self._database.session() as session:
            session.add_all(list(users))
            await session.commit()

    async def count(self) -> int:
        async with self._database.session() as session:
            result = await session.execute(select(func.count(User.id)))
            return result.scalar() or 0
