"""
Task Management API: TaskItem SQLAlchemy Model
==============================================

What:  ORM model representing the `tasks` table.
Who:   Used by TaskStore for CRUD operations and by the seeding routine.

Table Design:
    - Integer primary key assigned by the database on insert (never reused
      within one database lifetime, immutable afterwards)
    - title / description lengths mirror the validation rules (100 / 500)
    - priority stored as its integer value (1-4)
    - created_at set once on insert; updated_at refreshed on every update

    Index on created_at DESC backs the newest-first listing every read
    endpoint uses.
"""

import enum
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import Boolean, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from taskmanager.database import Base, UTCDateTime
from taskmanager.exceptions import InvalidArgumentError


class TaskPriority(enum.IntEnum):
    """Task priority; serialized as its integer value."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @classmethod
    def parse(cls, raw: Union[str, int]) -> "TaskPriority":
        """
        Parse a priority from its name (case-insensitive) or its number.

        Raises:
            InvalidArgumentError: `raw` names no priority
        """
        text = str(raw).strip()
        if text.lstrip("-").isdigit():
            try:
                return cls(int(text))
            except ValueError:
                pass
        else:
            member = cls.__members__.get(text.upper())
            if member is not None:
                return member
        raise InvalidArgumentError(
            message=(
                f"'{raw}' is not a valid priority. "
                "Use Low (1), Medium (2), High (3) or Critical (4)"
            ),
            context={"priority": str(raw)},
        )

    @property
    def label(self) -> str:
        return self.name.capitalize()


class TaskItem(Base):
    """
    A unit of work tracked by the API.

    Lifecycle:
        1. Created via POST /tasks (id, created_at assigned; is_completed False)
        2. Overwritten via PUT /tasks/{id} (updated_at refreshed)
        3. Hard-deleted via DELETE /tasks/{id} (no tombstone)
    """

    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(100), nullable=False)

    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    priority: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=int(TaskPriority.MEDIUM),
        comment="1=Low, 2=Medium, 3=High, 4=Critical",
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    updated_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    due_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    __table_args__ = (
        Index("idx_tasks_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<TaskItem(id={self.id}, title='{self.title}', "
            f"priority={self.priority}, completed={self.is_completed})>"
        )
