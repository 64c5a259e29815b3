"""
Task Management API: User SQLAlchemy Model
==========================================

What:  ORM model for accounts that can log in.
Who:   Read by the credential verifier; written only by the seeding routine.

Usernames are unique and compared case-sensitively. Inactive users exist
in the table but can never authenticate.
"""

from datetime import datetime

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from taskmanager.database import Base, UTCDateTime

ROLE_ADMIN = "Admin"
ROLE_USER = "User"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    # bcrypt digest; opaque to everything except the password hasher
    password_digest: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ROLE_USER)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"
