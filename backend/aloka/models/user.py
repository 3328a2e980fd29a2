"""
ALOKA Backend — User SQLAlchemy Model
======================================

What:  ORM model representing the `users` table.
Why:   Accounts behind the bearer credentials issued by /api/auth/*.
Who:   Used by AuthService for signup, login and identity resolution.

Roles:
    client        default for every signup; browses and books
    videographer  studio owner; the UI shows "Add Studio" for this role
    admin         operator account, only ever set directly in the database

The role is a plain string compared by the UI (and by the optional studio
write gate). There is no permission table.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from aloka.database import Base


ROLE_CLIENT = "client"
ROLE_VIDEOGRAPHER = "videographer"
ROLE_ADMIN = "admin"

# Roles a caller may pick for themselves at signup
SIGNUP_ROLES = {ROLE_CLIENT, ROLE_VIDEOGRAPHER}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """A marketplace account. Passwords are stored as bcrypt hashes only."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # Stored stripped and lower-cased so "A@x.io" and "a@x.io " collide
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)

    password_hash: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=ROLE_CLIENT,
        server_default=text("'client'"),
    )
    avatar: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
