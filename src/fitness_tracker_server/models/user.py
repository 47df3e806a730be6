"""User identity model."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fitness_tracker_server.models.base import Base, TimestampMixin, generate_uuid


class User(Base, TimestampMixin):
    """A registered user.

    The password is stored only as a one-way digest and is never part of
    any serialized representation (see ``to_public_dict``). Users are never
    physically deleted; deactivation flips ``is_active``.
    """

    __tablename__ = "users"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )

    # Credentials
    username: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Profile
    name: Mapped[str] = mapped_column(String(100), default="")
    age: Mapped[int | None] = mapped_column(Integer)
    bio: Mapped[str] = mapped_column(Text, default="")
    avatar: Mapped[str] = mapped_column(String(500), default="")
    fitness_goals: Mapped[list[str]] = mapped_column(JSON, default=list)

    # Account status
    is_active: Mapped[bool] = mapped_column(default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    def __repr__(self) -> str:
        """String representation."""
        return f"<User(username={self.username}, is_active={self.is_active})>"

    def profile_dict(self) -> dict[str, Any]:
        return {
            "name": self.name or "",
            "age": self.age,
            "bio": self.bio or "",
            "avatar": self.avatar or "",
            "fitness_goals": list(self.fitness_goals or []),
        }

    def to_public_dict(self) -> dict[str, Any]:
        """Serialize for API responses. Never includes the password digest."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "profile": self.profile_dict(),
            "last_login_at": self.last_login_at.isoformat() if self.last_login_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
