"""Workout (activity record) model."""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fitness_tracker_server.models.base import Base, OwnedMixin, TimestampMixin, generate_uuid

MAX_DURATION_MINUTES = 1440
MAX_CALORIES = 10000


class WorkoutStatus(str, Enum):
    """Lifecycle status of a workout."""

    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Workout(Base, OwnedMixin, TimestampMixin):
    """A user's workout.

    ``date`` is stored as a naive wall-clock datetime and used as-is for
    daily bucketing. Only COMPLETED workouts count towards statistics.
    """

    __tablename__ = "workouts"
    __table_args__ = (
        Index("ix_workouts_user_date", "user_id", "date"),
        {"comment": "User workouts"},
    )

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    exercise_ids: Mapped[list[str]] = mapped_column(JSON, default=list)

    date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, index=True)
    duration: Mapped[int] = mapped_column(Integer, default=0, comment="Minutes, 0-1440")
    calories_burned: Mapped[int] = mapped_column(Integer, default=0, comment="kcal, 0-10000")

    status: Mapped[str] = mapped_column(
        String(20),
        default=WorkoutStatus.PLANNED.value,
        nullable=False,
        index=True,
    )
    notes: Mapped[str] = mapped_column(Text, default="")

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Workout(user_id={self.user_id}, title={self.title}, "
            f"date={self.date}, status={self.status})>"
        )

    @property
    def is_completed(self) -> bool:
        return self.status == WorkoutStatus.COMPLETED.value

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description or "",
            "exercise_ids": list(self.exercise_ids or []),
            "date": self.date.isoformat(),
            "duration": self.duration,
            "calories_burned": self.calories_burned,
            "status": self.status,
            "notes": self.notes or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
