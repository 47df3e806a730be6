"""Exercise library model."""

from enum import Enum
from typing import Any

from sqlalchemy import JSON, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fitness_tracker_server.models.base import Base, TimestampMixin, generate_uuid

MUSCLE_GROUPS = ("Chest", "Back", "Arms", "Shoulders", "Legs", "Core", "Full Body")
EQUIPMENT = (
    "None",
    "Dumbbells",
    "Barbell",
    "Kettlebell",
    "Resistance Band",
    "Machine",
    "Bodyweight",
)


class Difficulty(str, Enum):
    """Exercise difficulty level."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class Exercise(Base, TimestampMixin):
    """An exercise in the shared library.

    Exercises are referenced by workouts. They are shared across users;
    ``created_by`` records the author but does not restrict reads.
    """

    __tablename__ = "exercises"
    __table_args__ = ({"comment": "Shared exercise library"},)

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, default="")
    muscle_groups: Mapped[list[str]] = mapped_column(JSON, default=list)
    equipment: Mapped[list[str]] = mapped_column(JSON, default=list)
    difficulty: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    # Media
    image_url: Mapped[str | None] = mapped_column(String(500))
    video_url: Mapped[str | None] = mapped_column(String(500))

    instructions: Mapped[list[str]] = mapped_column(JSON, default=list)
    tips: Mapped[list[str]] = mapped_column(JSON, default=list)

    created_by: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(default=True, index=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Exercise(name={self.name}, difficulty={self.difficulty})>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description or "",
            "muscle_groups": list(self.muscle_groups or []),
            "equipment": list(self.equipment or []),
            "difficulty": self.difficulty,
            "media": {"image_url": self.image_url, "video_url": self.video_url},
            "instructions": list(self.instructions or []),
            "tips": list(self.tips or []),
            "created_by": self.created_by,
        }
