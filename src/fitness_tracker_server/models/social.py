"""Social models: posts, comments, likes and challenges."""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fitness_tracker_server.models.base import Base, OwnedMixin, TimestampMixin, generate_uuid


class ChallengeStatus(str, Enum):
    """Lifecycle status of a challenge."""

    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Post(Base, OwnedMixin, TimestampMixin):
    """A post in the community feed, optionally linked to a workout."""

    __tablename__ = "posts"
    __table_args__ = (Index("ix_posts_active_created", "is_active", "created_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    workout_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("workouts.id", ondelete="SET NULL"),
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(default=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Post(id={self.id}, user_id={self.user_id})>"

    def to_dict(self, likes_count: int = 0) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "content": self.content,
            "workout_id": self.workout_id,
            "likes_count": likes_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class PostLike(Base):
    """One user's like on one post."""

    __tablename__ = "post_likes"

    post_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )


class Comment(Base, OwnedMixin, TimestampMixin):
    """A comment on a post."""

    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    post_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "post_id": self.post_id,
            "user_id": self.user_id,
            "content": self.content,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Challenge(Base, TimestampMixin):
    """A shared fitness challenge users can join."""

    __tablename__ = "challenges"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    created_by: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=ChallengeStatus.UPCOMING.value, index=True
    )
    is_active: Mapped[bool] = mapped_column(default=True, index=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Challenge(title={self.title}, status={self.status})>"

    def to_dict(self, participants: list[str] | None = None) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description or "",
            "created_by": self.created_by,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "status": self.status,
            "participants": participants or [],
        }


class ChallengeParticipant(Base):
    """Membership of a user in a challenge. At most one row per pair."""

    __tablename__ = "challenge_participants"

    challenge_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("challenges.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
