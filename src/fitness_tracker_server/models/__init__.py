"""Database models."""

from fitness_tracker_server.models.base import Base
from fitness_tracker_server.models.exercise import Exercise
from fitness_tracker_server.models.social import (
    Challenge,
    ChallengeParticipant,
    Comment,
    Post,
    PostLike,
)
from fitness_tracker_server.models.user import User
from fitness_tracker_server.models.workout import Workout, WorkoutStatus

__all__ = [
    "Base",
    "Challenge",
    "ChallengeParticipant",
    "Comment",
    "Exercise",
    "Post",
    "PostLike",
    "User",
    "Workout",
    "WorkoutStatus",
]
