"""Application services."""

from fitness_tracker_server.services.accounts import AccountService, AuthResult
from fitness_tracker_server.services.exercises import ExerciseService
from fitness_tracker_server.services.social import SocialService
from fitness_tracker_server.services.stats import WorkoutStatsService, compute_workout_stats
from fitness_tracker_server.services.workouts import WorkoutService

__all__ = [
    "AccountService",
    "AuthResult",
    "ExerciseService",
    "SocialService",
    "WorkoutService",
    "WorkoutStatsService",
    "compute_workout_stats",
]
