"""Store collaborators used by the services."""

from fitness_tracker_server.repositories.exercises import ExerciseFilters, ExerciseRepository
from fitness_tracker_server.repositories.social import SocialRepository
from fitness_tracker_server.repositories.users import UserRepository
from fitness_tracker_server.repositories.workouts import WorkoutFilters, WorkoutRepository

__all__ = [
    "ExerciseFilters",
    "ExerciseRepository",
    "SocialRepository",
    "UserRepository",
    "WorkoutFilters",
    "WorkoutRepository",
]
