"""Request validation schemas and response models."""

from fitness_tracker_server.schemas.stats import DailyStat, StatsTotals, WorkoutStats

__all__ = [
    "DailyStat",
    "StatsTotals",
    "WorkoutStats",
]
