"""Workout statistics aggregation.

Only completed workouts owned by the subject are counted. Each workout
falls into the bucket of its stored ``date`` truncated to the day, with no
timezone conversion. Buckets come out in ascending date order and days
without completed workouts are simply absent. Totals are a second pass
over the emitted buckets, so they always equal the sum of the buckets.
"""

from collections.abc import Iterable
from datetime import UTC, date, datetime
from typing import Protocol

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from fitness_tracker_server.models.workout import WorkoutStatus
from fitness_tracker_server.repositories.workouts import WorkoutFilters, WorkoutRepository
from fitness_tracker_server.schemas.stats import DailyStat, StatsTotals, WorkoutStats

logger = structlog.get_logger()


class ActivityRecord(Protocol):
    """The workout fields the aggregation reads."""

    user_id: str
    date: datetime
    duration: int
    calories_burned: int
    status: str


def compute_workout_stats(
    records: Iterable[ActivityRecord], subject_id: str | None = None
) -> WorkoutStats:
    """Aggregate workouts into daily buckets and totals.

    Args:
        records: Workouts to aggregate (any status, any owner)
        subject_id: If given, records owned by anyone else are ignored

    Returns:
        WorkoutStats with ascending daily buckets and totals
    """
    buckets: dict[date, list[int]] = {}
    for record in records:
        if record.status != WorkoutStatus.COMPLETED.value:
            continue
        if subject_id is not None and str(record.user_id) != str(subject_id):
            continue
        day = record.date.date()
        bucket = buckets.setdefault(day, [0, 0, 0])
        bucket[0] += int(record.duration or 0)
        bucket[1] += int(record.calories_burned or 0)
        bucket[2] += 1

    daily_stats = [
        DailyStat(
            date=day,
            total_duration=duration,
            total_calories=calories,
            workout_count=count,
        )
        for day, (duration, calories, count) in sorted(buckets.items())
    ]

    total_duration = sum(stat.total_duration for stat in daily_stats)
    total_calories = sum(stat.total_calories for stat in daily_stats)
    total_workouts = sum(stat.workout_count for stat in daily_stats)

    return WorkoutStats(
        daily_stats=daily_stats,
        totals=StatsTotals(
            total_duration=total_duration,
            total_calories=total_calories,
            total_workouts=total_workouts,
            avg_duration=round(total_duration / total_workouts, 2) if total_workouts else 0.0,
            avg_calories=round(total_calories / total_workouts, 2) if total_workouts else 0.0,
        ),
    )


class WorkoutStatsService:
    """Loads a subject's completed workouts and aggregates them."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize stats service.

        Args:
            session: Database session
        """
        self.workouts = WorkoutRepository(session)
        self.logger = logger.bind(service="stats")

    async def get_stats(
        self,
        subject_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> WorkoutStats:
        """Statistics for the subject's completed workouts.

        Args:
            subject_id: Authenticated user id
            start: Inclusive lower bound on the stored date (None = unbounded)
            end: Inclusive upper bound on the stored date (None = unbounded)

        Returns:
            WorkoutStats
        """
        filters = WorkoutFilters(
            start_date=_naive(start),
            end_date=_naive(end),
            status=WorkoutStatus.COMPLETED.value,
        )
        records = await self.workouts.find_owned(subject_id, filters)
        stats = compute_workout_stats(records, subject_id=subject_id)

        self.logger.debug(
            "Computed workout stats",
            user_id=subject_id,
            buckets=len(stats.daily_stats),
            total_workouts=stats.totals.total_workouts,
        )
        return stats


def _naive(value: datetime | None) -> datetime | None:
    # Stored dates are naive UTC
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)
