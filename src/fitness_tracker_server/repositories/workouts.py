"""Activity store backed by the workouts table."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitness_tracker_server.models.workout import Workout


@dataclass(frozen=True)
class WorkoutFilters:
    """Filters for owned-workout queries. None means unbounded / any."""

    start_date: datetime | None = None
    end_date: datetime | None = None
    status: str | None = None


class WorkoutRepository:
    """Queries and persists workouts."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository.

        Args:
            session: Database session
        """
        self.session = session

    def _owned_query(self, subject_id: str, filters: WorkoutFilters) -> Select[tuple[Workout]]:
        stmt = select(Workout).where(Workout.user_id == subject_id)
        if filters.start_date is not None:
            stmt = stmt.where(Workout.date >= filters.start_date)
        if filters.end_date is not None:
            stmt = stmt.where(Workout.date <= filters.end_date)
        if filters.status is not None:
            stmt = stmt.where(Workout.status == filters.status)
        return stmt

    async def find_owned(
        self,
        subject_id: str,
        filters: WorkoutFilters | None = None,
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> Sequence[Workout]:
        """Find workouts owned by a user, newest first.

        Args:
            subject_id: Owner id
            filters: Date range / status filters
            offset: Rows to skip
            limit: Maximum rows (None for all)

        Returns:
            Matching workouts
        """
        stmt = self._owned_query(subject_id, filters or WorkoutFilters()).order_by(
            Workout.date.desc()
        )
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def count_owned(self, subject_id: str, filters: WorkoutFilters | None = None) -> int:
        stmt = self._owned_query(subject_id, filters or WorkoutFilters()).with_only_columns(
            func.count(Workout.id)
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def get(self, workout_id: str) -> Workout | None:
        """Raw find-by-id, with no ownership check."""
        return await self.session.get(Workout, workout_id)

    async def save(self, workout: Workout) -> Workout:
        self.session.add(workout)
        await self.session.flush()
        return workout

    async def delete(self, workout: Workout) -> None:
        await self.session.delete(workout)
        await self.session.flush()
