"""Exercise library queries."""

from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitness_tracker_server.models.exercise import Exercise


@dataclass(frozen=True)
class ExerciseFilters:
    """Search filters. Empty lists / None mean any."""

    muscle_groups: tuple[str, ...] = ()
    equipment: tuple[str, ...] = ()
    difficulty: str | None = None
    search: str | None = None


class ExerciseRepository:
    """Queries and persists library exercises."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository.

        Args:
            session: Database session
        """
        self.session = session

    async def get(self, exercise_id: str) -> Exercise | None:
        return await self.session.get(Exercise, exercise_id)

    async def name_exists(self, name: str) -> bool:
        result = await self.session.execute(
            select(func.count(Exercise.id)).where(func.lower(Exercise.name) == name.lower())
        )
        return (result.scalar() or 0) > 0

    async def count_active(self, exercise_ids: Sequence[str]) -> int:
        """Count how many of the given ids are active exercises."""
        if not exercise_ids:
            return 0
        result = await self.session.execute(
            select(func.count(Exercise.id)).where(
                Exercise.id.in_(set(exercise_ids)),
                Exercise.is_active.is_(True),
            )
        )
        return result.scalar() or 0

    def _search_query(self, filters: ExerciseFilters) -> Select[tuple[Exercise]]:
        stmt = select(Exercise).where(Exercise.is_active.is_(True))
        if filters.difficulty:
            stmt = stmt.where(Exercise.difficulty == filters.difficulty)
        if filters.search:
            pattern = f"%{filters.search.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Exercise.name).like(pattern),
                    func.lower(Exercise.description).like(pattern),
                )
            )
        return stmt

    async def search(
        self, filters: ExerciseFilters, *, offset: int = 0, limit: int = 20
    ) -> tuple[list[Exercise], int]:
        """Find active exercises matching the filters, sorted by name.

        Muscle group and equipment filters match when the exercise lists any
        of the requested values. They are applied after loading because the
        lists are stored as JSON.

        Returns:
            Tuple of (page of exercises, total matches)
        """
        result = await self.session.execute(
            self._search_query(filters).order_by(Exercise.name.asc())
        )
        matches = [
            exercise
            for exercise in result.scalars().all()
            if _overlaps(exercise.muscle_groups, filters.muscle_groups)
            and _overlaps(exercise.equipment, filters.equipment)
        ]
        return matches[offset : offset + limit], len(matches)

    async def save(self, exercise: Exercise) -> Exercise:
        self.session.add(exercise)
        await self.session.flush()
        return exercise


def _overlaps(values: list[str] | None, wanted: tuple[str, ...]) -> bool:
    if not wanted:
        return True
    return any(value in wanted for value in values or [])
