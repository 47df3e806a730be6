"""Workout use cases. Every read or mutation of a single workout is
ownership-checked against the authenticated subject."""

import math
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from fitness_tracker_server.core.authorization import authorize_owned
from fitness_tracker_server.core.errors import AppError
from fitness_tracker_server.models.workout import Workout, WorkoutStatus
from fitness_tracker_server.repositories.exercises import ExerciseRepository
from fitness_tracker_server.repositories.workouts import WorkoutFilters, WorkoutRepository

logger = structlog.get_logger()

DEFAULT_PAGE_SIZE = 20

# Fields a caller may set on update
UPDATABLE_FIELDS = (
    "title",
    "description",
    "exercise_ids",
    "duration",
    "calories_burned",
    "date",
    "status",
    "notes",
)


def to_stored_date(value: datetime | None, now: datetime | None = None) -> datetime:
    """Normalize a workout date for storage.

    Aware datetimes are converted to UTC; the stored value is naive and is
    later bucketed as-is.
    """
    if value is None:
        value = now or datetime.now(UTC)
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value


class WorkoutService:
    """Create, list, read, update and delete the caller's workouts."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize workout service.

        Args:
            session: Database session
        """
        self.session = session
        self.workouts = WorkoutRepository(session)
        self.exercises = ExerciseRepository(session)
        self.logger = logger.bind(service="workouts")

    async def _ensure_exercises_exist(self, exercise_ids: list[str] | None) -> None:
        if not exercise_ids:
            return
        found = await self.exercises.count_active(exercise_ids)
        if found != len(set(exercise_ids)):
            raise AppError.not_found("One or more exercises not found")

    async def create(self, subject_id: str, data: dict[str, Any]) -> Workout:
        """Create a workout owned by the subject.

        Args:
            subject_id: Authenticated user id
            data: Validated workout fields

        Returns:
            The stored workout
        """
        await self._ensure_exercises_exist(data.get("exercise_ids"))

        workout = Workout(
            user_id=subject_id,
            title=data["title"],
            description=data.get("description") or "",
            exercise_ids=list(data.get("exercise_ids") or []),
            duration=data.get("duration") or 0,
            calories_burned=data.get("calories_burned") or 0,
            date=to_stored_date(data.get("date")),
            status=data.get("status") or WorkoutStatus.PLANNED.value,
            notes=data.get("notes") or "",
        )
        await self.workouts.save(workout)
        await self.session.commit()

        self.logger.info("Workout created", workout_id=workout.id, user_id=subject_id)
        return workout

    async def list_owned(
        self,
        subject_id: str,
        filters: WorkoutFilters,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> dict[str, Any]:
        """List the subject's workouts, newest first, with pagination info."""
        offset = (page - 1) * limit
        workouts = await self.workouts.find_owned(subject_id, filters, offset=offset, limit=limit)
        total = await self.workouts.count_owned(subject_id, filters)
        return {
            "workouts": [workout.to_dict() for workout in workouts],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit) if limit else 0,
            },
        }

    async def get(self, subject_id: str, workout_id: str) -> Workout:
        return await authorize_owned(
            subject_id, self.workouts.get, workout_id, resource_name="Workout", action="view"
        )

    async def update(self, subject_id: str, workout_id: str, changes: dict[str, Any]) -> Workout:
        """Apply validated changes to an owned workout.

        Raises:
            AppError: NOT_FOUND (missing workout or exercises) or FORBIDDEN
        """
        workout = await authorize_owned(
            subject_id, self.workouts.get, workout_id, resource_name="Workout", action="update"
        )
        if "exercise_ids" in changes:
            await self._ensure_exercises_exist(changes["exercise_ids"])

        for key in UPDATABLE_FIELDS:
            if key not in changes:
                continue
            value = changes[key]
            if key == "date":
                value = to_stored_date(value)
            setattr(workout, key, value)

        await self.workouts.save(workout)
        await self.session.commit()

        self.logger.info("Workout updated", workout_id=workout.id, user_id=subject_id)
        return workout

    async def delete(self, subject_id: str, workout_id: str) -> None:
        workout = await authorize_owned(
            subject_id, self.workouts.get, workout_id, resource_name="Workout", action="delete"
        )
        await self.workouts.delete(workout)
        await self.session.commit()

        self.logger.info("Workout deleted", workout_id=workout_id, user_id=subject_id)
