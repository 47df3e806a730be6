"""Exercise library use cases."""

import math
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from fitness_tracker_server.core.errors import AppError
from fitness_tracker_server.models.exercise import Exercise
from fitness_tracker_server.repositories.exercises import ExerciseFilters, ExerciseRepository

logger = structlog.get_logger()


class ExerciseService:
    """Shared exercise library: create, search, read."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize exercise service.

        Args:
            session: Database session
        """
        self.session = session
        self.exercises = ExerciseRepository(session)
        self.logger = logger.bind(service="exercises")

    async def create(self, subject_id: str, data: dict[str, Any]) -> Exercise:
        """Add an exercise to the library.

        Raises:
            AppError: CONFLICT if an exercise with the same name exists
        """
        if await self.exercises.name_exists(data["name"]):
            raise AppError.conflict("Exercise name already exists")

        media = data.get("media") or {}
        exercise = Exercise(
            name=data["name"],
            description=data.get("description") or "",
            muscle_groups=list(data.get("muscle_groups") or []),
            equipment=list(data.get("equipment") or []),
            difficulty=data["difficulty"],
            image_url=media.get("image_url"),
            video_url=media.get("video_url"),
            instructions=list(data.get("instructions") or []),
            tips=list(data.get("tips") or []),
            created_by=subject_id,
            is_active=True,
        )
        await self.exercises.save(exercise)
        await self.session.commit()

        self.logger.info("Exercise created", exercise_id=exercise.id, user_id=subject_id)
        return exercise

    async def search(self, query: dict[str, Any]) -> dict[str, Any]:
        """Search active exercises with pagination."""
        page = query.get("page", 1)
        limit = query.get("limit", 20)
        filters = ExerciseFilters(
            muscle_groups=tuple(query.get("muscle_groups") or ()),
            equipment=tuple(query.get("equipment") or ()),
            difficulty=query.get("difficulty"),
            search=query.get("search") or None,
        )
        exercises, total = await self.exercises.search(
            filters, offset=(page - 1) * limit, limit=limit
        )
        return {
            "exercises": [exercise.to_dict() for exercise in exercises],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit),
            },
        }

    async def get(self, exercise_id: str) -> Exercise:
        exercise = await self.exercises.get(exercise_id)
        if exercise is None or not exercise.is_active:
            raise AppError.not_found("Exercise not found")
        return exercise
