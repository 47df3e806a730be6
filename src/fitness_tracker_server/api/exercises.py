"""Exercise library endpoints."""

from typing import Any

from litestar import Request, Response, Router, get, post
from litestar.di import Provide
from litestar.status_codes import HTTP_201_CREATED
from sqlalchemy.ext.asyncio import AsyncSession

from fitness_tracker_server.api.responses import success
from fitness_tracker_server.core.auth import Subject, bearer_token_guard, provide_subject
from fitness_tracker_server.core.validation import (
    ensure_resource_id,
    query_to_dict,
    validate_request,
)
from fitness_tracker_server.schemas.requests import ExerciseCreateRequest, ExerciseSearchQuery
from fitness_tracker_server.services.exercises import ExerciseService

INVALID_EXERCISE_ID = "Invalid exercise ID"


@post("/", status_code=HTTP_201_CREATED)
async def create_exercise(
    session: AsyncSession, subject: Subject, data: dict[str, Any]
) -> Response[dict[str, Any]]:
    """Add an exercise to the shared library."""
    body = validate_request(ExerciseCreateRequest, data).cleaned()
    exercise = await ExerciseService(session).create(subject.id, body)
    return success(exercise.to_dict(), "Exercise created successfully", HTTP_201_CREATED)


@get("/")
async def search_exercises(
    request: Request[Any, Any, Any], session: AsyncSession
) -> Response[dict[str, Any]]:
    """Search the library.

    Query parameters: muscle_groups, equipment (repeatable), difficulty,
    search, page, limit.
    """
    query = validate_request(
        ExerciseSearchQuery, query_to_dict(request.query_params.multi_items())
    ).cleaned()
    return success(await ExerciseService(session).search(query))


@get("/{exercise_id:str}")
async def get_exercise(session: AsyncSession, exercise_id: str) -> Response[dict[str, Any]]:
    exercise_id = ensure_resource_id(exercise_id, INVALID_EXERCISE_ID)
    exercise = await ExerciseService(session).get(exercise_id)
    return success(exercise.to_dict())


exercises_router = Router(
    path="/exercises",
    route_handlers=[create_exercise, search_exercises, get_exercise],
    guards=[bearer_token_guard],
    dependencies={"subject": Provide(provide_subject, sync_to_thread=False)},
)
