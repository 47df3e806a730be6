"""Workout endpoints. All routes require a bearer token; single-workout
routes additionally require the caller to own the workout."""

from typing import Any

from litestar import Request, Response, Router, delete, get, post, put
from litestar.di import Provide
from litestar.status_codes import HTTP_200_OK, HTTP_201_CREATED
from sqlalchemy.ext.asyncio import AsyncSession

from fitness_tracker_server.api.responses import success
from fitness_tracker_server.core.auth import Subject, bearer_token_guard, provide_subject
from fitness_tracker_server.core.validation import (
    ensure_resource_id,
    parse_datetime,
    query_to_dict,
    validate_request,
)
from fitness_tracker_server.repositories.workouts import WorkoutFilters
from fitness_tracker_server.schemas.requests import (
    WorkoutCreateRequest,
    WorkoutListQuery,
    WorkoutUpdateRequest,
)
from fitness_tracker_server.services.stats import WorkoutStatsService
from fitness_tracker_server.services.workouts import WorkoutService, to_stored_date

INVALID_WORKOUT_ID = "Invalid workout ID"


def _query(request: Request[Any, Any, Any]) -> dict[str, Any]:
    return query_to_dict(request.query_params.multi_items())


@post("/", status_code=HTTP_201_CREATED)
async def create_workout(
    session: AsyncSession, subject: Subject, data: dict[str, Any]
) -> Response[dict[str, Any]]:
    """Create a workout for the caller.

    Example:
        POST /api/v1/workouts
        {"title": "Leg day", "duration": 45, "calories_burned": 400, "status": "completed"}
    """
    body = validate_request(WorkoutCreateRequest, data).cleaned()
    workout = await WorkoutService(session).create(subject.id, body)
    return success(workout.to_dict(), "Workout created successfully", HTTP_201_CREATED)


@get("/")
async def list_workouts(
    request: Request[Any, Any, Any], session: AsyncSession, subject: Subject
) -> Response[dict[str, Any]]:
    """List the caller's workouts, newest first.

    Query parameters: start_date, end_date, status, page, limit.
    """
    query = validate_request(WorkoutListQuery, _query(request))
    filters = WorkoutFilters(
        start_date=to_stored_date(query.start_date) if query.start_date else None,
        end_date=to_stored_date(query.end_date) if query.end_date else None,
        status=query.status,
    )
    result = await WorkoutService(session).list_owned(
        subject.id, filters, page=query.page, limit=query.limit
    )
    return success(result)


@get("/stats")
async def workout_stats(
    request: Request[Any, Any, Any], session: AsyncSession, subject: Subject
) -> Response[dict[str, Any]]:
    """Daily statistics over the caller's completed workouts.

    A missing or unparseable start_date/end_date leaves that side unbounded.

    Example:
        GET /api/v1/workouts/stats?start_date=2024-01-01&end_date=2024-01-31
    """
    query = _query(request)
    stats = await WorkoutStatsService(session).get_stats(
        subject.id,
        start=parse_datetime(query.get("start_date")),
        end=parse_datetime(query.get("end_date")),
    )
    return success(stats.model_dump(mode="json"))


@get("/{workout_id:str}")
async def get_workout(
    session: AsyncSession, subject: Subject, workout_id: str
) -> Response[dict[str, Any]]:
    workout_id = ensure_resource_id(workout_id, INVALID_WORKOUT_ID)
    workout = await WorkoutService(session).get(subject.id, workout_id)
    return success(workout.to_dict())


@put("/{workout_id:str}")
async def update_workout(
    session: AsyncSession, subject: Subject, workout_id: str, data: dict[str, Any]
) -> Response[dict[str, Any]]:
    """Update an owned workout. Only the fields present are changed."""
    workout_id = ensure_resource_id(workout_id, INVALID_WORKOUT_ID)
    changes = validate_request(WorkoutUpdateRequest, data).cleaned()
    workout = await WorkoutService(session).update(subject.id, workout_id, changes)
    return success(workout.to_dict(), "Workout updated successfully")


@delete("/{workout_id:str}", status_code=HTTP_200_OK)
async def delete_workout(
    session: AsyncSession, subject: Subject, workout_id: str
) -> Response[dict[str, Any]]:
    workout_id = ensure_resource_id(workout_id, INVALID_WORKOUT_ID)
    await WorkoutService(session).delete(subject.id, workout_id)
    return success(message="Workout deleted successfully")


workouts_router = Router(
    path="/workouts",
    route_handlers=[
        create_workout,
        list_workouts,
        workout_stats,
        get_workout,
        update_workout,
        delete_workout,
    ],
    guards=[bearer_token_guard],
    dependencies={"subject": Provide(provide_subject, sync_to_thread=False)},
)
