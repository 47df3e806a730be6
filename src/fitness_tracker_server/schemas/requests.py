"""Request body and query string models.

Strings are trimmed before their length is checked; list-valued fields accept
a single value or a list (repeated keys in a query string).
"""

import re
from datetime import datetime
from typing import Annotated, Any

from pydantic import Field, StringConstraints, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from fitness_tracker_server.core.validation import (
    RULE_ERROR,
    ListOf,
    RequestModel,
    ResourceId,
    WebUrl,
    one_of,
    rule,
    wall_clock,
)
from fitness_tracker_server.models.exercise import EQUIPMENT, MUSCLE_GROUPS, Difficulty
from fitness_tracker_server.models.social import ChallengeStatus
from fitness_tracker_server.models.workout import MAX_CALORIES, MAX_DURATION_MINUTES, WorkoutStatus

MAX_FITNESS_GOALS = 10
MAX_PAGE = 10_000
MAX_PAGE_SIZE = 100

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")
EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

STATUS_MESSAGE = "Status must be one of: " + ", ".join(status.value for status in WorkoutStatus)
DURATION_MESSAGE = f"Duration must be between 0 and {MAX_DURATION_MINUTES} minutes"
CALORIES_MESSAGE = f"Calories burned must be between 0 and {MAX_CALORIES}"
TITLE_MESSAGE = "Title must be between 3 and 100 characters"
DESCRIPTION_MESSAGE = "Description must be less than 500 characters"
NOTES_MESSAGE = "Notes must be less than 1000 characters"
DATE_MESSAGE = "Date must be a valid ISO 8601 date"
START_DATE_MESSAGE = "Start date must be a valid ISO 8601 date"
END_DATE_MESSAGE = "End date must be a valid ISO 8601 date"
EXERCISE_IDS_MESSAGE = "All exercise IDs must be valid IDs"
PAGE_MESSAGE = f"Page must be an integer between 1 and {MAX_PAGE}"
LIMIT_MESSAGE = f"Limit must be between 1 and {MAX_PAGE_SIZE}"


def _text(min_length: int = 0, max_length: int | None = None) -> StringConstraints:
    return StringConstraints(strip_whitespace=True, min_length=min_length, max_length=max_length)


Title = Annotated[str, _text(3, 100)]
Description = Annotated[str, _text(0, 500)]


class PageQuery(RequestModel):
    """Pagination shared by list and search endpoints."""

    field_messages = {"page": PAGE_MESSAGE, "limit": LIMIT_MESSAGE}

    page: int = Field(default=1, ge=1, le=MAX_PAGE)
    limit: int = Field(default=20, ge=1, le=MAX_PAGE_SIZE)


# ==============================================================================
# Accounts
# ==============================================================================


class RegisterRequest(RequestModel):
    """Request body for registration."""

    field_messages = {
        "username": "Username must be between 3 and 30 characters",
        "email": "Please provide a valid email address",
        "password": "Password must be at least 8 characters long",
    }

    username: Annotated[
        str,
        _text(3, 30),
        rule(
            lambda name: USERNAME_PATTERN.match(name) is not None,
            "Username can only contain letters, numbers, and underscores",
        ),
    ]
    email: Annotated[
        str, StringConstraints(strip_whitespace=True, to_lower=True, pattern=EMAIL_PATTERN)
    ]
    password: Annotated[
        str,
        StringConstraints(min_length=8),
        rule(
            lambda password: PASSWORD_PATTERN.match(password) is not None,
            "Password must contain at least one uppercase letter, one lowercase letter, "
            "and one number",
        ),
    ]


class LoginRequest(RequestModel):
    """Request body for login. ``username`` may also be an email address."""

    field_messages = {"username": "Username is required", "password": "Password is required"}

    username: Annotated[str, _text(1)]
    password: Annotated[str, StringConstraints(min_length=1)]


class RefreshRequest(RequestModel):
    field_messages = {"refresh_token": "Refresh token is required"}

    refresh_token: Annotated[str, _text(1)]


class ProfileUpdateRequest(RequestModel):
    """Request body for profile updates; every field is optional."""

    field_messages = {
        "name": "Name must be less than 100 characters",
        "age": "Age must be between 0 and 150",
        "bio": "Bio must be less than 500 characters",
        "avatar": "Avatar must be a valid URL",
        "fitness_goals": "Invalid fitness goal",
    }

    name: Annotated[str, _text(0, 100)] | None = None
    age: Annotated[int, Field(ge=0, le=150)] | None = None
    bio: Annotated[str, _text(0, 500)] | None = None
    avatar: WebUrl | None = None
    fitness_goals: (
        Annotated[
            list[Annotated[str, _text(1, 100)]],
            ListOf,
            rule(
                lambda goals: len(goals) <= MAX_FITNESS_GOALS,
                f"At most {MAX_FITNESS_GOALS} fitness goals are allowed",
            ),
        ]
        | None
    ) = None


# ==============================================================================
# Workouts
# ==============================================================================

WORKOUT_MESSAGES = {
    "title": TITLE_MESSAGE,
    "description": DESCRIPTION_MESSAGE,
    "exercise_ids": EXERCISE_IDS_MESSAGE,
    "duration": DURATION_MESSAGE,
    "calories_burned": CALORIES_MESSAGE,
    "date": DATE_MESSAGE,
    "status": STATUS_MESSAGE,
    "notes": NOTES_MESSAGE,
}


class WorkoutCreateRequest(RequestModel):
    """Request body for a new workout."""

    field_messages = WORKOUT_MESSAGES

    title: Title
    description: Description | None = None
    exercise_ids: Annotated[list[ResourceId], ListOf] = Field(default_factory=list)
    duration: Annotated[int, Field(ge=0, le=MAX_DURATION_MINUTES)] | None = None
    calories_burned: Annotated[int, Field(ge=0, le=MAX_CALORIES)] | None = None
    date: datetime | None = None
    status: WorkoutStatus | None = None
    notes: Annotated[str, _text(0, 1000)] | None = None


class WorkoutUpdateRequest(RequestModel):
    """Request body for a workout update; only the fields given change."""

    field_messages = WORKOUT_MESSAGES

    title: Title | None = None
    description: Description | None = None
    exercise_ids: (
        Annotated[
            list[ResourceId],
            ListOf,
            rule(lambda ids: len(ids) > 0, "Exercises array must contain at least one exercise"),
        ]
        | None
    ) = None
    duration: Annotated[int, Field(ge=0, le=MAX_DURATION_MINUTES)] | None = None
    calories_burned: Annotated[int, Field(ge=0, le=MAX_CALORIES)] | None = None
    date: datetime | None = None
    status: WorkoutStatus | None = None
    notes: Annotated[str, _text(0, 1000)] | None = None


class WorkoutListQuery(PageQuery):
    field_messages = {
        **PageQuery.field_messages,
        "start_date": START_DATE_MESSAGE,
        "end_date": END_DATE_MESSAGE,
        "status": STATUS_MESSAGE,
    }

    start_date: datetime | None = None
    end_date: datetime | None = None
    status: WorkoutStatus | None = None


# ==============================================================================
# Exercises
# ==============================================================================

MuscleGroup = Annotated[str, one_of(MUSCLE_GROUPS, "Invalid muscle group")]
Equipment = Annotated[str, one_of(EQUIPMENT, "Invalid equipment type")]


class ExerciseMedia(RequestModel):
    image_url: WebUrl | None = None
    video_url: WebUrl | None = None


class ExerciseCreateRequest(RequestModel):
    """Request body for a new library exercise."""

    field_messages = {
        "name": "Exercise name must be between 3 and 100 characters",
        "description": DESCRIPTION_MESSAGE,
        "muscle_groups": "At least one muscle group is required",
        "equipment": "Invalid equipment type",
        "difficulty": "Difficulty must be Beginner, Intermediate, or Advanced",
        "media": "Media must be an object",
        "media.image_url": "Image URL must be a valid URL",
        "media.video_url": "Video URL must be a valid URL",
        "instructions": "Instructions must be a list of strings",
        "tips": "Tips must be a list of strings",
    }

    name: Annotated[str, _text(3, 100)]
    description: Description | None = None
    muscle_groups: Annotated[
        list[MuscleGroup],
        ListOf,
        rule(lambda groups: len(groups) > 0, "At least one muscle group is required"),
    ]
    equipment: Annotated[list[Equipment], ListOf] = Field(default_factory=list)
    difficulty: Difficulty
    media: ExerciseMedia | None = None
    instructions: Annotated[list[str], ListOf] = Field(default_factory=list)
    tips: Annotated[list[str], ListOf] = Field(default_factory=list)


class ExerciseSearchQuery(PageQuery):
    field_messages = {
        **PageQuery.field_messages,
        "muscle_groups": "Invalid muscle group",
        "equipment": "Invalid equipment type",
        "difficulty": "Invalid difficulty level",
        "search": "Search must be less than 100 characters",
    }

    muscle_groups: Annotated[list[MuscleGroup], ListOf] | None = None
    equipment: Annotated[list[Equipment], ListOf] | None = None
    difficulty: Difficulty | None = None
    search: Annotated[str, _text(0, 100)] | None = None


# ==============================================================================
# Social
# ==============================================================================


class PostCreateRequest(RequestModel):
    field_messages = {
        "content": "Post content must be between 1 and 1000 characters",
        "workout_id": "Invalid workout ID",
    }

    content: Annotated[str, _text(1, 1000)]
    workout_id: ResourceId | None = None


class CommentCreateRequest(RequestModel):
    field_messages = {
        "post_id": "Invalid post ID",
        "content": "Comment content must be between 1 and 500 characters",
    }

    post_id: ResourceId
    content: Annotated[str, _text(1, 500)]


class CommentListQuery(RequestModel):
    field_messages = {"post_id": "Invalid post ID"}

    post_id: ResourceId


class ChallengeCreateRequest(RequestModel):
    """Request body for a new challenge; the end date must follow the start."""

    field_messages = {
        "title": "Challenge title must be between 3 and 100 characters",
        "description": "Description must be less than 1000 characters",
        "start_date": START_DATE_MESSAGE,
        "end_date": END_DATE_MESSAGE,
    }

    title: Title
    description: Annotated[str, _text(0, 1000)] | None = None
    start_date: datetime
    end_date: datetime

    @field_validator("end_date")
    @classmethod
    def end_after_start(cls, value: datetime, info: ValidationInfo) -> datetime:
        start: Any = info.data.get("start_date")
        if isinstance(start, datetime) and wall_clock(value) <= wall_clock(start):
            raise PydanticCustomError(RULE_ERROR, "End date must be after start date")
        return value


class ChallengeListQuery(RequestModel):
    field_messages = {"status": "Invalid challenge status"}

    status: ChallengeStatus | None = None
