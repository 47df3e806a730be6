"""Request validation on pydantic models.

Request bodies and query strings are declared as ``RequestModel`` subclasses
in ``schemas.requests``. ``validate_request`` runs one against raw input and
turns every pydantic error into a FieldError, so the caller gets a single
VALIDATION_FAILED AppError listing each invalid field.

Messages come from two places. Validators built with ``rule()`` raise their
own message. Any other pydantic error on a field (missing, wrong type, out of
bounds) uses the message the model declares for that field in
``field_messages``.

Example:
    class TitleRequest(RequestModel):
        field_messages = {"title": "Title must be between 3 and 100 characters"}

        title: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3)]

    body = validate_request(TitleRequest, {"title": "  Leg day "})
"""

import uuid
from collections.abc import Callable, Iterable
from datetime import date, datetime
from typing import Annotated, Any, ClassVar, TypeVar

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    HttpUrl,
    PlainSerializer,
    TypeAdapter,
    ValidationError,
)
from pydantic_core import ErrorDetails, PydanticCustomError

from fitness_tracker_server.core.errors import AppError, FieldError

# Error type raised by rule() validators; their message is used verbatim
RULE_ERROR = "request_rule"

# Field name reported when the input itself is not an object
BODY_FIELD = "body"


class RequestModel(BaseModel):
    """Base for request bodies and query strings."""

    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    # Message per dotted field path for errors not raised by rule()
    field_messages: ClassVar[dict[str, str]] = {}

    def cleaned(self) -> dict[str, Any]:
        """Validated values; optional fields that were not given are left out."""
        return self.model_dump(exclude_none=True)


RequestT = TypeVar("RequestT", bound=RequestModel)


def validate_request(model: type[RequestT], data: Any) -> RequestT:
    """Validate raw input against a request model.

    Raises:
        AppError: VALIDATION_FAILED with one FieldError per pydantic error
    """
    try:
        return model.model_validate({} if data is None else data)
    except ValidationError as exc:
        errors = [_to_field_error(model, error) for error in exc.errors()]
        raise AppError.validation_failed(errors) from exc


def _to_field_error(model: type[RequestModel], error: ErrorDetails) -> FieldError:
    path = ".".join(part for part in error["loc"] if isinstance(part, str))
    if error["type"] == RULE_ERROR:
        message = error["msg"]
    else:
        message = model.field_messages.get(path, error["msg"])
    value = None if error["type"] == "missing" else error.get("input")
    return FieldError(field=path or BODY_FIELD, message=message, value=value)


def rule(test: Callable[[Any], bool], message: str) -> AfterValidator:
    """A check with its own message, run after the value is parsed."""

    def check(value: Any) -> Any:
        if not test(value):
            raise PydanticCustomError(RULE_ERROR, message)
        return value

    return AfterValidator(check)


def as_list(value: Any) -> Any:
    """Accept a single value wherever a list is expected."""
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def one_of(choices: Iterable[str], message: str) -> AfterValidator:
    allowed = frozenset(choices)
    return rule(lambda value: value in allowed, message)


# Primary keys are UUIDs, stored and returned as canonical strings
ResourceId = Annotated[uuid.UUID, PlainSerializer(str, return_type=str)]

WebUrl = Annotated[HttpUrl, PlainSerializer(str, return_type=str)]

ListOf = BeforeValidator(as_list)

_resource_id = TypeAdapter(ResourceId)


def ensure_resource_id(value: str, message: str) -> str:
    """Validate a path id.

    Returns:
        The id in canonical form

    Raises:
        AppError: VALIDATION_FAILED on the ``id`` field
    """
    try:
        return str(_resource_id.validate_python(value))
    except ValidationError as exc:
        raise AppError.validation_failed([FieldError("id", message, value)]) from exc


def query_to_dict(items: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Collapse multi-valued query items: repeated keys become lists."""
    result: dict[str, Any] = {}
    for key, value in items:
        if key in result:
            existing = result[key]
            result[key] = [*existing, value] if isinstance(existing, list) else [existing, value]
        else:
            result[key] = value
    return result


def wall_clock(value: datetime) -> datetime:
    """Drop tzinfo so naive and aware datetimes compare on their face value."""
    return value.replace(tzinfo=None)


def parse_datetime(value: Any) -> datetime | None:
    """Leniently parse a date/datetime; None when missing or invalid."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
