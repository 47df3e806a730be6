"""Error taxonomy shared by every layer of the request pipeline.

Failures are classified by kind rather than by exception subclass:

    BAD_REQUEST        malformed input the validator could not describe per field
    UNAUTHORIZED       missing, malformed, invalid or expired credential
    FORBIDDEN          valid credential, resource owned by someone else
    NOT_FOUND          resource missing or logically deleted
    CONFLICT           uniqueness or duplicate-action violation
    VALIDATION_FAILED  carries the full list of FieldErrors
    RATE_LIMITED       client exceeded a rate-limit window
    INTERNAL           unexpected/programming error

Every kind except INTERNAL is operational: its message is safe to return
verbatim. Lower layers raise AppError close to the point of detection and
never log it; the outermost exception handler (api/errors.py) decides wire
representation and log level.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

GENERIC_INTERNAL_MESSAGE = "Something went wrong"


class ErrorKind(str, Enum):
    """Failure classification with its HTTP status."""

    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION_FAILED = "validation_failed"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        """HTTP status code for this kind."""
        return _STATUS_CODES[self]

    @property
    def is_operational(self) -> bool:
        """Return True if the message is safe to expose to the caller."""
        return self is not ErrorKind.INTERNAL

    @property
    def default_message(self) -> str:
        """Fallback message when none is given."""
        return _DEFAULT_MESSAGES[self]


_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.VALIDATION_FAILED: 422,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.INTERNAL: 500,
}

_DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.BAD_REQUEST: "Bad Request",
    ErrorKind.UNAUTHORIZED: "Unauthorized",
    ErrorKind.FORBIDDEN: "Forbidden",
    ErrorKind.NOT_FOUND: "Resource not found",
    ErrorKind.CONFLICT: "Resource conflict",
    ErrorKind.VALIDATION_FAILED: "Validation failed",
    ErrorKind.RATE_LIMITED: "Too many requests, please try again later.",
    ErrorKind.INTERNAL: GENERIC_INTERNAL_MESSAGE,
}


@dataclass(frozen=True)
class FieldError:
    """A single violated validation rule.

    Attributes:
        field: Dotted path of the offending field (e.g. "media.image_url")
        message: Human-readable description of the rule
        value: The value that was submitted
    """

    field: str
    message: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire representation."""
        return {"field": self.field, "message": self.message, "value": self.value}


class AppError(Exception):
    """The single exception type raised by the pipeline.

    Dispatch on ``kind``; never subclass per kind.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str | None = None,
        *,
        errors: list[FieldError] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Initialize with a kind and an optional caller-safe message."""
        self.kind = kind
        self.message = message or kind.default_message
        self.errors = list(errors or [])
        self.headers = dict(headers or {})
        super().__init__(self.message)

    def __repr__(self) -> str:
        """String representation."""
        return f"<AppError(kind={self.kind.value}, message={self.message!r})>"

    @property
    def status_code(self) -> int:
        """HTTP status code for this error."""
        return self.kind.status_code

    @classmethod
    def bad_request(cls, message: str | None = None) -> "AppError":
        return cls(ErrorKind.BAD_REQUEST, message)

    @classmethod
    def unauthorized(cls, message: str | None = None) -> "AppError":
        return cls(ErrorKind.UNAUTHORIZED, message)

    @classmethod
    def forbidden(cls, message: str | None = None) -> "AppError":
        return cls(ErrorKind.FORBIDDEN, message)

    @classmethod
    def not_found(cls, message: str | None = None) -> "AppError":
        return cls(ErrorKind.NOT_FOUND, message)

    @classmethod
    def conflict(cls, message: str | None = None) -> "AppError":
        return cls(ErrorKind.CONFLICT, message)

    @classmethod
    def validation_failed(
        cls, errors: list[FieldError], message: str = "Validation failed"
    ) -> "AppError":
        return cls(ErrorKind.VALIDATION_FAILED, message, errors=errors)

    def to_payload(self) -> dict[str, Any]:
        """Build the error envelope for an operational error."""
        payload: dict[str, Any] = {"status": "error", "message": self.message}
        if self.errors:
            payload["errors"] = [error.to_dict() for error in self.errors]
        return payload
