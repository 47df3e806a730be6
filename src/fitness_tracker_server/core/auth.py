"""Bearer token authentication for API requests.

The guard verifies the access token from ``Authorization: Bearer <token>``
and stores the authenticated Subject in connection state. Handlers receive
it through the ``subject`` dependency.
"""

from dataclasses import dataclass
from typing import Any

from litestar import Request
from litestar.connection import ASGIConnection
from litestar.handlers import BaseRouteHandler

from fitness_tracker_server.core.errors import AppError
from fitness_tracker_server.core.tokens import TokenError, TokenService, extract_bearer_token

# Connection state key for the authenticated subject
SUBJECT_STATE_KEY = "subject"
# Application state key for the token service
TOKEN_SERVICE_STATE_KEY = "token_service"


@dataclass(frozen=True)
class Subject:
    """The authenticated caller."""

    id: str
    username: str | None = None
    email: str | None = None


def get_token_service(connection: ASGIConnection[Any, Any, Any, Any]) -> TokenService:
    """Return the token service configured on the application."""
    return connection.app.state[TOKEN_SERVICE_STATE_KEY]


def authenticate(authorization: str | None, tokens: TokenService) -> Subject:
    """Turn an Authorization header into a Subject.

    Args:
        authorization: Raw header value (None if absent)
        tokens: Token service holding the access secret

    Returns:
        Authenticated Subject

    Raises:
        AppError: UNAUTHORIZED with a terse reason
    """
    try:
        token = extract_bearer_token(authorization)
        payload = tokens.verify_access_token(token)
    except TokenError as err:
        raise AppError.unauthorized(err.message) from err

    return Subject(
        id=payload.subject_id,
        username=payload.claims.get("username"),
        email=payload.claims.get("email"),
    )


async def bearer_token_guard(
    connection: ASGIConnection[Any, Any, Any, Any], _: BaseRouteHandler
) -> None:
    """Litestar guard that requires a valid access token.

    Args:
        connection: The ASGI connection
        _: The route handler (unused)

    Raises:
        AppError: UNAUTHORIZED if the token is missing, malformed, invalid or expired
    """
    subject = authenticate(connection.headers.get("Authorization"), get_token_service(connection))
    connection.state[SUBJECT_STATE_KEY] = subject


def provide_subject(request: Request[Any, Any, Any]) -> Subject:
    """Dependency returning the Subject set by bearer_token_guard."""
    subject = request.state.get(SUBJECT_STATE_KEY)
    if subject is None:
        raise AppError.unauthorized("No token provided, authorization denied")
    return subject


def current_subject_id(connection: ASGIConnection[Any, Any, Any, Any]) -> str | None:
    """Subject id for logging, if the request got that far."""
    subject = connection.scope.get("state", {}).get(SUBJECT_STATE_KEY)
    return subject.id if isinstance(subject, Subject) else None
