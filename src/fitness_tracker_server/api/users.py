"""Account endpoints: register, login, token refresh and the caller's profile."""

from typing import Any

from litestar import Request, Response, Router, delete, get, patch, post
from litestar.di import Provide
from litestar.middleware import DefineMiddleware
from litestar.status_codes import HTTP_200_OK, HTTP_201_CREATED
from sqlalchemy.ext.asyncio import AsyncSession

from fitness_tracker_server.api.responses import success
from fitness_tracker_server.core.auth import (
    Subject,
    bearer_token_guard,
    get_token_service,
    provide_subject,
)
from fitness_tracker_server.core.password import PasswordHasher
from fitness_tracker_server.core.validation import validate_request
from fitness_tracker_server.middleware.rate_limit import RateLimitMiddleware
from fitness_tracker_server.schemas.requests import (
    LoginRequest,
    ProfileUpdateRequest,
    RefreshRequest,
    RegisterRequest,
)
from fitness_tracker_server.services.accounts import AccountService

# Application state key for the password hasher
PASSWORD_HASHER_STATE_KEY = "password_hasher"

# Stricter limiter for credential endpoints, keyed by client address + path
auth_rate_limit = DefineMiddleware(RateLimitMiddleware, policy="auth", key_by_route=True)


def _accounts(request: Request[Any, Any, Any], session: AsyncSession) -> AccountService:
    hasher: PasswordHasher | None = request.app.state.get(PASSWORD_HASHER_STATE_KEY)
    return AccountService(session, get_token_service(request), hasher)


@post("/register", status_code=HTTP_201_CREATED, middleware=[auth_rate_limit])
async def register(
    request: Request[Any, Any, Any],
    session: AsyncSession,
    data: dict[str, Any],
) -> Response[dict[str, Any]]:
    """Register a new user.

    Returns:
        The public user and a token pair

    Example:
        POST /api/v1/users/register
        {"username": "jane_doe", "email": "jane@example.com", "password": "Passw0rdX"}
    """
    body = validate_request(RegisterRequest, data)
    result = await _accounts(request, session).register(body.username, body.email, body.password)
    return success(result.to_dict(), "User registered successfully", HTTP_201_CREATED)


@post("/login", status_code=HTTP_200_OK, middleware=[auth_rate_limit])
async def login(
    request: Request[Any, Any, Any],
    session: AsyncSession,
    data: dict[str, Any],
) -> Response[dict[str, Any]]:
    """Authenticate by username or email.

    Example:
        POST /api/v1/users/login
        {"username": "jane_doe", "password": "Passw0rdX"}
    """
    body = validate_request(LoginRequest, data)
    result = await _accounts(request, session).login(body.username, body.password)
    return success(result.to_dict(), "Login successful")


@post("/refresh", status_code=HTTP_200_OK, middleware=[auth_rate_limit])
async def refresh(
    request: Request[Any, Any, Any],
    session: AsyncSession,
    data: dict[str, Any],
) -> Response[dict[str, Any]]:
    """Exchange a refresh token for a new access token."""
    body = validate_request(RefreshRequest, data)
    tokens = await _accounts(request, session).refresh(body.refresh_token)
    return success(tokens, "Token refreshed")


@get("/me", guards=[bearer_token_guard])
async def get_me(
    request: Request[Any, Any, Any], session: AsyncSession, subject: Subject
) -> Response[dict[str, Any]]:
    user = await _accounts(request, session).get_active_user(subject.id)
    return success(user.to_public_dict())


@patch("/me", guards=[bearer_token_guard])
async def update_me(
    request: Request[Any, Any, Any],
    session: AsyncSession,
    subject: Subject,
    data: dict[str, Any],
) -> Response[dict[str, Any]]:
    """Update the caller's profile (name, age, bio, avatar, fitness goals)."""
    changes = validate_request(ProfileUpdateRequest, data).cleaned()
    user = await _accounts(request, session).update_profile(subject.id, changes)
    return success(user.to_public_dict(), "Profile updated successfully")


@delete("/me", status_code=HTTP_200_OK, guards=[bearer_token_guard])
async def deactivate_me(
    request: Request[Any, Any, Any], session: AsyncSession, subject: Subject
) -> Response[dict[str, Any]]:
    """Deactivate the caller's account. Existing tokens stop working on refresh."""
    await _accounts(request, session).deactivate(subject.id)
    return success(message="Account deactivated successfully")


users_router = Router(
    path="/users",
    route_handlers=[register, login, refresh, get_me, update_me, deactivate_me],
    dependencies={"subject": Provide(provide_subject, sync_to_thread=False)},
)
