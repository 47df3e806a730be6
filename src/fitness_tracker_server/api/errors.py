"""Outermost exception handlers.

This is the only place that turns a failure into a wire response and the
only place that logs it. Operational errors return their message verbatim;
INTERNAL errors are logged with full context and returned as an opaque
message in production.
"""

from typing import Any

import structlog
from litestar import Request, Response
from litestar.exceptions import (
    HTTPException,
    MethodNotAllowedException,
    NotAuthorizedException,
    NotFoundException,
    PermissionDeniedException,
    SerializationException,
    ValidationException,
)
from litestar.types import ExceptionHandlersMap

from fitness_tracker_server.core.auth import current_subject_id
from fitness_tracker_server.core.config import Settings
from fitness_tracker_server.core.errors import GENERIC_INTERNAL_MESSAGE, AppError, ErrorKind
from fitness_tracker_server.middleware.rate_limit import TRUST_PROXY_STATE_KEY, client_address

logger = structlog.get_logger()

# Application state key for the active Settings
SETTINGS_STATE_KEY = "settings"

_FRAMEWORK_KINDS: dict[int, ErrorKind] = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    405: ErrorKind.BAD_REQUEST,
    409: ErrorKind.CONFLICT,
    429: ErrorKind.RATE_LIMITED,
}


def _settings(request: Request[Any, Any, Any]) -> Settings | None:
    return request.app.state.get(SETTINGS_STATE_KEY)


def _request_context(request: Request[Any, Any, Any]) -> dict[str, Any]:
    trust_proxy = bool(request.app.state.get(TRUST_PROXY_STATE_KEY, False))
    return {
        "path": request.url.path,
        "method": request.method,
        "client": client_address(request.scope, trust_proxy),
    }


def app_error_handler(request: Request[Any, Any, Any], exc: AppError) -> Response[dict[str, Any]]:
    """Render an AppError in the error envelope."""
    if not exc.kind.is_operational:
        return _internal_response(request, exc)

    # Throttling and credential failures log at warning
    noisy = exc.kind in (ErrorKind.RATE_LIMITED, ErrorKind.UNAUTHORIZED)
    log = logger.warning if noisy else logger.info
    log(
        "Request failed",
        kind=exc.kind.value,
        status_code=exc.status_code,
        error=exc.message,
        **_request_context(request),
    )
    return Response(content=exc.to_payload(), status_code=exc.status_code, headers=exc.headers)


def validation_exception_handler(
    request: Request[Any, Any, Any], exc: ValidationException
) -> Response[dict[str, Any]]:
    """Framework-level input errors (unparseable JSON body, bad path parameter type)."""
    return app_error_handler(request, AppError.bad_request(exc.detail or "Bad Request"))


def serialization_exception_handler(
    request: Request[Any, Any, Any], exc: SerializationException
) -> Response[dict[str, Any]]:
    """Request bodies that are not valid JSON."""
    return app_error_handler(request, AppError.bad_request("Invalid JSON in request body"))


def not_found_handler(
    request: Request[Any, Any, Any], exc: NotFoundException
) -> Response[dict[str, Any]]:
    """Unknown routes."""
    return app_error_handler(request, AppError.not_found(f"Route {request.url.path} not found"))


def method_not_allowed_handler(
    request: Request[Any, Any, Any], exc: MethodNotAllowedException
) -> Response[dict[str, Any]]:
    error = AppError(ErrorKind.BAD_REQUEST, f"Method {request.method} not allowed")
    response = app_error_handler(request, error)
    response.status_code = exc.status_code
    return response


def http_exception_handler(
    request: Request[Any, Any, Any], exc: HTTPException
) -> Response[dict[str, Any]]:
    """Any other framework HTTP error, mapped onto the taxonomy by status."""
    kind = _FRAMEWORK_KINDS.get(exc.status_code)
    if kind is None:
        if exc.status_code >= 500:
            return _internal_response(request, exc)
        kind = ErrorKind.BAD_REQUEST
    error = AppError(kind, exc.detail or None, headers=dict(exc.headers or {}))
    response = app_error_handler(request, error)
    response.status_code = exc.status_code
    return response


def internal_error_handler(
    request: Request[Any, Any, Any], exc: Exception
) -> Response[dict[str, Any]]:
    """Unexpected exceptions."""
    return _internal_response(request, exc)


def _internal_response(
    request: Request[Any, Any, Any], exc: Exception
) -> Response[dict[str, Any]]:
    logger.error(
        "Unhandled error",
        kind=ErrorKind.INTERNAL.value,
        error=str(exc),
        error_type=type(exc).__name__,
        user_id=current_subject_id(request),
        exc_info=exc,
        **_request_context(request),
    )

    settings = _settings(request)
    content: dict[str, Any] = {"status": "error", "message": GENERIC_INTERNAL_MESSAGE}
    if settings is not None and settings.is_development():
        content["detail"] = f"{type(exc).__name__}: {exc}"
    return Response(content=content, status_code=ErrorKind.INTERNAL.status_code)


exception_handlers: ExceptionHandlersMap = {
    AppError: app_error_handler,
    ValidationException: validation_exception_handler,
    SerializationException: serialization_exception_handler,
    NotFoundException: not_found_handler,
    MethodNotAllowedException: method_not_allowed_handler,
    NotAuthorizedException: http_exception_handler,
    PermissionDeniedException: http_exception_handler,
    HTTPException: http_exception_handler,
    Exception: internal_error_handler,
}
