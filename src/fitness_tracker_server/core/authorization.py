"""Ownership checks for user-owned resources.

The resource is loaded first; a missing or logically deleted resource is
NOT_FOUND. Only an existing resource is compared against the subject, and
a mismatch is FORBIDDEN. Both outcomes are only reachable with a valid
access token.
"""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Protocol, TypeVar, cast

from fitness_tracker_server.core.errors import AppError


class Owned(Protocol):
    """Anything with an owner id."""

    user_id: str


OwnedT = TypeVar("OwnedT", bound=Owned)


class AccessDecision(str, Enum):
    """Outcome of an ownership check."""

    ALLOWED = "allowed"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


def decide_access(subject_id: str, resource: Owned | None) -> AccessDecision:
    """Decide whether a subject may act on a resource.

    Args:
        subject_id: Authenticated user id
        resource: Loaded resource, or None if it does not exist

    Returns:
        AccessDecision
    """
    if resource is None or not getattr(resource, "is_active", True):
        return AccessDecision.NOT_FOUND
    if str(resource.user_id) != str(subject_id):
        return AccessDecision.FORBIDDEN
    return AccessDecision.ALLOWED


def ensure_access(
    subject_id: str,
    resource: OwnedT | None,
    *,
    resource_name: str = "Resource",
    action: str = "access",
) -> OwnedT:
    """Raise the matching AppError unless access is allowed.

    Returns:
        The resource, narrowed to non-None

    Raises:
        AppError: NOT_FOUND or FORBIDDEN
    """
    decision = decide_access(subject_id, resource)
    if decision is AccessDecision.NOT_FOUND:
        raise AppError.not_found(f"{resource_name} not found")
    if decision is AccessDecision.FORBIDDEN:
        raise AppError.forbidden(f"Unauthorized to {action} this {resource_name.lower()}")
    return cast(OwnedT, resource)


async def authorize_owned(
    subject_id: str,
    loader: Callable[[str], Awaitable[OwnedT | None]],
    resource_id: str,
    **kwargs: Any,
) -> OwnedT:
    """Load a resource by id and check ownership.

    Args:
        subject_id: Authenticated user id
        loader: Async find-by-id
        resource_id: Resource id
        **kwargs: Passed to ensure_access (resource_name, action)

    Returns:
        The owned resource
    """
    resource = await loader(resource_id)
    return ensure_access(subject_id, resource, **kwargs)
