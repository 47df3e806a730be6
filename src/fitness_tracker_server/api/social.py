"""Community endpoints: posts, likes, comments and challenges."""

from typing import Any

from litestar import Request, Response, Router, get, post
from litestar.di import Provide
from litestar.status_codes import HTTP_200_OK, HTTP_201_CREATED
from sqlalchemy.ext.asyncio import AsyncSession

from fitness_tracker_server.api.responses import success
from fitness_tracker_server.core.auth import Subject, bearer_token_guard, provide_subject
from fitness_tracker_server.core.validation import (
    ensure_resource_id,
    query_to_dict,
    validate_request,
)
from fitness_tracker_server.schemas.requests import (
    ChallengeCreateRequest,
    ChallengeListQuery,
    CommentCreateRequest,
    CommentListQuery,
    PageQuery,
    PostCreateRequest,
)
from fitness_tracker_server.services.social import SocialService

INVALID_POST_ID = "Invalid post ID"
INVALID_CHALLENGE_ID = "Invalid challenge ID"


def _query(request: Request[Any, Any, Any]) -> dict[str, Any]:
    return query_to_dict(request.query_params.multi_items())


@post("/posts", status_code=HTTP_201_CREATED)
async def create_post(
    session: AsyncSession, subject: Subject, data: dict[str, Any]
) -> Response[dict[str, Any]]:
    """Create a post, optionally sharing one of the caller's workouts."""
    body = validate_request(PostCreateRequest, data).cleaned()
    post_data = await SocialService(session).create_post(subject.id, body)
    return success(post_data, "Post created successfully", HTTP_201_CREATED)


@get("/posts")
async def list_posts(
    request: Request[Any, Any, Any], session: AsyncSession
) -> Response[dict[str, Any]]:
    query = validate_request(PageQuery, _query(request))
    return success(await SocialService(session).list_posts(page=query.page, limit=query.limit))


@post("/posts/{post_id:str}/like", status_code=HTTP_200_OK)
async def like_post(
    session: AsyncSession, subject: Subject, post_id: str
) -> Response[dict[str, Any]]:
    """Toggle the caller's like on a post."""
    post_id = ensure_resource_id(post_id, INVALID_POST_ID)
    result = await SocialService(session).toggle_like(subject.id, post_id)
    return success(result, "Post liked" if result["liked"] else "Post unliked")


@post("/comments", status_code=HTTP_201_CREATED)
async def create_comment(
    session: AsyncSession, subject: Subject, data: dict[str, Any]
) -> Response[dict[str, Any]]:
    body = validate_request(CommentCreateRequest, data).cleaned()
    comment = await SocialService(session).create_comment(subject.id, body)
    return success(comment, "Comment created successfully", HTTP_201_CREATED)


@get("/comments")
async def list_comments(
    request: Request[Any, Any, Any], session: AsyncSession
) -> Response[dict[str, Any]]:
    """Comments on a post, oldest first. Requires ?post_id=."""
    query = validate_request(CommentListQuery, _query(request)).cleaned()
    return success(await SocialService(session).list_comments(query["post_id"]))


@post("/challenges", status_code=HTTP_201_CREATED)
async def create_challenge(
    session: AsyncSession, subject: Subject, data: dict[str, Any]
) -> Response[dict[str, Any]]:
    body = validate_request(ChallengeCreateRequest, data).cleaned()
    challenge = await SocialService(session).create_challenge(subject.id, body)
    return success(challenge, "Challenge created successfully", HTTP_201_CREATED)


@get("/challenges")
async def list_challenges(
    request: Request[Any, Any, Any], session: AsyncSession
) -> Response[dict[str, Any]]:
    query = validate_request(ChallengeListQuery, _query(request))
    return success(await SocialService(session).list_challenges(query.status))


@post("/challenges/{challenge_id:str}/join", status_code=HTTP_200_OK)
async def join_challenge(
    session: AsyncSession, subject: Subject, challenge_id: str
) -> Response[dict[str, Any]]:
    """Join a challenge. Joining twice is a conflict."""
    challenge_id = ensure_resource_id(challenge_id, INVALID_CHALLENGE_ID)
    challenge = await SocialService(session).join_challenge(subject.id, challenge_id)
    return success(challenge, "Joined challenge successfully")


social_router = Router(
    path="/social",
    route_handlers=[
        create_post,
        list_posts,
        like_post,
        create_comment,
        list_comments,
        create_challenge,
        list_challenges,
        join_challenge,
    ],
    guards=[bearer_token_guard],
    dependencies={"subject": Provide(provide_subject, sync_to_thread=False)},
)
