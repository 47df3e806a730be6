"""Community use cases: posts, likes, comments and challenges."""

import math
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from fitness_tracker_server.core.authorization import authorize_owned
from fitness_tracker_server.core.errors import AppError
from fitness_tracker_server.models.social import Challenge, ChallengeStatus, Comment, Post
from fitness_tracker_server.repositories.social import SocialRepository
from fitness_tracker_server.repositories.workouts import WorkoutRepository
from fitness_tracker_server.services.workouts import to_stored_date

logger = structlog.get_logger()


class SocialService:
    """Posts and comments are public to authenticated users; a post may only
    link a workout its author owns."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize social service.

        Args:
            session: Database session
        """
        self.session = session
        self.social = SocialRepository(session)
        self.workouts = WorkoutRepository(session)
        self.logger = logger.bind(service="social")

    async def _active_post(self, post_id: str) -> Post:
        post = await self.social.get_post(post_id)
        if post is None or not post.is_active:
            raise AppError.not_found("Post not found")
        return post

    async def create_post(self, subject_id: str, data: dict[str, Any]) -> dict[str, Any]:
        workout_id = data.get("workout_id")
        if workout_id:
            await authorize_owned(
                subject_id, self.workouts.get, workout_id, resource_name="Workout", action="share"
            )

        post = Post(user_id=subject_id, content=data["content"], workout_id=workout_id)
        await self.social.save(post)
        await self.session.commit()

        self.logger.info("Post created", post_id=post.id, user_id=subject_id)
        return post.to_dict(likes_count=0)

    async def list_posts(self, page: int = 1, limit: int = 20) -> dict[str, Any]:
        posts, total = await self.social.list_posts(offset=(page - 1) * limit, limit=limit)
        likes = await self.social.like_counts([post.id for post in posts])
        return {
            "posts": [post.to_dict(likes_count=likes.get(post.id, 0)) for post in posts],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit),
            },
        }

    async def toggle_like(self, subject_id: str, post_id: str) -> dict[str, Any]:
        """Like or unlike a post.

        Returns:
            The new like state and like count
        """
        post = await self._active_post(post_id)
        liked = await self.social.toggle_like(post.id, subject_id)
        await self.session.commit()
        likes = await self.social.like_counts([post.id])
        return {"post_id": post.id, "liked": liked, "likes_count": likes.get(post.id, 0)}

    async def create_comment(self, subject_id: str, data: dict[str, Any]) -> dict[str, Any]:
        post = await self._active_post(data["post_id"])
        comment = Comment(user_id=subject_id, post_id=post.id, content=data["content"])
        await self.social.save(comment)
        await self.session.commit()

        self.logger.info("Comment created", comment_id=comment.id, post_id=post.id)
        return comment.to_dict()

    async def list_comments(self, post_id: str) -> list[dict[str, Any]]:
        post = await self._active_post(post_id)
        return [comment.to_dict() for comment in await self.social.list_comments(post.id)]

    async def create_challenge(self, subject_id: str, data: dict[str, Any]) -> dict[str, Any]:
        challenge = Challenge(
            title=data["title"],
            description=data.get("description") or "",
            created_by=subject_id,
            start_date=to_stored_date(data["start_date"]),
            end_date=to_stored_date(data["end_date"]),
            status=ChallengeStatus.UPCOMING.value,
            is_active=True,
        )
        await self.social.save(challenge)
        await self.session.commit()

        self.logger.info("Challenge created", challenge_id=challenge.id, user_id=subject_id)
        return challenge.to_dict(participants=[])

    async def list_challenges(self, status: str | None = None) -> list[dict[str, Any]]:
        challenges = await self.social.list_challenges(status)
        members = await self.social.participants([challenge.id for challenge in challenges])
        return [challenge.to_dict(members.get(challenge.id, [])) for challenge in challenges]

    async def join_challenge(self, subject_id: str, challenge_id: str) -> dict[str, Any]:
        """Add the subject to a challenge's participants.

        Raises:
            AppError: NOT_FOUND if the challenge is missing or inactive,
                CONFLICT if the subject already joined
        """
        challenge = await self.social.get_challenge(challenge_id)
        if challenge is None or not challenge.is_active:
            raise AppError.not_found("Challenge not found")

        if not await self.social.add_participant(challenge.id, subject_id):
            raise AppError.conflict("User already joined this challenge")
        await self.session.commit()

        self.logger.info("Challenge joined", challenge_id=challenge.id, user_id=subject_id)
        members = await self.social.participants([challenge.id])
        return challenge.to_dict(members.get(challenge.id, []))
