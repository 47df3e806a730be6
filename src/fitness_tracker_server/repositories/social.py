"""Posts, comments and challenges queries."""

from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fitness_tracker_server.models.social import (
    Challenge,
    ChallengeParticipant,
    Comment,
    Post,
    PostLike,
)


class SocialRepository:
    """Queries and persists social content."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository.

        Args:
            session: Database session
        """
        self.session = session

    async def save(self, item: Post | Comment | Challenge) -> None:
        self.session.add(item)
        await self.session.flush()

    # Posts

    async def get_post(self, post_id: str) -> Post | None:
        return await self.session.get(Post, post_id)

    async def list_posts(self, *, offset: int = 0, limit: int = 20) -> tuple[Sequence[Post], int]:
        """Active posts, newest first."""
        base = select(Post).where(Post.is_active.is_(True))
        result = await self.session.execute(
            base.order_by(Post.created_at.desc()).offset(offset).limit(limit)
        )
        total = await self.session.execute(base.with_only_columns(func.count(Post.id)))
        return result.scalars().all(), total.scalar() or 0

    async def like_counts(self, post_ids: Sequence[str]) -> dict[str, int]:
        if not post_ids:
            return {}
        result = await self.session.execute(
            select(PostLike.post_id, func.count(PostLike.user_id))
            .where(PostLike.post_id.in_(post_ids))
            .group_by(PostLike.post_id)
        )
        return {post_id: count for post_id, count in result.all()}

    async def toggle_like(self, post_id: str, user_id: str) -> bool:
        """Like the post, or remove an existing like.

        Returns:
            True if the post is now liked by the user
        """
        existing = await self.session.get(PostLike, (post_id, user_id))
        if existing is not None:
            await self.session.delete(existing)
            await self.session.flush()
            return False
        self.session.add(PostLike(post_id=post_id, user_id=user_id))
        await self.session.flush()
        return True

    # Comments

    async def list_comments(self, post_id: str) -> Sequence[Comment]:
        result = await self.session.execute(
            select(Comment)
            .where(Comment.post_id == post_id, Comment.is_active.is_(True))
            .order_by(Comment.created_at.asc())
        )
        return result.scalars().all()

    # Challenges

    async def get_challenge(self, challenge_id: str) -> Challenge | None:
        return await self.session.get(Challenge, challenge_id)

    async def list_challenges(self, status: str | None = None) -> Sequence[Challenge]:
        stmt = select(Challenge).where(Challenge.is_active.is_(True))
        if status:
            stmt = stmt.where(Challenge.status == status)
        result = await self.session.execute(stmt.order_by(Challenge.start_date.asc()))
        return result.scalars().all()

    async def participants(self, challenge_ids: Sequence[str]) -> dict[str, list[str]]:
        if not challenge_ids:
            return {}
        result = await self.session.execute(
            select(ChallengeParticipant.challenge_id, ChallengeParticipant.user_id)
            .where(ChallengeParticipant.challenge_id.in_(challenge_ids))
            .order_by(ChallengeParticipant.joined_at.asc())
        )
        members: dict[str, list[str]] = {}
        for challenge_id, user_id in result.all():
            members.setdefault(challenge_id, []).append(user_id)
        return members

    async def add_participant(self, challenge_id: str, user_id: str) -> bool:
        """Record a participation.

        The (challenge, user) primary key makes a second insert fail, so two
        concurrent joins can never both succeed.

        Returns:
            False if the user had already joined
        """
        if await self.session.get(ChallengeParticipant, (challenge_id, user_id)) is not None:
            return False
        self.session.add(
            ChallengeParticipant(
                challenge_id=challenge_id,
                user_id=user_id,
                joined_at=datetime.now(UTC),
            )
        )
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            return False
        return True
