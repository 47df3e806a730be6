"""Credential store backed by the users table."""

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitness_tracker_server.models.user import User


class UserRepository:
    """Looks up and persists user identities.

    A plain writer: password hashing and uniqueness rules live in the
    credential use cases (services/accounts.py), not here.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository.

        Args:
            session: Database session
        """
        self.session = session

    async def get(self, user_id: str) -> User | None:
        """Get a user by id (active or not)."""
        return await self.session.get(User, user_id)

    async def find_by_username_or_email(self, identifier: str) -> User | None:
        """Find a user whose username or (lowercased) email matches.

        Args:
            identifier: Username or email address

        Returns:
            User if found, None otherwise
        """
        result = await self.session.execute(
            select(User).where(
                or_(User.username == identifier, User.email == identifier.lower())
            )
        )
        return result.scalars().first()

    async def username_exists(self, username: str) -> bool:
        result = await self.session.execute(
            select(func.count(User.id)).where(User.username == username)
        )
        return (result.scalar() or 0) > 0

    async def email_exists(self, email: str) -> bool:
        result = await self.session.execute(
            select(func.count(User.id)).where(User.email == email.lower())
        )
        return (result.scalar() or 0) > 0

    async def save(self, user: User) -> User:
        """Insert or update a user and flush to obtain generated fields."""
        self.session.add(user)
        await self.session.flush()
        return user
