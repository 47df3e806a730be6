"""Account use cases: registration, login, token refresh and profile."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fitness_tracker_server.core.errors import AppError
from fitness_tracker_server.core.password import PasswordHasher, VerifyResult, get_password_hasher
from fitness_tracker_server.core.tokens import TokenError, TokenPair, TokenService
from fitness_tracker_server.models.user import User
from fitness_tracker_server.repositories.users import UserRepository

logger = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid credentials"
ACCOUNT_DEACTIVATED = "Account is deactivated"
DUPLICATE_ACCOUNT = "Username or email already exists"

# Profile fields a user may change on themselves
PROFILE_FIELDS = ("name", "age", "bio", "avatar", "fitness_goals")


@dataclass(frozen=True)
class AuthResult:
    """A user together with freshly issued tokens."""

    user: User
    tokens: TokenPair

    def to_dict(self) -> dict[str, Any]:
        return {
            "user": self.user.to_public_dict(),
            "token": self.tokens.access_token,
            "refresh_token": self.tokens.refresh_token,
            "expires_in": self.tokens.expires_in,
        }


def _token_claims(user: User) -> dict[str, Any]:
    return {"username": user.username, "email": user.email}


class AccountService:
    """Credential lifecycle for user accounts.

    Passwords are hashed here, before the user is handed to the repository;
    the repository never sees plaintext.
    """

    def __init__(
        self,
        session: AsyncSession,
        tokens: TokenService,
        hasher: PasswordHasher | None = None,
    ) -> None:
        """Initialize account service.

        Args:
            session: Database session
            tokens: Token service used to issue access/refresh tokens
            hasher: Password hasher (process-wide hasher if None)
        """
        self.session = session
        self.users = UserRepository(session)
        self.tokens = tokens
        self.hasher = hasher or get_password_hasher()
        self.logger = logger.bind(service="accounts")

    async def register(self, username: str, email: str, password: str) -> AuthResult:
        """Create a user and issue tokens.

        Args:
            username: Desired username
            email: Email address (stored lowercased)
            password: Plain text password

        Returns:
            AuthResult for the new user

        Raises:
            AppError: CONFLICT if the username or email is taken
        """
        if await self.users.username_exists(username):
            raise AppError.conflict("Username already exists")
        if await self.users.email_exists(email):
            raise AppError.conflict("Email already exists")

        user = User(
            username=username,
            email=email.lower(),
            password_hash=self.hasher.hash(password),
            name="",
            bio="",
            avatar="",
            fitness_goals=[],
            is_active=True,
        )
        try:
            await self.users.save(user)
            await self.session.commit()
        except IntegrityError as exc:
            # Another registration claimed the username or email since the checks above
            await self.session.rollback()
            raise AppError.conflict(DUPLICATE_ACCOUNT) from exc

        self.logger.info("User registered", user_id=user.id, username=user.username)
        return AuthResult(user=user, tokens=self.tokens.issue_pair(user.id, _token_claims(user)))

    async def login(self, identifier: str, password: str) -> AuthResult:
        """Authenticate by username or email and issue tokens.

        Unknown identities, wrong passwords and malformed stored digests all
        produce the same "Invalid credentials" error.

        Raises:
            AppError: UNAUTHORIZED
        """
        user = await self.users.find_by_username_or_email(identifier)
        if user is None:
            # Keep timing close to the known-user path
            self.hasher.hash(password)
            raise AppError.unauthorized(INVALID_CREDENTIALS)

        if not user.is_active:
            raise AppError.unauthorized(ACCOUNT_DEACTIVATED)

        result = self.hasher.check(password, user.password_hash)
        if result is VerifyResult.MALFORMED:
            self.logger.warning("Stored password digest is malformed", user_id=user.id)
        if result is not VerifyResult.MATCH:
            raise AppError.unauthorized(INVALID_CREDENTIALS)

        if self.hasher.needs_rehash(user.password_hash):
            user.password_hash = self.hasher.hash(password)

        user.last_login_at = datetime.now(UTC)
        await self.users.save(user)
        await self.session.commit()

        self.logger.info("User logged in", user_id=user.id, username=user.username)
        return AuthResult(user=user, tokens=self.tokens.issue_pair(user.id, _token_claims(user)))

    async def refresh(self, refresh_token: str | None) -> dict[str, Any]:
        """Exchange a refresh token for a new access token.

        Raises:
            AppError: UNAUTHORIZED if the token is invalid/expired or the
                account no longer exists or is deactivated
        """
        try:
            payload = self.tokens.verify_refresh_token(refresh_token)
        except TokenError as err:
            raise AppError.unauthorized(err.message) from err

        user = await self.users.get(payload.subject_id)
        if user is None:
            raise AppError.unauthorized("Invalid token")
        if not user.is_active:
            raise AppError.unauthorized(ACCOUNT_DEACTIVATED)

        return {
            "token": self.tokens.issue_access_token(user.id, _token_claims(user)),
            "expires_in": self.tokens.access_ttl_seconds,
        }

    async def get_active_user(self, user_id: str) -> User:
        """Load the caller's own account.

        Raises:
            AppError: NOT_FOUND if missing or deactivated
        """
        user = await self.users.get(user_id)
        if user is None or not user.is_active:
            raise AppError.not_found("User not found")
        return user

    async def update_profile(self, user_id: str, changes: dict[str, Any]) -> User:
        """Apply profile changes to the caller's account."""
        user = await self.get_active_user(user_id)
        for key in PROFILE_FIELDS:
            if key in changes:
                setattr(user, key, changes[key])
        await self.users.save(user)
        await self.session.commit()

        self.logger.info("Profile updated", user_id=user.id, fields=sorted(changes))
        return user

    async def deactivate(self, user_id: str) -> None:
        """Logically delete the caller's account."""
        user = await self.get_active_user(user_id)
        user.is_active = False
        await self.users.save(user)
        await self.session.commit()

        self.logger.info("Account deactivated", user_id=user.id)
