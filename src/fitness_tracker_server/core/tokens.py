"""Signed, time-bounded bearer tokens.

Tokens are HS256 JWTs carrying the subject id (``sub``), optional display
claims (``username``, ``email``), ``iat``, ``exp`` and a ``type`` claim
(``access`` or ``refresh``). They are never stored server-side; a token is
valid until it expires.

Expiry is evaluated here against an injectable clock rather than inside the
JWT library, so a token issued with TTL t is valid strictly before
``iat + t`` and expired from ``iat + t`` on.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from jose import JWTError, jwt

from fitness_tracker_server.core.config import Settings, settings

Clock = Callable[[], float]

# Claims a caller may not override
_RESERVED_CLAIMS = frozenset({"sub", "iat", "exp", "type"})
_DISPLAY_CLAIMS = ("username", "email")


class TokenType(str, Enum):
    """Purpose of a token. Each purpose is signed with its own secret."""

    ACCESS = "access"
    REFRESH = "refresh"


class TokenErrorKind(str, Enum):
    """Why a presented token was rejected."""

    MISSING = "missing"
    MALFORMED_HEADER = "malformed_header"
    INVALID = "invalid"
    EXPIRED = "expired"


# Terse, non-leaking client-facing messages
TOKEN_ERROR_MESSAGES: dict[TokenErrorKind, str] = {
    TokenErrorKind.MISSING: "No token provided, authorization denied",
    TokenErrorKind.MALFORMED_HEADER: "Invalid token format. Use: Bearer <token>",
    TokenErrorKind.INVALID: "Invalid token",
    TokenErrorKind.EXPIRED: "Token has expired",
}


class TokenError(Exception):
    """Raised when a token cannot be accepted."""

    def __init__(self, kind: TokenErrorKind) -> None:
        """Initialize with the rejection kind."""
        self.kind = kind
        super().__init__(TOKEN_ERROR_MESSAGES[kind])

    @property
    def message(self) -> str:
        """Client-facing message for this rejection."""
        return TOKEN_ERROR_MESSAGES[self.kind]


@dataclass(frozen=True)
class TokenPayload:
    """Verified token contents."""

    subject_id: str
    token_type: TokenType
    issued_at: int
    expires_at: int
    claims: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TokenPair:
    """Access token plus the refresh token that can renew it."""

    access_token: str
    refresh_token: str
    expires_in: int


class TokenCodec:
    """Issues and verifies signed bearer tokens."""

    def __init__(self, algorithm: str = "HS256", clock: Clock | None = None) -> None:
        """Initialize codec.

        Args:
            algorithm: JWT signing algorithm
            clock: Returns current unix time in seconds (defaults to time.time)
        """
        self.algorithm = algorithm
        self._clock = clock or time.time

    def now(self) -> int:
        """Current time in whole seconds."""
        return int(self._clock())

    def issue(
        self,
        subject_id: str,
        claims: dict[str, Any] | None,
        ttl_seconds: int,
        secret: str,
        token_type: TokenType = TokenType.ACCESS,
    ) -> str:
        """Issue a signed token.

        Args:
            subject_id: Identity the token speaks for
            claims: Optional display claims (username, email)
            ttl_seconds: Lifetime in seconds
            secret: Signing secret for this token type
            token_type: Access or refresh

        Returns:
            Encoded token string
        """
        issued_at = self.now()
        payload: dict[str, Any] = {
            key: value
            for key, value in (claims or {}).items()
            if key not in _RESERVED_CLAIMS and value is not None
        }
        payload.update(
            {
                "sub": str(subject_id),
                "iat": issued_at,
                "exp": issued_at + ttl_seconds,
                "type": token_type.value,
            }
        )
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def verify(
        self,
        token: str | None,
        secret: str,
        token_type: TokenType = TokenType.ACCESS,
    ) -> TokenPayload:
        """Verify a token's signature, structure, purpose and expiry.

        Args:
            token: Encoded token (None or empty means no token presented)
            secret: Secret the token must be signed with
            token_type: Purpose the token must have been issued for

        Returns:
            Verified TokenPayload

        Raises:
            TokenError: MISSING, INVALID or EXPIRED
        """
        if not token:
            raise TokenError(TokenErrorKind.MISSING)

        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_iat": False, "verify_aud": False},
            )
        except JWTError as err:
            raise TokenError(TokenErrorKind.INVALID) from err

        subject_id = decoded.get("sub")
        issued_at = decoded.get("iat")
        expires_at = decoded.get("exp")
        if (
            not isinstance(subject_id, str)
            or not subject_id
            or not isinstance(issued_at, int)
            or not isinstance(expires_at, int)
            or decoded.get("type") != token_type.value
        ):
            raise TokenError(TokenErrorKind.INVALID)

        if self.now() >= expires_at:
            raise TokenError(TokenErrorKind.EXPIRED)

        return TokenPayload(
            subject_id=subject_id,
            token_type=token_type,
            issued_at=issued_at,
            expires_at=expires_at,
            claims={key: decoded[key] for key in _DISPLAY_CLAIMS if key in decoded},
        )


class TokenService:
    """Binds a TokenCodec to the configured secrets and lifetimes."""

    def __init__(self, config: Settings | None = None, clock: Clock | None = None) -> None:
        """Initialize from settings."""
        self.config = config or settings
        self.codec = TokenCodec(algorithm=self.config.jwt_algorithm, clock=clock)

    @property
    def access_ttl_seconds(self) -> int:
        return self.config.jwt_access_expiry_minutes * 60

    @property
    def refresh_ttl_seconds(self) -> int:
        return self.config.jwt_refresh_expiry_days * 24 * 60 * 60

    def issue_access_token(self, subject_id: str, claims: dict[str, Any] | None = None) -> str:
        return self.codec.issue(
            subject_id, claims, self.access_ttl_seconds, self.config.jwt_secret, TokenType.ACCESS
        )

    def issue_refresh_token(self, subject_id: str) -> str:
        return self.codec.issue(
            subject_id,
            None,
            self.refresh_ttl_seconds,
            self.config.jwt_refresh_secret,
            TokenType.REFRESH,
        )

    def issue_pair(self, subject_id: str, claims: dict[str, Any] | None = None) -> TokenPair:
        """Issue an access token and a refresh token for the same subject."""
        return TokenPair(
            access_token=self.issue_access_token(subject_id, claims),
            refresh_token=self.issue_refresh_token(subject_id),
            expires_in=self.access_ttl_seconds,
        )

    def verify_access_token(self, token: str | None) -> TokenPayload:
        return self.codec.verify(token, self.config.jwt_secret, TokenType.ACCESS)

    def verify_refresh_token(self, token: str | None) -> TokenPayload:
        return self.codec.verify(token, self.config.jwt_refresh_secret, TokenType.REFRESH)


def extract_bearer_token(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header.

    Raises:
        TokenError: MISSING if the header is absent or has no token,
            MALFORMED_HEADER if the scheme is not ``Bearer``
    """
    if not authorization:
        raise TokenError(TokenErrorKind.MISSING)

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        raise TokenError(TokenErrorKind.MALFORMED_HEADER)
    if not parts[1]:
        raise TokenError(TokenErrorKind.MISSING)
    return parts[1]
