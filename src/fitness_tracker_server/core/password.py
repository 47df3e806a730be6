"""Password hashing utilities using Argon2."""

from enum import Enum

from argon2 import PasswordHasher as Argon2Hasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from fitness_tracker_server.core.config import settings


class VerifyResult(str, Enum):
    """Outcome of checking a password against a stored digest."""

    MATCH = "match"
    MISMATCH = "mismatch"
    MALFORMED = "malformed"


class PasswordHasher:
    """One-way, salted, cost-parameterized password hashing.

    The cost factor maps to Argon2's time cost. Each digest embeds its own
    salt and parameters, so changing the cost only affects new digests;
    existing ones keep verifying and can be upgraded via ``needs_rehash``.
    """

    def __init__(self, cost: int = 10, memory_cost: int | None = None) -> None:
        """Initialize hasher.

        Args:
            cost: Argon2 time cost (iterations)
            memory_cost: Optional Argon2 memory cost in KiB (library default if None)
        """
        kwargs: dict[str, int] = {"time_cost": cost}
        if memory_cost is not None:
            kwargs["memory_cost"] = memory_cost
        self.cost = cost
        self._hasher = Argon2Hasher(**kwargs)

    def hash(self, plaintext: str) -> str:
        """Hash a password with a fresh random salt.

        Args:
            plaintext: Plain text password

        Returns:
            Encoded digest including salt and cost parameters
        """
        return self._hasher.hash(plaintext)

    def check(self, plaintext: str, digest: str) -> VerifyResult:
        """Verify a password and report why it failed, if it did.

        Comparison is delegated to Argon2, which compares the derived keys
        in constant time.

        Args:
            plaintext: Plain text password to verify
            digest: Stored password digest

        Returns:
            MATCH, MISMATCH or MALFORMED
        """
        try:
            self._hasher.verify(digest, plaintext)
        except VerifyMismatchError:
            return VerifyResult.MISMATCH
        except (InvalidHashError, VerificationError):
            return VerifyResult.MALFORMED
        return VerifyResult.MATCH

    def verify(self, plaintext: str, digest: str) -> bool:
        """Verify a password against its digest.

        Malformed digests never match and never raise.

        Returns:
            True if password matches, False otherwise
        """
        return self.check(plaintext, digest) is VerifyResult.MATCH

    def needs_rehash(self, digest: str) -> bool:
        """Return True if the digest was created with different cost parameters."""
        try:
            return self._hasher.check_needs_rehash(digest)
        except (InvalidHashError, ValueError):
            return True


# Create password hasher from configured cost
_hasher = PasswordHasher(cost=settings.password_hash_cost)


def get_password_hasher() -> PasswordHasher:
    """Return the process-wide password hasher."""
    return _hasher
