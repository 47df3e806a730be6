"""Tests for password hashing."""

import pytest

from fitness_tracker_server.core.password import PasswordHasher, VerifyResult


@pytest.fixture
def fast_hasher() -> PasswordHasher:
    return PasswordHasher(cost=1, memory_cost=1024)


class TestHashing:
    """Digest generation and verification."""

    def test_verify_matching_password(self, fast_hasher):
        digest = fast_hasher.hash("Passw0rdX")

        assert fast_hasher.verify("Passw0rdX", digest) is True

    def test_verify_wrong_password(self, fast_hasher):
        digest = fast_hasher.hash("Passw0rdX")

        assert fast_hasher.verify("passw0rdx", digest) is False
        assert fast_hasher.check("passw0rdx", digest) is VerifyResult.MISMATCH

    def test_digest_is_salted(self, fast_hasher):
        """Same password hashed twice gives different digests that both verify."""
        first = fast_hasher.hash("Passw0rdX")
        second = fast_hasher.hash("Passw0rdX")

        assert first != second
        assert fast_hasher.verify("Passw0rdX", first)
        assert fast_hasher.verify("Passw0rdX", second)

    def test_digest_never_contains_plaintext(self, fast_hasher):
        assert "Passw0rdX" not in fast_hasher.hash("Passw0rdX")


class TestMalformedDigests:
    """A corrupt stored digest is a failed check, never an exception."""

    @pytest.mark.parametrize("digest", ["", "not-a-hash", "$argon2id$v=19$garbage"])
    def test_malformed_digest(self, fast_hasher, digest):
        assert fast_hasher.check("Passw0rdX", digest) is VerifyResult.MALFORMED
        assert fast_hasher.verify("Passw0rdX", digest) is False


class TestCostChanges:
    """Existing digests keep verifying after the cost changes."""

    def test_digest_from_old_cost_still_verifies(self):
        old = PasswordHasher(cost=1, memory_cost=1024)
        new = PasswordHasher(cost=2, memory_cost=1024)
        digest = old.hash("Passw0rdX")

        assert new.verify("Passw0rdX", digest)
        assert new.needs_rehash(digest) is True
        assert old.needs_rehash(digest) is False
