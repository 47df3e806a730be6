"""Tests for bearer token issuing and verification."""

import pytest

from fitness_tracker_server.core.config import Settings
from fitness_tracker_server.core.tokens import (
    TokenCodec,
    TokenError,
    TokenErrorKind,
    TokenService,
    TokenType,
    extract_bearer_token,
)
from tests.helpers import FakeClock


@pytest.fixture
def service(test_settings: Settings, clock: FakeClock) -> TokenService:
    return TokenService(test_settings, clock=clock)


class TestExpiry:
    """A token with TTL t is valid strictly before iat + t."""

    def test_valid_just_before_expiry(self, clock):
        codec = TokenCodec(clock=clock)
        token = codec.issue("user-1", None, 60, "secret")

        clock.advance(59)
        payload = codec.verify(token, "secret")

        assert payload.subject_id == "user-1"
        assert payload.expires_at - payload.issued_at == 60

    def test_expired_at_exact_boundary(self, clock):
        codec = TokenCodec(clock=clock)
        token = codec.issue("user-1", None, 60, "secret")

        clock.advance(60)
        with pytest.raises(TokenError) as exc_info:
            codec.verify(token, "secret")

        assert exc_info.value.kind is TokenErrorKind.EXPIRED
        assert exc_info.value.message == "Token has expired"


class TestSignatures:
    """Tokens only verify under the secret and purpose they were issued for."""

    def test_claims_round_trip(self, service):
        token = service.issue_access_token("user-1", {"username": "jane", "email": "j@x.io"})

        payload = service.verify_access_token(token)

        assert payload.token_type is TokenType.ACCESS
        assert payload.claims == {"username": "jane", "email": "j@x.io"}

    def test_reserved_claims_cannot_be_overridden(self, service):
        token = service.issue_access_token("user-1", {"sub": "admin", "type": "refresh"})

        assert service.verify_access_token(token).subject_id == "user-1"

    def test_refresh_token_rejected_as_access_token(self, service):
        refresh = service.issue_refresh_token("user-1")

        with pytest.raises(TokenError) as exc_info:
            service.verify_access_token(refresh)

        assert exc_info.value.kind is TokenErrorKind.INVALID

    def test_access_token_rejected_as_refresh_token(self, service):
        access = service.issue_access_token("user-1")

        with pytest.raises(TokenError):
            service.verify_refresh_token(access)

    def test_wrong_secret(self, clock):
        codec = TokenCodec(clock=clock)
        token = codec.issue("user-1", None, 60, "secret-a")

        with pytest.raises(TokenError) as exc_info:
            codec.verify(token, "secret-b")

        assert exc_info.value.kind is TokenErrorKind.INVALID

    @pytest.mark.parametrize("token", ["garbage", "a.b.c", "Bearer"])
    def test_garbage_token(self, service, token):
        with pytest.raises(TokenError) as exc_info:
            service.verify_access_token(token)

        assert exc_info.value.message == "Invalid token"

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token(self, service, token):
        with pytest.raises(TokenError) as exc_info:
            service.verify_access_token(token)

        assert exc_info.value.kind is TokenErrorKind.MISSING

    def test_pair_lifetimes(self, service, test_settings):
        pair = service.issue_pair("user-1")

        assert pair.expires_in == test_settings.jwt_access_expiry_minutes * 60
        refresh = service.verify_refresh_token(pair.refresh_token)
        lifetime = refresh.expires_at - refresh.issued_at
        assert lifetime == test_settings.jwt_refresh_expiry_days * 86400


class TestBearerHeader:
    """Authorization header parsing."""

    def test_extracts_token(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize("header", [None, "", "Bearer "])
    def test_missing(self, header):
        with pytest.raises(TokenError) as exc_info:
            extract_bearer_token(header)

        assert exc_info.value.message == "No token provided, authorization denied"

    @pytest.mark.parametrize("header", ["Token abc", "bearer abc", "Bearer a b", "abc"])
    def test_malformed(self, header):
        with pytest.raises(TokenError) as exc_info:
            extract_bearer_token(header)

        assert exc_info.value.message == "Invalid token format. Use: Bearer <token>"
