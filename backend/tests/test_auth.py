"""Tests for bearer JWT handling."""

import time

import jwt
import pytest

from tableforge.auth import (
    InvalidTokenError,
    JWTService,
    TokenExpiredError,
    UserContext,
)


@pytest.fixture
def jwt_service():
    return JWTService("test-secret-key-that-is-long-enough")


class TestJWTService:
    """Tests for JWTService."""

    def test_round_trip(self, jwt_service):
        token = jwt_service.generate_access_token("u1", tenant_id="t1", roles=["admin"])
        claims = jwt_service.decode_token(token)
        assert claims.user_id == "u1"
        assert claims.tenant_id == "t1"
        assert claims.roles == ["admin"]
        assert claims.type == "access"
        assert claims.exp - claims.iat == JWTService.ACCESS_TOKEN_TTL

    def test_expired(self, jwt_service):
        token = jwt_service.generate_access_token("u1", ttl=-10)
        with pytest.raises(TokenExpiredError):
            jwt_service.decode_token(token)

    def test_wrong_secret(self, jwt_service):
        token = JWTService("another-secret-key-that-is-long").generate_access_token("u1")
        with pytest.raises(InvalidTokenError):
            jwt_service.decode_token(token)

    def test_garbage(self, jwt_service):
        with pytest.raises(InvalidTokenError):
            jwt_service.decode_token("not-a-jwt")

    def test_single_role_claim(self, jwt_service):
        now = int(time.time())
        token = jwt.encode(
            {"sub": "u1", "iat": now, "exp": now + 60, "role": "editor"},
            "test-secret-key-that-is-long-enough",
            algorithm="HS256",
        )
        assert jwt_service.decode_token(token).roles == ["editor"]

    def test_verify_access_token_rejects_other_types(self, jwt_service):
        now = int(time.time())
        token = jwt.encode(
            {"sub": "u1", "iat": now, "exp": now + 60, "type": "refresh"},
            "test-secret-key-that-is-long-enough",
            algorithm="HS256",
        )
        assert jwt_service.decode_token(token).type == "refresh"
        with pytest.raises(InvalidTokenError, match="Expected an access token"):
            jwt_service.verify_access_token(token)


def test_user_context_roles():
    user = UserContext(user_id="u1", roles=["admin"])
    assert user.has_role("admin")
    assert not user.has_role("editor")
