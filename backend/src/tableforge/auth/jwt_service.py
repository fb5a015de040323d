"""Bearer access tokens (HS256 JWTs) issued by the host application."""

import time
from typing import Any

import jwt

from tableforge.auth.types import TokenClaims


class JWTError(Exception):
    """Base exception for bearer token problems."""

    pass


class TokenExpiredError(JWTError):
    """The token's exp claim is in the past."""

    pass


class InvalidTokenError(JWTError):
    """Bad signature, malformed token or wrong token type."""

    pass


def _roles(payload: dict[str, Any]) -> list[str]:
    """Hosts may issue a ``roles`` list, a single ``role`` claim, or both."""
    roles = [str(role) for role in payload.get("roles") or []]
    if payload.get("role"):
        roles.append(str(payload["role"]))
    return roles


class JWTService:
    """Encodes and decodes the bearer tokens that identify the current user.

    The table API never logs users in; it only reads who the caller is so
    authorize predicates and per-user saved views can use it. Generating
    tokens exists for the CLI and for tests.
    """

    ACCESS_TOKEN_TTL = 15 * 60  # 15 minutes

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        self._secret_key = secret_key
        self._algorithm = algorithm

    def generate_access_token(
        self,
        user_id: str,
        tenant_id: str | None = None,
        roles: list[str] | None = None,
        ttl: int | None = None,
    ) -> str:
        """Encode an access token for a user.

        Args:
            user_id: Subject of the token
            tenant_id: Optional tenant claim
            roles: Role names the authorize predicates can check
            ttl: Lifetime in seconds (defaults to ACCESS_TOKEN_TTL)
        """
        issued_at = int(time.time())
        lifetime = self.ACCESS_TOKEN_TTL if ttl is None else ttl
        payload: dict[str, Any] = {
            "sub": user_id,
            "iat": issued_at,
            "exp": issued_at + lifetime,
            "type": "access",
        }
        if tenant_id:
            payload["tenant_id"] = tenant_id
        if roles:
            payload["roles"] = list(roles)
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode_token(self, token: str) -> TokenClaims:
        """Decode a token of any type.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is invalid or malformed
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        return TokenClaims(
            user_id=str(payload.get("sub", "")),
            tenant_id=payload.get("tenant_id"),
            roles=_roles(payload),
            exp=payload.get("exp", 0),
            iat=payload.get("iat", 0),
            type=payload.get("type", "access"),
        )

    def verify_access_token(self, token: str) -> TokenClaims:
        """Decode a token and require it to be an access token.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is invalid or of another type
        """
        claims = self.decode_token(token)
        if claims.type != "access":
            raise InvalidTokenError(f"Expected an access token, got '{claims.type}'")
        return claims
