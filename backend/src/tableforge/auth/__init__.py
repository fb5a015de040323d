"""Authentication: bearer JWTs to a user context."""

from tableforge.auth.jwt_service import (
    InvalidTokenError,
    JWTError,
    JWTService,
    TokenExpiredError,
)
from tableforge.auth.middleware import (
    AuthMiddleware,
    get_request_context,
    get_user_context,
)
from tableforge.auth.types import TokenClaims, UserContext

__all__ = [
    "AuthMiddleware",
    "InvalidTokenError",
    "JWTError",
    "JWTService",
    "TokenClaims",
    "TokenExpiredError",
    "UserContext",
    "get_request_context",
    "get_user_context",
]
