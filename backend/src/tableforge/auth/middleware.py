"""Request authentication: bearer JWT to ``request.state.user_context``."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from tableforge.auth.jwt_service import JWTError, JWTService
from tableforge.auth.types import UserContext
from tableforge.core.types import RequestContext

logger = logging.getLogger(__name__)

UNAUTHENTICATED_PATHS = ("/docs", "/openapi.json", "/redoc", "/health")


def _bearer_token(request: Request) -> str | None:
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not credentials:
        return None
    return credentials.strip()


class AuthMiddleware(BaseHTTPMiddleware):
    """Identifies the caller from an ``Authorization: Bearer`` header.

    Anonymous and badly authenticated requests pass through with
    ``user_context`` set to None; whether they may run an action or
    export is up to the table's authorize predicates.
    """

    def __init__(self, app, jwt_service: JWTService):
        super().__init__(app)
        self._jwt_service = jwt_service

    def _authenticate(self, request: Request) -> UserContext | None:
        if request.url.path.startswith(UNAUTHENTICATED_PATHS):
            return None
        token = _bearer_token(request)
        if not token:
            return None
        try:
            claims = self._jwt_service.verify_access_token(token)
        except JWTError as e:
            logger.debug("Ignoring bearer token on %s: %s", request.url.path, e)
            return None
        return UserContext(user_id=claims.user_id, tenant_id=claims.tenant_id, roles=claims.roles)

    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.user_context = self._authenticate(request)
        return await call_next(request)


def get_user_context(request: Request) -> UserContext | None:
    """The authenticated user, or None for anonymous requests."""
    return getattr(request.state, "user_context", None)


def get_request_context(request: Request) -> RequestContext:
    """FastAPI dependency building the context handed to table callbacks."""
    return RequestContext(user=get_user_context(request), request=request)
