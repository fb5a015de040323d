"""Type definitions for authentication."""

from dataclasses import dataclass, field


@dataclass
class TokenClaims:
    """Claims embedded in a JWT access token.

    Attributes:
        user_id: The authenticated user's ID
        tenant_id: The active tenant ID (if any)
        roles: Role names granted to the user
        exp: Token expiration timestamp
        iat: Token issued-at timestamp
        type: Token type (only "access" tokens authenticate requests)
    """

    user_id: str
    tenant_id: str | None = None
    roles: list[str] = field(default_factory=list)
    exp: int = 0
    iat: int = 0
    type: str = "access"


@dataclass
class UserContext:
    """The authenticated user a request acts for.

    Authorize predicates and ``ViewsConfig`` user resolution read this
    through ``RequestContext.user``.
    """

    user_id: str | None = None
    tenant_id: str | None = None
    roles: list[str] = field(default_factory=list)

    def has_role(self, role: str) -> bool:
        return role in self.roles
