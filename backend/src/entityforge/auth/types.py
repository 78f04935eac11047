"""Type definitions for authentication."""

from dataclasses import dataclass, field


@dataclass
class UserContext:
    """The caller an operation runs on behalf of.

    Attributes:
        user_id: The authenticated user's ID
        tenant_id: The caller's active workspace ID
        roles: Role names the caller holds in that workspace
    """

    user_id: str | None = None
    tenant_id: str | None = None
    roles: list[str] = field(default_factory=list)


@dataclass
class TokenClaims:
    """Claims embedded in a JWT access token.

    Attributes:
        user_id: The authenticated user's ID
        tenant_id: The active workspace ID
        role: The user's role within the workspace
        exp: Token expiration timestamp
        iat: Token issued-at timestamp
        type: Token type
    """

    user_id: str
    tenant_id: str | None = None
    role: str | None = None
    exp: int = 0
    iat: int = 0
    type: str = "access"

    def to_user_context(self) -> UserContext:
        return UserContext(
            user_id=self.user_id,
            tenant_id=self.tenant_id,
            roles=[self.role] if self.role else [],
        )
