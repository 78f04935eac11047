"""Authentication module for EntityForge."""

from entityforge.auth.types import TokenClaims, UserContext
from entityforge.auth.jwt_service import JWTError, JWTService
from entityforge.auth.middleware import AuthMiddleware, get_user_context
from entityforge.auth.permissions import (
    ACTION_THRESHOLDS,
    ROLE_HIERARCHY,
    AccessAction,
    can_perform,
    has_role_or_higher,
)

__all__ = [
    "TokenClaims",
    "UserContext",
    "JWTError",
    "JWTService",
    "AuthMiddleware",
    "get_user_context",
    "ACTION_THRESHOLDS",
    "ROLE_HIERARCHY",
    "AccessAction",
    "can_perform",
    "has_role_or_higher",
]
