"""Role hierarchy and access actions."""

from __future__ import annotations

from enum import Enum

from entityforge.auth.types import UserContext


class AccessAction(str, Enum):
    """What an operation does to the resource it is authorized against."""

    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


# Role hierarchy - higher number = more permissions
# Higher roles automatically have all permissions of lower roles
ROLE_HIERARCHY = {
    "readonly": 1,
    "user": 2,
    "manager": 3,
    "admin": 4,
}

# Minimum role required per action within the caller's workspace
ACTION_THRESHOLDS: dict[AccessAction, str] = {
    AccessAction.READ: "readonly",
    AccessAction.CREATE: "user",
    AccessAction.UPDATE: "user",
    AccessAction.DELETE: "manager",
}


def _role_level(role: str | None) -> int:
    """Return numeric level for a role name, 0 if unknown/None."""
    return ROLE_HIERARCHY.get(role or "", 0)


def user_role_level(user_context: UserContext | None) -> int:
    """Return the highest role level the caller holds."""
    if not user_context or not user_context.roles:
        return 0
    return max(_role_level(role) for role in user_context.roles)


def has_role_or_higher(user_context: UserContext | None, required_role: str) -> bool:
    """Check if user has the required role or a higher one.

    Args:
        user_context: The user context
        required_role: The minimum required role

    Returns:
        True if user has the required role or higher
    """
    return user_role_level(user_context) >= ROLE_HIERARCHY.get(required_role, 999)


def can_perform(user_context: UserContext | None, action: AccessAction) -> tuple[bool, str | None]:
    """Check the caller's role against the threshold for an action.

    Returns:
        Tuple of (allowed, error_message). error_message is None if allowed.
    """
    required_role = ACTION_THRESHOLDS[action]
    if not has_role_or_higher(user_context, required_role):
        return False, f"{required_role.capitalize()} role or higher required to {action.value}"
    return True, None
