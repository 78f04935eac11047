"""Declarative authorization and injection descriptors.

An operation declares which resource it acts on by naming a resource kind
and the dotted path in its arguments that holds the resource id:

    AuthorizeContext(AuthorizableResourceParameter.ENTITY_ID, "data.entity.connect.id")

and which caller-derived values must be written into its arguments before
it runs:

    InjectContextValue(InjectableResourceParameter.USER_ID, "userId")
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from entityforge.auth.permissions import AccessAction
from entityforge.auth.types import UserContext
from entityforge.core.paths import ArgumentPath


class AuthorizableResourceParameter(str, Enum):
    """Kind of resource an authorization check targets."""

    WORKSPACE_ID = "workspaceId"
    APP_ID = "appId"
    ENTITY_ID = "entityId"
    ENTITY_FIELD_ID = "entityFieldId"
    ENTITY_PERMISSION_FIELD_ID = "entityPermissionFieldId"


class InjectableResourceParameter(str, Enum):
    """Kind of caller-derived value that can be injected into arguments."""

    USER_ID = "userId"
    WORKSPACE_ID = "workspaceId"


@dataclass(frozen=True)
class AuthorizeContext:
    resource: AuthorizableResourceParameter
    path: ArgumentPath

    def __post_init__(self):
        if isinstance(self.path, str):
            object.__setattr__(self, "path", ArgumentPath.parse(self.path))


@dataclass(frozen=True)
class InjectContextValue:
    parameter: InjectableResourceParameter
    path: ArgumentPath

    def __post_init__(self):
        if isinstance(self.path, str):
            object.__setattr__(self, "path", ArgumentPath.parse(self.path))


@dataclass(frozen=True)
class ResourceOwner:
    """Where a resource sits in the workspace → app → entity hierarchy."""

    workspace_id: str
    app_id: str | None = None
    entity_id: str | None = None


class PermissionOracle(Protocol):
    """Decides whether a caller may act on a resource."""

    async def may_access(
        self,
        user_context: UserContext | None,
        resource: AuthorizableResourceParameter,
        resource_id: str,
        action: AccessAction,
    ) -> bool:
        """Return True if the caller may perform ``action`` on the resource.

        Raises:
            ResourceResolutionFailed: If the resource does not exist
        """
        ...


class ResourceLocator(Protocol):
    """Maps a resource id to its owning workspace, app and entity."""

    async def locate_resource(
        self,
        resource: AuthorizableResourceParameter,
        resource_id: str,
    ) -> ResourceOwner | None:
        """Return the owner of the resource, or None if it does not exist."""
        ...
