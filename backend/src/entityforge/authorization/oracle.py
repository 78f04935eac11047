"""Workspace-scoped permission oracle."""

import logging

from entityforge.auth.permissions import AccessAction, can_perform
from entityforge.auth.types import UserContext
from entityforge.authorization.types import (
    AuthorizableResourceParameter,
    ResourceLocator,
)
from entityforge.core.errors import ResourceResolutionFailed

logger = logging.getLogger(__name__)


class WorkspacePermissionOracle:
    """Grants access to resources owned by the caller's active workspace.

    A resource is accessible when it belongs to the caller's workspace and
    the caller's role meets the threshold for the requested action.
    """

    def __init__(self, locator: ResourceLocator):
        self._locator = locator

    async def may_access(
        self,
        user_context: UserContext | None,
        resource: AuthorizableResourceParameter,
        resource_id: str,
        action: AccessAction,
    ) -> bool:
        if user_context is None or not user_context.tenant_id:
            return False

        owner = await self._locator.locate_resource(resource, resource_id)
        if owner is None:
            raise ResourceResolutionFailed(f"{resource.value} {resource_id} does not exist")

        if owner.workspace_id != user_context.tenant_id:
            return False

        allowed, reason = can_perform(user_context, action)
        if not allowed:
            logger.debug("Role check failed for %s: %s", user_context.user_id, reason)
        return allowed
