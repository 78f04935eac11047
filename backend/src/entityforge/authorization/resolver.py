"""Authorization context resolution.

Reads the resource id an operation declares it acts on out of the
operation's arguments and asks the permission oracle whether the caller
may proceed. Runs before the operation handler; a failure here means the
handler never executes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from entityforge.auth.permissions import AccessAction
from entityforge.auth.types import UserContext
from entityforge.authorization.types import AuthorizeContext, PermissionOracle
from entityforge.core.errors import AuthorizationDenied, ResourceResolutionFailed
from entityforge.core.paths import PathMissing, PathNotTraversable, resolve_path

if TYPE_CHECKING:
    from entityforge.operations.types import Handler, Invocation

logger = logging.getLogger(__name__)


class AuthorizationContextResolver:
    """Interceptor enforcing an operation's AuthorizeContext descriptor."""

    def __init__(self, oracle: PermissionOracle):
        self._oracle = oracle

    def resolve_resource_id(self, descriptor: AuthorizeContext, args: Any) -> str:
        """Extract the resource id named by ``descriptor`` from ``args``.

        Raises:
            ResourceResolutionFailed: If the path is missing, descends into a
                scalar, or does not end at a string/integer id
        """
        result = resolve_path(args, descriptor.path)

        if isinstance(result, PathMissing):
            raise ResourceResolutionFailed(
                f"Cannot resolve {descriptor.resource.value}: "
                f"argument '{descriptor.path}' is not set"
            )
        if isinstance(result, PathNotTraversable):
            raise ResourceResolutionFailed(
                f"Cannot resolve {descriptor.resource.value}: "
                f"'{result.traversed}' is a {result.node_type}, not an object"
            )

        value = result.value
        if isinstance(value, bool) or not isinstance(value, (str, int)) or value == "":
            raise ResourceResolutionFailed(
                f"Cannot resolve {descriptor.resource.value}: "
                f"argument '{descriptor.path}' is not an id"
            )
        return str(value)

    async def authorize(
        self,
        descriptor: AuthorizeContext,
        args: Any,
        user_context: UserContext | None,
        action: AccessAction,
    ) -> str:
        """Resolve the resource id and check the caller's access to it.

        Returns:
            The resolved resource id

        Raises:
            ResourceResolutionFailed: If the resource cannot be determined
            AuthorizationDenied: If the oracle denies access
        """
        resource_id = self.resolve_resource_id(descriptor, args)

        allowed = await self._oracle.may_access(
            user_context, descriptor.resource, resource_id, action
        )
        if not allowed:
            logger.info(
                "Denied %s on %s %s for user %s",
                action.value,
                descriptor.resource.value,
                resource_id,
                user_context.user_id if user_context else None,
            )
            raise AuthorizationDenied(
                f"User does not have access to {descriptor.resource.value} {resource_id}"
            )
        return resource_id

    async def __call__(self, invocation: Invocation, call_next: Handler) -> Any:
        descriptor = invocation.operation.authorize
        if descriptor is not None:
            await self.authorize(
                descriptor,
                invocation.args,
                invocation.user_context,
                invocation.operation.action,
            )
        return await call_next(invocation)
