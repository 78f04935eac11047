"""Context value injection into operation arguments."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from entityforge.auth.types import UserContext
from entityforge.authorization.types import InjectableResourceParameter, InjectContextValue
from entityforge.core.errors import ResourceResolutionFailed
from entityforge.core.paths import PathAssignmentError, assign_path

if TYPE_CHECKING:
    from entityforge.operations.types import Handler, Invocation


class ContextValueInjector:
    """Interceptor writing caller-derived values into the argument tree.

    Runs ahead of authorization so injected values can take part in
    resource resolution.
    """

    def value_for(
        self,
        parameter: InjectableResourceParameter,
        user_context: UserContext | None,
    ) -> str:
        if parameter is InjectableResourceParameter.USER_ID:
            value = user_context.user_id if user_context else None
        else:
            value = user_context.tenant_id if user_context else None

        if not value:
            raise ResourceResolutionFailed(
                f"Cannot inject {parameter.value}: the caller has none"
            )
        return value

    def inject(
        self,
        descriptor: InjectContextValue,
        args: dict[str, Any],
        user_context: UserContext | None,
    ) -> None:
        value = self.value_for(descriptor.parameter, user_context)
        try:
            assign_path(args, descriptor.path, value)
        except PathAssignmentError as e:
            raise ResourceResolutionFailed(
                f"Cannot inject {descriptor.parameter.value}: {e}"
            ) from e

    async def __call__(self, invocation: Invocation, call_next: Handler) -> Any:
        for descriptor in invocation.operation.inject:
            self.inject(descriptor, invocation.args, invocation.user_context)
        return await call_next(invocation)
