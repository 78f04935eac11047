"""Operation dispatch through an interceptor chain.

Each operation runs inside the same chain of interceptors, outermost
first:

1. require_caller: rejects invocations without an authenticated caller
2. ContextValueInjector: writes declared caller values into the arguments
3. AuthorizationContextResolver: resolves the declared resource id and
   asks the permission oracle
4. the operation handler

An interceptor either awaits ``call_next(invocation)`` or raises; nothing
after a failed interceptor runs.
"""

import copy
import logging
from collections.abc import Iterable, Sequence
from functools import partial
from typing import Any

from entityforge.auth.types import UserContext
from entityforge.authorization.injector import ContextValueInjector
from entityforge.authorization.resolver import AuthorizationContextResolver
from entityforge.authorization.types import PermissionOracle
from entityforge.core.errors import AuthenticationRequired, UnknownOperationError
from entityforge.operations.types import (
    Handler,
    Interceptor,
    Invocation,
    OperationDescriptor,
)

logger = logging.getLogger(__name__)


async def require_caller(invocation: Invocation, call_next: Handler) -> Any:
    """Interceptor rejecting invocations without an authenticated caller."""
    user_context = invocation.user_context
    if user_context is None or not user_context.user_id:
        raise AuthenticationRequired("Authentication required")
    return await call_next(invocation)


async def call_handler(invocation: Invocation) -> Any:
    """Innermost link of every chain."""
    return await invocation.operation.handler(invocation.args, invocation.user_context)


def compose(interceptors: Sequence[Interceptor], handler: Handler) -> Handler:
    """Wrap ``handler`` so that ``interceptors[0]`` runs first."""
    chain = handler
    for interceptor in reversed(interceptors):
        chain = partial(interceptor, call_next=chain)
    return chain


class OperationDispatcher:
    """Routes operation calls by name through the interceptor chain."""

    def __init__(
        self,
        operations: Iterable[OperationDescriptor],
        interceptors: Sequence[Interceptor],
    ):
        self._operations: dict[str, OperationDescriptor] = {}
        for descriptor in operations:
            if descriptor.name in self._operations:
                raise ValueError(f"Operation '{descriptor.name}' is declared twice")
            self._operations[descriptor.name] = descriptor
        self._chain = compose(list(interceptors), call_handler)

    @classmethod
    def with_oracle(
        cls,
        operations: Iterable[OperationDescriptor],
        oracle: PermissionOracle,
    ) -> "OperationDispatcher":
        """Create a dispatcher with the standard interceptor chain."""
        return cls(
            operations,
            [
                require_caller,
                ContextValueInjector(),
                AuthorizationContextResolver(oracle),
            ],
        )

    def get(self, name: str) -> OperationDescriptor:
        """Get a registered operation by name.

        Raises:
            UnknownOperationError: If no operation has that name
        """
        if name not in self._operations:
            raise UnknownOperationError(f"Unknown operation '{name}'")
        return self._operations[name]

    def list_operations(self) -> list[OperationDescriptor]:
        """List all operations sorted by name."""
        return [self._operations[name] for name in sorted(self._operations)]

    async def dispatch(
        self,
        name: str,
        args: dict[str, Any] | None,
        user_context: UserContext | None,
    ) -> Any:
        """Run an operation.

        The argument tree is deep-copied so injected values never leak back
        into the caller's data.
        """
        descriptor = self.get(name)
        invocation = Invocation(
            operation=descriptor,
            args=copy.deepcopy(args) if args else {},
            user_context=user_context,
        )
        logger.debug("Dispatching %s %s", descriptor.kind.value, name)
        return await self._chain(invocation)
