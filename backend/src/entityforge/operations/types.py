"""Operation descriptor types.

- OperationDescriptor: static declaration of an operation (handler, access
  action, authorization and injection descriptors)
- Invocation: one call of an operation, carrying its own argument tree
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from entityforge.auth.permissions import AccessAction
from entityforge.auth.types import UserContext
from entityforge.authorization.types import AuthorizeContext, InjectContextValue


class OperationKind(str, Enum):
    QUERY = "query"
    MUTATION = "mutation"


# Operation handler signature: async (args, user_context) -> result
OperationHandler = Callable[[dict[str, Any], UserContext], Awaitable[Any]]


@dataclass(frozen=True)
class OperationDescriptor:
    """Declaration of a dispatchable operation.

    Attributes:
        name: Operation name used by callers (e.g., "createEntityField")
        kind: QUERY or MUTATION
        handler: Async function implementing the operation
        action: Access action checked against the authorized resource
        authorize: Resource the operation acts on, or None for no check
        inject: Caller-derived values written into the arguments first
        description: Human-readable description
    """

    name: str
    kind: OperationKind
    handler: OperationHandler
    action: AccessAction
    authorize: AuthorizeContext | None = None
    inject: tuple[InjectContextValue, ...] = ()
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "action": self.action.value,
            "authorize": {
                "resource": self.authorize.resource.value,
                "path": str(self.authorize.path),
            } if self.authorize else None,
            "inject": [
                {"parameter": i.parameter.value, "path": str(i.path)}
                for i in self.inject
            ],
            "description": self.description,
        }


@dataclass
class Invocation:
    operation: OperationDescriptor
    args: dict[str, Any]
    user_context: UserContext | None = None


# Chain signatures
Handler = Callable[[Invocation], Awaitable[Any]]
Interceptor = Callable[[Invocation, Handler], Awaitable[Any]]
