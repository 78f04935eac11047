"""Operation descriptors and dispatch."""

from entityforge.operations.types import (
    Handler,
    Interceptor,
    Invocation,
    OperationDescriptor,
    OperationHandler,
    OperationKind,
)
from entityforge.operations.dispatcher import (
    OperationDispatcher,
    compose,
    require_caller,
)

__all__ = [
    "Handler",
    "Interceptor",
    "Invocation",
    "OperationDescriptor",
    "OperationHandler",
    "OperationKind",
    "OperationDispatcher",
    "compose",
    "require_caller",
]
