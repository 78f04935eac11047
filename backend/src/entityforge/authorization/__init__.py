"""Authorization context resolution and context value injection."""

from entityforge.authorization.types import (
    AuthorizableResourceParameter,
    AuthorizeContext,
    InjectableResourceParameter,
    InjectContextValue,
    PermissionOracle,
    ResourceLocator,
    ResourceOwner,
)
from entityforge.authorization.injector import ContextValueInjector
from entityforge.authorization.oracle import WorkspacePermissionOracle
from entityforge.authorization.resolver import AuthorizationContextResolver

__all__ = [
    "AuthorizableResourceParameter",
    "AuthorizeContext",
    "InjectableResourceParameter",
    "InjectContextValue",
    "PermissionOracle",
    "ResourceLocator",
    "ResourceOwner",
    "ContextValueInjector",
    "WorkspacePermissionOracle",
    "AuthorizationContextResolver",
]
