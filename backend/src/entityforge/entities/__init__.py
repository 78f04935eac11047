"""Entity schema management: models, services and operations.

Usage:
    from entityforge.entities import EntityResolver, InMemoryEntityService

    entity_service = InMemoryEntityService()
    resolver = EntityResolver(entity_service, InMemoryUserService())
    dispatcher = OperationDispatcher.with_oracle(
        resolver.operations(), WorkspacePermissionOracle(entity_service)
    )
"""

from entityforge.entities.memory import InMemoryEntityService, InMemoryUserService
from entityforge.entities.models import (
    CURRENT_VERSION_NUMBER,
    App,
    AppRole,
    Entity,
    EntityField,
    EntityPermission,
    EntityPermissionField,
    EntityPermissionRole,
    EntityVersion,
    EnumEntityAction,
    EnumEntityPermissionType,
    User,
    Workspace,
)
from entityforge.entities.resolver import DERIVED_FIELDS, EntityResolver
from entityforge.entities.service import EntityService, UserService
from entityforge.entities.validation import validate_field_mutation_args

__all__ = [
    "InMemoryEntityService",
    "InMemoryUserService",
    "CURRENT_VERSION_NUMBER",
    "App",
    "AppRole",
    "Entity",
    "EntityField",
    "EntityPermission",
    "EntityPermissionField",
    "EntityPermissionRole",
    "EntityVersion",
    "EnumEntityAction",
    "EnumEntityPermissionType",
    "User",
    "Workspace",
    "DERIVED_FIELDS",
    "EntityResolver",
    "EntityService",
    "UserService",
    "validate_field_mutation_args",
]
