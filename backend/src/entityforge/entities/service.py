"""Collaborator interfaces the entity operations call.

Arguments follow the shape of the operation arguments: ``where`` selects
records, ``data`` carries the payload, nested ``connect`` objects reference
existing records by id. Implementations raise NotFoundError for a mutation
on a missing record and DataConflictError for invariant violations.
"""

from typing import Any, Protocol, runtime_checkable

from entityforge.auth.types import UserContext
from entityforge.entities.models import (
    Entity,
    EntityField,
    EntityPermission,
    EntityPermissionField,
    EntityVersion,
    User,
)


@runtime_checkable
class EntityService(Protocol):
    """Storage and query service for entities, fields, versions and permissions."""

    async def entity(self, args: dict[str, Any]) -> Entity | None: ...

    async def entities(self, args: dict[str, Any]) -> list[Entity]: ...

    async def create_one_entity(self, args: dict[str, Any], user: UserContext) -> Entity: ...

    async def update_one_entity(
        self, args: dict[str, Any], user: UserContext
    ) -> Entity | None: ...

    async def delete_one_entity(
        self, args: dict[str, Any], user: UserContext
    ) -> Entity | None: ...

    async def acquire_lock(self, args: dict[str, Any], user: UserContext) -> Entity | None: ...

    async def commit_entity_version(self, entity_id: str, user: UserContext) -> EntityVersion: ...

    async def get_fields(self, entity_id: str, args: dict[str, Any]) -> list[EntityField]: ...

    async def get_permissions(self, entity_id: str) -> list[EntityPermission]: ...

    async def get_versions(self, args: dict[str, Any]) -> list[EntityVersion]: ...

    async def create_field(self, args: dict[str, Any], user: UserContext) -> EntityField: ...

    async def create_field_by_display_name(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityField: ...

    async def update_field(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityField | None: ...

    async def delete_field(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityField | None: ...

    async def update_entity_permission(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityPermission: ...

    async def update_entity_permission_roles(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityPermission: ...

    async def add_entity_permission_field(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityPermissionField: ...

    async def delete_entity_permission_field(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityPermissionField: ...

    async def update_entity_permission_field_roles(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityPermissionField: ...


@runtime_checkable
class UserService(Protocol):
    """User lookup."""

    async def find_user(self, args: dict[str, Any]) -> User | None: ...
