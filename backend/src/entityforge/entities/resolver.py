"""Entity operation handlers and derived-field resolvers.

EntityResolver turns the entity and user services into the operation
table served by the dispatcher. Handlers only run after the dispatcher's
interceptors have authenticated the caller, injected context values and
authorized the target resource.
"""

from typing import Any

from entityforge.auth.permissions import AccessAction
from entityforge.auth.types import UserContext
from entityforge.authorization.types import (
    AuthorizableResourceParameter,
    AuthorizeContext,
    InjectableResourceParameter,
    InjectContextValue,
)
from entityforge.core.errors import InvalidArgumentsError
from entityforge.entities.models import (
    Entity,
    EntityField,
    EntityPermission,
    EntityPermissionField,
    EntityVersion,
    User,
)
from entityforge.entities.service import EntityService, UserService
from entityforge.entities.validation import validate_field_mutation_args
from entityforge.operations.types import OperationDescriptor, OperationKind

DERIVED_FIELDS = ("fields", "permissions", "versions", "lockedByUser")

_ENTITY = AuthorizableResourceParameter.ENTITY_ID


class EntityResolver:
    """Entity queries, mutations and lazily resolved Entity fields."""

    def __init__(self, entity_service: EntityService, user_service: UserService):
        self.entity_service = entity_service
        self.user_service = user_service

    # -- Queries --------------------------------------------------------------

    async def entity(self, args: dict[str, Any], user: UserContext) -> Entity | None:
        return await self.entity_service.entity(args)

    async def entities(self, args: dict[str, Any], user: UserContext) -> list[Entity]:
        return await self.entity_service.entities(args)

    # -- Entity mutations -----------------------------------------------------

    async def create_one_entity(self, args: dict[str, Any], user: UserContext) -> Entity:
        return await self.entity_service.create_one_entity(args, user)

    async def delete_entity(self, args: dict[str, Any], user: UserContext) -> Entity | None:
        return await self.entity_service.delete_one_entity(args, user)

    async def update_entity(self, args: dict[str, Any], user: UserContext) -> Entity | None:
        return await self.entity_service.update_one_entity(args, user)

    async def lock_entity(self, args: dict[str, Any], user: UserContext) -> Entity | None:
        return await self.entity_service.acquire_lock(args, user)

    async def commit_entity_version(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityVersion:
        """Snapshot the working draft as a new version and release the lock."""
        return await self.entity_service.commit_entity_version(args["where"]["id"], user)

    # -- Permission mutations -------------------------------------------------

    async def update_entity_permission(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityPermission:
        return await self.entity_service.update_entity_permission(args, user)

    async def update_entity_permission_roles(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityPermission:
        return await self.entity_service.update_entity_permission_roles(args, user)

    async def add_entity_permission_field(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityPermissionField:
        return await self.entity_service.add_entity_permission_field(args, user)

    async def delete_entity_permission_field(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityPermissionField:
        return await self.entity_service.delete_entity_permission_field(args, user)

    async def update_entity_permission_field_roles(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityPermissionField:
        return await self.entity_service.update_entity_permission_field_roles(args, user)

    # -- Field mutations ------------------------------------------------------

    async def create_entity_field(self, args: dict[str, Any], user: UserContext) -> EntityField:
        validate_field_mutation_args(args)
        return await self.entity_service.create_field(args, user)

    async def create_entity_field_by_display_name(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityField:
        return await self.entity_service.create_field_by_display_name(args, user)

    async def delete_entity_field(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityField | None:
        return await self.entity_service.delete_field(args, user)

    async def update_entity_field(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityField | None:
        validate_field_mutation_args(args)
        return await self.entity_service.update_field(args, user)

    # -- Derived fields -------------------------------------------------------

    async def fields(
        self, entity: Entity, args: dict[str, Any] | None = None
    ) -> list[EntityField]:
        """Fields of the entity.

        Returns the fields loaded together with the entity when there are
        any, otherwise fetches the fields of the current version.
        """
        if entity.fields:
            return entity.fields
        return await self.entity_service.get_fields(entity.id, args or {})

    async def permissions(self, entity: Entity) -> list[EntityPermission]:
        return await self.entity_service.get_permissions(entity.id)

    async def versions(
        self, entity: Entity, args: dict[str, Any] | None = None
    ) -> list[EntityVersion]:
        """Versions of the entity.

        The caller's ``where`` is combined with the entity id, so a filter
        can narrow the result but never reach versions of other entities.
        """
        args = dict(args or {})
        scope = {"entity": {"id": entity.id}}
        where = args.get("where")
        args["where"] = {"AND": [where, scope]} if where else scope
        return await self.entity_service.get_versions(args)

    async def locked_by_user(self, entity: Entity) -> User | None:
        if not entity.locked_by_user_id:
            return None
        return await self.user_service.find_user({"where": {"id": entity.locked_by_user_id}})

    async def resolve_derived(
        self, entity: Entity, select: dict[str, Any] | None
    ) -> dict[str, Any]:
        """Serialize an entity with the requested derived fields.

        Args:
            entity: The entity to serialize
            select: Derived field names mapped to their arguments, e.g.
                ``{"fields": {"where": {"required": True}}, "lockedByUser": {}}``

        Raises:
            InvalidArgumentsError: If a selected name is not a derived field
        """
        result = entity.to_dict()
        for name, field_args in (select or {}).items():
            if name == "fields":
                result["fields"] = [f.to_dict() for f in await self.fields(entity, field_args)]
            elif name == "permissions":
                result["permissions"] = [p.to_dict() for p in await self.permissions(entity)]
            elif name == "versions":
                result["versions"] = [
                    v.to_dict() for v in await self.versions(entity, field_args)
                ]
            elif name == "lockedByUser":
                locker = await self.locked_by_user(entity)
                result["lockedByUser"] = locker.to_dict() if locker else None
            else:
                raise InvalidArgumentsError(
                    f"Unknown entity field '{name}'. Expected one of {list(DERIVED_FIELDS)}"
                )
        return result

    # -- Operation table ------------------------------------------------------

    def operations(self) -> list[OperationDescriptor]:
        """Describe every entity operation for the dispatcher."""
        query = OperationKind.QUERY
        mutation = OperationKind.MUTATION
        read = AccessAction.READ
        update = AccessAction.UPDATE

        return [
            OperationDescriptor(
                "entity", query, self.entity, read,
                AuthorizeContext(_ENTITY, "where.id"),
                description="Get one entity, optionally at a version",
            ),
            OperationDescriptor(
                "entities", query, self.entities, read,
                AuthorizeContext(AuthorizableResourceParameter.APP_ID, "where.app.id"),
                description="List the entities of an app",
            ),
            OperationDescriptor(
                "createOneEntity", mutation, self.create_one_entity, AccessAction.CREATE,
                AuthorizeContext(AuthorizableResourceParameter.APP_ID, "data.app.connect.id"),
                description="Create an entity in an app",
            ),
            OperationDescriptor(
                "deleteEntity", mutation, self.delete_entity, AccessAction.DELETE,
                AuthorizeContext(_ENTITY, "where.id"),
                description="Mark an entity as deleted",
            ),
            OperationDescriptor(
                "updateEntity", mutation, self.update_entity, update,
                AuthorizeContext(_ENTITY, "where.id"),
                description="Update entity names and description",
            ),
            OperationDescriptor(
                "lockEntity", mutation, self.lock_entity, update,
                AuthorizeContext(_ENTITY, "where.id"),
                inject=(InjectContextValue(InjectableResourceParameter.USER_ID, "userId"),),
                description="Lock an entity for editing by the caller",
            ),
            OperationDescriptor(
                "commitEntityVersion", mutation, self.commit_entity_version, update,
                AuthorizeContext(_ENTITY, "where.id"),
                description="Commit the working draft as a new version and unlock the entity",
            ),
            OperationDescriptor(
                "updateEntityPermission", mutation, self.update_entity_permission, update,
                AuthorizeContext(_ENTITY, "where.id"),
                description="Set the permission type of an action",
            ),
            OperationDescriptor(
                "updateEntityPermissionRoles", mutation,
                self.update_entity_permission_roles, update,
                AuthorizeContext(_ENTITY, "data.entity.connect.id"),
                description="Add or remove app roles on an entity permission",
            ),
            OperationDescriptor(
                "addEntityPermissionField", mutation, self.add_entity_permission_field, update,
                AuthorizeContext(_ENTITY, "data.entity.connect.id"),
                description="Add a field-level override to an entity permission",
            ),
            OperationDescriptor(
                "deleteEntityPermissionField", mutation,
                self.delete_entity_permission_field, update,
                AuthorizeContext(_ENTITY, "where.entityId"),
                description="Remove a field-level permission override",
            ),
            OperationDescriptor(
                "updateEntityPermissionFieldRoles", mutation,
                self.update_entity_permission_field_roles, update,
                AuthorizeContext(
                    AuthorizableResourceParameter.ENTITY_PERMISSION_FIELD_ID,
                    "data.permissionField.connect.id",
                ),
                description="Add or remove roles on a field-level permission override",
            ),
            OperationDescriptor(
                "createEntityField", mutation, self.create_entity_field, update,
                AuthorizeContext(_ENTITY, "data.entity.connect.id"),
                description="Create a field",
            ),
            OperationDescriptor(
                "createEntityFieldByDisplayName", mutation,
                self.create_entity_field_by_display_name, update,
                AuthorizeContext(_ENTITY, "data.entity.connect.id"),
                description="Create a field with name and type inferred from its display name",
            ),
            OperationDescriptor(
                "deleteEntityField", mutation, self.delete_entity_field, AccessAction.DELETE,
                AuthorizeContext(AuthorizableResourceParameter.ENTITY_FIELD_ID, "where.id"),
                description="Delete a field and its related field",
            ),
            OperationDescriptor(
                "updateEntityField", mutation, self.update_entity_field, update,
                AuthorizeContext(AuthorizableResourceParameter.ENTITY_FIELD_ID, "where.id"),
                description="Update a field",
            ),
        ]
