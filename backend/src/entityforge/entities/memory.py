"""In-memory entity and user services.

Default backend for development and tests. Implements the EntityService,
UserService and ResourceLocator interfaces over plain dictionaries.

Structural mutations (fields, permissions, entity updates) operate on
version 0 and take the entity lock for the caller first: an entity locked
by someone else cannot be edited. Committing a version snapshots version 0
and releases the lock. No method awaits between its checks and its writes,
so each mutation is atomic on the event loop.
"""

import copy
import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from entityforge.auth.types import UserContext
from entityforge.authorization.types import AuthorizableResourceParameter, ResourceOwner
from entityforge.core.errors import DataConflictError, InvalidArgumentsError, NotFoundError
from entityforge.core.paths import PathFound, resolve_path
from entityforge.core.types import EnumDataType, default_properties, is_system_data_type
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
from entityforge.entities.naming import camel_case_name, suggest_field
from entityforge.entities.query import apply_query

logger = logging.getLogger(__name__)

SYSTEM_FIELDS = [
    ("id", "Id", EnumDataType.ID),
    ("createdAt", "Created At", EnumDataType.CREATED_AT),
    ("updatedAt", "Updated At", EnumDataType.UPDATED_AT),
]

ENTITY_UPDATABLE_KEYS = {"name", "displayName", "pluralDisplayName", "description"}
FIELD_UPDATABLE_KEYS = {
    "name",
    "displayName",
    "dataType",
    "properties",
    "required",
    "searchable",
    "description",
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


def _required(args: dict[str, Any], path: str) -> Any:
    result = resolve_path(args, path)
    if not isinstance(result, PathFound):
        raise InvalidArgumentsError(f"Argument '{path}' is required")
    return result.value


def _parse_action(value: Any) -> EnumEntityAction:
    try:
        return EnumEntityAction(value)
    except ValueError:
        raise InvalidArgumentsError(f"Unknown entity action '{value}'")


def _parse_data_type(value: Any) -> EnumDataType:
    try:
        return EnumDataType(value)
    except ValueError:
        raise InvalidArgumentsError(f"Unknown data type '{value}'")


def _ids(items: list[dict[str, Any]] | None) -> list[str]:
    return [item["id"] for item in items or [] if item.get("id")]


class InMemoryEntityService:
    """Entity storage backed by dictionaries."""

    def __init__(self) -> None:
        self._workspaces: dict[str, Workspace] = {}
        self._apps: dict[str, App] = {}
        self._app_roles: dict[str, AppRole] = {}
        self._entities: dict[str, Entity] = {}
        self._versions: dict[str, list[EntityVersion]] = {}

    # -- Registration ---------------------------------------------------------

    def add_workspace(self, workspace_id: str, name: str) -> Workspace:
        workspace = Workspace(id=workspace_id, name=name)
        self._workspaces[workspace_id] = workspace
        return workspace

    def add_app(self, app_id: str, workspace_id: str, name: str, description: str = "") -> App:
        if workspace_id not in self._workspaces:
            raise NotFoundError(f"Workspace {workspace_id} not found")
        app = App(id=app_id, workspace_id=workspace_id, name=name, description=description)
        self._apps[app_id] = app
        return app

    def add_app_role(
        self,
        app_id: str,
        name: str,
        display_name: str,
        role_id: str | None = None,
    ) -> AppRole:
        if app_id not in self._apps:
            raise NotFoundError(f"App {app_id} not found")
        role = AppRole(id=role_id or _new_id(), app_id=app_id, name=name, display_name=display_name)
        self._app_roles[role.id] = role
        return role

    # -- Internal lookups -----------------------------------------------------

    def _live_entity(self, entity_id: str) -> Entity:
        entity = self._entities.get(entity_id)
        if entity is None or entity.deleted_at is not None:
            raise NotFoundError(f"Entity {entity_id} not found")
        return entity

    def _current_version(self, entity_id: str) -> EntityVersion:
        return self._versions[entity_id][0]

    def _live_entities(self) -> list[Entity]:
        return [e for e in self._entities.values() if e.deleted_at is None]

    def _find_field(self, field_id: str) -> tuple[Entity, EntityField] | None:
        for entity in self._live_entities():
            for entity_field in self._current_version(entity.id).fields:
                if entity_field.id == field_id:
                    return entity, entity_field
        return None

    def _find_permission_field(
        self, permission_field_id: str
    ) -> tuple[Entity, EntityPermission, EntityPermissionField] | None:
        for entity in self._live_entities():
            for permission in self._current_version(entity.id).permissions:
                for permission_field in permission.permission_fields:
                    if permission_field.id == permission_field_id:
                        return entity, permission, permission_field
        return None

    def _permission(self, entity_id: str, action: EnumEntityAction) -> EntityPermission:
        for permission in self._current_version(entity_id).permissions:
            if permission.action == action:
                return permission
        raise NotFoundError(f"Permission {action.value} not found for entity {entity_id}")

    def _field_by_name(self, entity_id: str, name: str) -> EntityField | None:
        for entity_field in self._current_version(entity_id).fields:
            if entity_field.name == name:
                return entity_field
        return None

    def _snapshot(self, entity: Entity, fields: list[EntityField] | None = None) -> Entity:
        return replace(entity, fields=fields)

    # -- Locking --------------------------------------------------------------

    def _ensure_lockable(self, entity: Entity, user: UserContext) -> None:
        if entity.locked_by_user_id and entity.locked_by_user_id != user.user_id:
            raise DataConflictError(
                f"Entity {entity.id} is already locked by another user - "
                f"{entity.locked_by_user_id}"
            )

    def _lock(self, entity: Entity, user: UserContext) -> None:
        self._ensure_lockable(entity, user)
        if entity.locked_by_user_id != user.user_id:
            entity.locked_by_user_id = user.user_id
            entity.locked_at = _now()
            logger.info("Entity %s locked by %s", entity.id, user.user_id)

    async def acquire_lock(self, args: dict[str, Any], user: UserContext) -> Entity | None:
        entity = self._live_entity(_required(args, "where.id"))
        holder = UserContext(
            user_id=args.get("userId") or user.user_id,
            tenant_id=user.tenant_id,
            roles=user.roles,
        )
        self._lock(entity, holder)
        return self._snapshot(entity)

    # -- Entities -------------------------------------------------------------

    async def entity(self, args: dict[str, Any]) -> Entity | None:
        entity = self._entities.get(_required(args, "where.id"))
        if entity is None or entity.deleted_at is not None:
            return None

        version_number = args.get("version")
        if version_number is None:
            return self._snapshot(entity)

        for version in self._versions[entity.id]:
            if version.version_number == version_number:
                return self._snapshot(entity, fields=list(version.fields))
        return None

    async def entities(self, args: dict[str, Any]) -> list[Entity]:
        found = apply_query(self._live_entities(), args, lambda e: e.to_dict())
        return [self._snapshot(e) for e in found]

    def _check_entity_name(self, app_id: str, name: str, exclude_id: str | None = None) -> None:
        for other in self._live_entities():
            if (
                other.app_id == app_id
                and other.id != exclude_id
                and other.name.lower() == name.lower()
            ):
                raise DataConflictError(f"An entity named '{name}' already exists")

    async def create_one_entity(self, args: dict[str, Any], user: UserContext) -> Entity:
        data = args.get("data") or {}
        app_id = _required(args, "data.app.connect.id")
        name = _required(args, "data.name")
        if app_id not in self._apps:
            raise NotFoundError(f"App {app_id} not found")
        self._check_entity_name(app_id, name)

        now = _now()
        display_name = data.get("displayName") or name
        entity = Entity(
            id=_new_id(),
            app_id=app_id,
            name=name,
            display_name=display_name,
            plural_display_name=data.get("pluralDisplayName") or f"{display_name}s",
            description=data.get("description") or "",
            locked_by_user_id=user.user_id,
            locked_at=now,
            created_at=now,
            updated_at=now,
        )

        version_id = _new_id()
        fields = [
            EntityField(
                id=_new_id(),
                permanent_id=_new_id(),
                entity_version_id=version_id,
                name=field_name,
                display_name=field_display_name,
                data_type=data_type,
                properties=default_properties(data_type),
                required=True,
                created_at=now,
                updated_at=now,
            )
            for field_name, field_display_name, data_type in SYSTEM_FIELDS
        ]
        permissions = [
            EntityPermission(id=_new_id(), entity_version_id=version_id, action=action)
            for action in EnumEntityAction
        ]

        self._entities[entity.id] = entity
        self._versions[entity.id] = [
            EntityVersion(
                id=version_id,
                entity_id=entity.id,
                version_number=CURRENT_VERSION_NUMBER,
                created_at=now,
                fields=fields,
                permissions=permissions,
            )
        ]
        logger.info("Created entity %s (%s) in app %s", entity.name, entity.id, app_id)
        return self._snapshot(entity)

    async def update_one_entity(self, args: dict[str, Any], user: UserContext) -> Entity | None:
        entity = self._live_entity(_required(args, "where.id"))
        data = args.get("data") or {}
        unknown = set(data) - ENTITY_UPDATABLE_KEYS
        if unknown:
            raise InvalidArgumentsError(f"Cannot update entity attributes: {sorted(unknown)}")
        if "name" in data:
            self._check_entity_name(entity.app_id, data["name"], exclude_id=entity.id)

        self._lock(entity, user)
        if "name" in data:
            entity.name = data["name"]
        if "displayName" in data:
            entity.display_name = data["displayName"]
        if "pluralDisplayName" in data:
            entity.plural_display_name = data["pluralDisplayName"]
        if "description" in data:
            entity.description = data["description"] or ""
        entity.updated_at = _now()
        return self._snapshot(entity)

    async def delete_one_entity(self, args: dict[str, Any], user: UserContext) -> Entity | None:
        entity = self._live_entity(_required(args, "where.id"))
        self._ensure_lockable(entity, user)

        mirrors = [
            self._find_field(f.related_field_id)
            for f in self._current_version(entity.id).fields
            if f.related_field_id
        ]
        mirrors = [m for m in mirrors if m is not None and m[0].id != entity.id]
        for related_entity, _ in mirrors:
            self._ensure_lockable(related_entity, user)

        self._lock(entity, user)
        for related_entity, mirror in mirrors:
            self._lock(related_entity, user)
            self._remove_field(related_entity, mirror)

        entity.deleted_at = _now()
        logger.info("Deleted entity %s by %s", entity.id, user.user_id)
        return self._snapshot(entity)

    # -- Versions -------------------------------------------------------------

    async def get_versions(self, args: dict[str, Any]) -> list[EntityVersion]:
        versions = [
            version
            for entity in self._live_entities()
            for version in self._versions[entity.id]
        ]
        return apply_query(versions, args, lambda v: v.to_dict())

    async def commit_entity_version(self, entity_id: str, user: UserContext) -> EntityVersion:
        """Snapshot version 0 as the next version and release the lock."""
        entity = self._live_entity(entity_id)
        self._ensure_lockable(entity, user)

        versions = self._versions[entity.id]
        current = versions[0]
        version_id = _new_id()
        # One deepcopy keeps overrides pointing at the snapshot fields
        fields, permissions = copy.deepcopy((current.fields, current.permissions))
        for entity_field in fields:
            entity_field.id = _new_id()
            entity_field.entity_version_id = version_id
        for permission in permissions:
            permission.id = _new_id()
            permission.entity_version_id = version_id
            for role in permission.permission_roles:
                role.entity_version_id = version_id
            for permission_field in permission.permission_fields:
                permission_field.permission_id = permission.id
                permission_field.entity_version_id = version_id

        version = EntityVersion(
            id=version_id,
            entity_id=entity.id,
            version_number=max(v.version_number for v in versions) + 1,
            created_at=_now(),
            commit_user_id=user.user_id,
            fields=fields,
            permissions=permissions,
        )
        versions.append(version)

        entity.locked_by_user_id = None
        entity.locked_at = None
        logger.info("Committed version %d of entity %s", version.version_number, entity.id)
        return version

    # -- Fields ---------------------------------------------------------------

    async def get_fields(self, entity_id: str, args: dict[str, Any]) -> list[EntityField]:
        entity = self._entities.get(entity_id)
        if entity is None or entity.deleted_at is not None:
            return []
        return apply_query(self._current_version(entity_id).fields, args, lambda f: f.to_dict())

    def _check_field_name(self, entity_id: str, name: str, exclude_id: str | None = None) -> None:
        existing = self._field_by_name(entity_id, name)
        if existing is not None and existing.id != exclude_id:
            raise DataConflictError(f"A field named '{name}' already exists")

    def _new_field(
        self,
        entity_id: str,
        name: str,
        display_name: str,
        data_type: EnumDataType,
        properties: dict[str, Any],
        data: dict[str, Any] | None = None,
    ) -> EntityField:
        data = data or {}
        now = _now()
        return EntityField(
            id=_new_id(),
            permanent_id=_new_id(),
            entity_version_id=self._current_version(entity_id).id,
            name=name,
            display_name=display_name,
            data_type=data_type,
            properties=properties,
            required=bool(data.get("required", False)),
            searchable=bool(data.get("searchable", False)),
            description=data.get("description") or "",
            created_at=now,
            updated_at=now,
        )

    def _remove_field(self, entity: Entity, entity_field: EntityField) -> None:
        version = self._current_version(entity.id)
        version.fields = [f for f in version.fields if f.id != entity_field.id]
        for permission in version.permissions:
            permission.permission_fields = [
                pf
                for pf in permission.permission_fields
                if pf.field_permanent_id != entity_field.permanent_id
            ]
        entity.updated_at = _now()

    def _related_entity(self, entity: Entity, properties: dict[str, Any]) -> Entity:
        related_entity_id = properties.get("relatedEntityId")
        if not related_entity_id:
            raise InvalidArgumentsError("Lookup fields require properties.relatedEntityId")
        related = self._entities.get(related_entity_id)
        if related is None or related.deleted_at is not None or related.app_id != entity.app_id:
            raise DataConflictError(
                f"Related entity {related_entity_id} does not exist in this app"
            )
        return related

    def _existing_mirror(
        self,
        entity: Entity,
        related: Entity,
        related_field_id: str,
        field_id: str | None = None,
    ) -> EntityField:
        found = self._find_field(related_field_id)
        if found is None or found[0].id != related.id:
            raise DataConflictError(
                f"Related field {related_field_id} does not exist on entity {related.id}"
            )
        mirror = found[1]
        if mirror.related_entity_id != entity.id:
            raise DataConflictError(
                f"Related field {related_field_id} does not reference entity {entity.id}"
            )
        if mirror.related_field_id and mirror.related_field_id != field_id:
            raise DataConflictError(f"Related field {related_field_id} is already paired")
        return mirror

    def _plan_relation(
        self,
        entity: Entity,
        args: dict[str, Any],
        properties: dict[str, Any],
        field_id: str | None,
        user: UserContext,
    ) -> tuple[Entity, EntityField | None, tuple[str, str] | None]:
        """Check a Lookup relation without changing anything.

        Returns the related entity and either the existing mirror field to
        link or the (name, displayName) of the mirror field to create.
        """
        related = self._related_entity(entity, properties)
        if related.id != entity.id:
            self._ensure_lockable(related, user)

        related_field_id = properties.get("relatedFieldId")
        if related_field_id:
            return related, self._existing_mirror(entity, related, related_field_id, field_id), None

        mirror_name = args.get("relatedFieldName")
        if not mirror_name or not args.get("relatedFieldDisplayName"):
            raise InvalidArgumentsError(
                "Lookup fields require properties.relatedFieldId or a related field name"
            )
        self._check_field_name(related.id, mirror_name)
        if related.id == entity.id and mirror_name == (args.get("data") or {}).get("name"):
            raise DataConflictError(f"A field named '{mirror_name}' already exists")
        return related, None, (mirror_name, args["relatedFieldDisplayName"])

    def _apply_relation(
        self,
        entity: Entity,
        entity_field: EntityField,
        related: Entity,
        mirror: EntityField | None,
        mirror_names: tuple[str, str] | None,
        user: UserContext,
    ) -> None:
        if related.id != entity.id:
            self._lock(related, user)

        if mirror is None and mirror_names is not None:
            properties = default_properties(EnumDataType.LOOKUP)
            properties["relatedEntityId"] = entity.id
            properties["allowMultipleSelection"] = not entity_field.properties.get(
                "allowMultipleSelection", False
            )
            mirror = self._new_field(
                related.id, mirror_names[0], mirror_names[1], EnumDataType.LOOKUP, properties
            )
            self._current_version(related.id).fields.append(mirror)

        mirror.properties["relatedFieldId"] = entity_field.id
        entity_field.properties["relatedFieldId"] = mirror.id
        related.updated_at = _now()

    async def create_field(self, args: dict[str, Any], user: UserContext) -> EntityField:
        data = args.get("data") or {}
        entity = self._live_entity(_required(args, "data.entity.connect.id"))
        name = _required(args, "data.name")
        data_type = _parse_data_type(_required(args, "data.dataType"))
        if is_system_data_type(data_type):
            raise DataConflictError(f"Fields of type {data_type.value} cannot be created")

        self._ensure_lockable(entity, user)
        self._check_field_name(entity.id, name)

        properties = default_properties(data_type)
        properties.update(data.get("properties") or {})

        relation = None
        if data_type == EnumDataType.LOOKUP:
            relation = self._plan_relation(entity, args, properties, None, user)

        self._lock(entity, user)
        entity_field = self._new_field(
            entity.id, name, data.get("displayName") or name, data_type, properties, data
        )
        self._current_version(entity.id).fields.append(entity_field)
        if relation is not None:
            self._apply_relation(entity, entity_field, *relation, user)

        entity.updated_at = _now()
        logger.info("Created field %s on entity %s", name, entity.id)
        return entity_field

    async def create_field_by_display_name(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityField:
        entity = self._live_entity(_required(args, "data.entity.connect.id"))
        display_name = _required(args, "data.displayName")

        candidates = [
            e for e in self._live_entities() if e.app_id == entity.app_id and e.id != entity.id
        ]
        suggestion = suggest_field(display_name, candidates)

        create_args: dict[str, Any] = {
            "data": {
                "entity": {"connect": {"id": entity.id}},
                "name": self._unique_field_name(entity.id, suggestion.name),
                "displayName": suggestion.display_name,
                "dataType": suggestion.data_type.value,
                "properties": suggestion.properties,
            }
        }
        related = suggestion.related_entity
        if related is not None:
            # The mirror holds many records when this field holds one, and vice versa
            mirror_display_name = (
                entity.display_name
                if suggestion.properties.get("allowMultipleSelection")
                else entity.plural_display_name
            )
            create_args["relatedFieldName"] = self._unique_field_name(
                related.id, camel_case_name(mirror_display_name)
            )
            create_args["relatedFieldDisplayName"] = mirror_display_name

        return await self.create_field(create_args, user)

    def _unique_field_name(self, entity_id: str, name: str) -> str:
        candidate = name
        suffix = 2
        while self._field_by_name(entity_id, candidate) is not None:
            candidate = f"{name}{suffix}"
            suffix += 1
        return candidate

    def _field_for_mutation(self, args: dict[str, Any]) -> tuple[Entity, EntityField]:
        field_id = _required(args, "where.id")
        found = self._find_field(field_id)
        if found is None:
            raise NotFoundError(f"Field {field_id} not found")
        entity, entity_field = found
        if is_system_data_type(entity_field.data_type):
            raise DataConflictError(f"System field '{entity_field.name}' cannot be changed")
        return entity, entity_field

    async def update_field(self, args: dict[str, Any], user: UserContext) -> EntityField | None:
        entity, entity_field = self._field_for_mutation(args)
        data = args.get("data") or {}
        unknown = set(data) - FIELD_UPDATABLE_KEYS
        if unknown:
            raise InvalidArgumentsError(f"Cannot update field attributes: {sorted(unknown)}")

        new_type = _parse_data_type(data.get("dataType", entity_field.data_type))
        if is_system_data_type(new_type):
            raise DataConflictError(f"Fields cannot be changed to type {new_type.value}")
        if "name" in data:
            self._check_field_name(entity.id, data["name"], exclude_id=entity_field.id)
        self._ensure_lockable(entity, user)

        if "properties" in data or new_type != entity_field.data_type:
            properties = default_properties(new_type)
            properties.update(data.get("properties") or {})
        else:
            properties = dict(entity_field.properties)

        old_mirror = None
        if entity_field.related_field_id:
            old_mirror = self._find_field(entity_field.related_field_id)

        relation = None
        keeps_relation = (
            new_type == EnumDataType.LOOKUP
            and entity_field.is_lookup
            and properties.get("relatedEntityId") == entity_field.related_entity_id
            and properties.get("relatedFieldId") in (None, entity_field.related_field_id)
            and not args.get("relatedFieldName")
        )
        if keeps_relation:
            if entity_field.related_field_id:
                properties["relatedFieldId"] = entity_field.related_field_id
            old_mirror = None
        elif new_type == EnumDataType.LOOKUP:
            if old_mirror is not None and old_mirror[0].id != entity.id:
                self._ensure_lockable(old_mirror[0], user)
            relation = self._plan_relation(entity, args, properties, entity_field.id, user)
        elif old_mirror is not None and old_mirror[0].id != entity.id:
            self._ensure_lockable(old_mirror[0], user)

        self._lock(entity, user)
        if old_mirror is not None:
            mirror_entity, mirror = old_mirror
            self._lock(mirror_entity, user)
            self._remove_field(mirror_entity, mirror)

        if "name" in data:
            entity_field.name = data["name"]
        if "displayName" in data:
            entity_field.display_name = data["displayName"]
        if "required" in data:
            entity_field.required = bool(data["required"])
        if "searchable" in data:
            entity_field.searchable = bool(data["searchable"])
        if "description" in data:
            entity_field.description = data["description"] or ""
        entity_field.data_type = new_type
        entity_field.properties = properties
        if relation is not None:
            self._apply_relation(entity, entity_field, *relation, user)

        entity_field.updated_at = _now()
        entity.updated_at = entity_field.updated_at
        return entity_field

    async def delete_field(self, args: dict[str, Any], user: UserContext) -> EntityField | None:
        entity, entity_field = self._field_for_mutation(args)
        self._ensure_lockable(entity, user)

        mirror = None
        if entity_field.related_field_id:
            mirror = self._find_field(entity_field.related_field_id)
            if mirror is not None:
                self._ensure_lockable(mirror[0], user)

        self._lock(entity, user)
        self._remove_field(entity, entity_field)
        if mirror is not None:
            self._lock(mirror[0], user)
            self._remove_field(*mirror)

        logger.info("Deleted field %s from entity %s", entity_field.name, entity.id)
        return entity_field

    # -- Permissions ----------------------------------------------------------

    async def get_permissions(self, entity_id: str) -> list[EntityPermission]:
        entity = self._entities.get(entity_id)
        if entity is None or entity.deleted_at is not None:
            return []
        return list(self._current_version(entity_id).permissions)

    async def update_entity_permission(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityPermission:
        entity = self._live_entity(_required(args, "where.id"))
        action = _parse_action(_required(args, "data.action"))
        try:
            permission_type = EnumEntityPermissionType(_required(args, "data.type"))
        except ValueError:
            raise InvalidArgumentsError(f"Unknown permission type '{args['data']['type']}'")
        permission = self._permission(entity.id, action)

        self._lock(entity, user)
        permission.type = permission_type
        if permission_type != EnumEntityPermissionType.GRANULAR:
            permission.permission_roles = []
            permission.permission_fields = []
        entity.updated_at = _now()
        return permission

    async def update_entity_permission_roles(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityPermission:
        entity = self._live_entity(_required(args, "data.entity.connect.id"))
        action = _parse_action(_required(args, "data.action"))
        permission = self._permission(entity.id, action)
        data = args["data"]

        to_add = _ids(data.get("add"))
        to_delete = set(_ids(data.get("delete")))
        for app_role_id in to_add:
            role = self._app_roles.get(app_role_id)
            if role is None or role.app_id != entity.app_id:
                raise NotFoundError(f"App role {app_role_id} not found")

        self._lock(entity, user)
        existing = {r.app_role_id for r in permission.permission_roles}
        for app_role_id in to_add:
            if app_role_id not in existing:
                permission.permission_roles.append(
                    EntityPermissionRole(
                        id=_new_id(),
                        entity_version_id=permission.entity_version_id,
                        action=action,
                        app_role_id=app_role_id,
                        app_role=self._app_roles[app_role_id],
                    )
                )
                existing.add(app_role_id)

        if to_delete:
            permission.permission_roles = [
                r for r in permission.permission_roles if r.app_role_id not in to_delete
            ]
            for permission_field in permission.permission_fields:
                permission_field.permission_roles = [
                    r for r in permission_field.permission_roles if r.app_role_id not in to_delete
                ]

        entity.updated_at = _now()
        return permission

    async def add_entity_permission_field(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityPermissionField:
        entity = self._live_entity(_required(args, "data.entity.connect.id"))
        action = _parse_action(_required(args, "data.action"))
        field_name = _required(args, "data.fieldName")
        permission = self._permission(entity.id, action)

        entity_field = self._field_by_name(entity.id, field_name)
        if entity_field is None:
            raise NotFoundError(f"Field '{field_name}' not found on entity {entity.id}")
        if permission.field_override(entity_field.permanent_id) is not None:
            raise DataConflictError(
                f"Field '{field_name}' already has a {action.value} permission"
            )

        self._lock(entity, user)
        permission_field = EntityPermissionField(
            id=_new_id(),
            permission_id=permission.id,
            field_permanent_id=entity_field.permanent_id,
            entity_version_id=permission.entity_version_id,
            field=entity_field,
        )
        permission.permission_fields.append(permission_field)
        entity.updated_at = _now()
        return permission_field

    async def delete_entity_permission_field(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityPermissionField:
        entity = self._live_entity(_required(args, "where.entityId"))
        action = _parse_action(_required(args, "where.action"))
        field_name = _required(args, "where.fieldName")
        permission = self._permission(entity.id, action)

        entity_field = self._field_by_name(entity.id, field_name)
        permission_field = (
            permission.field_override(entity_field.permanent_id) if entity_field else None
        )
        if permission_field is None:
            raise NotFoundError(
                f"Field '{field_name}' has no {action.value} permission on entity {entity.id}"
            )

        self._lock(entity, user)
        permission.permission_fields.remove(permission_field)
        entity.updated_at = _now()
        return permission_field

    async def update_entity_permission_field_roles(
        self, args: dict[str, Any], user: UserContext
    ) -> EntityPermissionField:
        permission_field_id = _required(args, "data.permissionField.connect.id")
        found = self._find_permission_field(permission_field_id)
        if found is None:
            raise NotFoundError(f"Permission field {permission_field_id} not found")
        entity, permission, permission_field = found
        data = args["data"]

        to_add = _ids(data.get("addPermissionRoles"))
        to_delete = set(_ids(data.get("deletePermissionRoles")))
        available = {r.id: r for r in permission.permission_roles}
        for role_id in to_add:
            if role_id not in available:
                raise DataConflictError(
                    f"Permission role {role_id} is not granted on the "
                    f"{permission.action.value} permission of the entity"
                )

        self._lock(entity, user)
        existing = {r.id for r in permission_field.permission_roles}
        for role_id in to_add:
            if role_id not in existing:
                permission_field.permission_roles.append(available[role_id])
                existing.add(role_id)
        if to_delete:
            permission_field.permission_roles = [
                r for r in permission_field.permission_roles if r.id not in to_delete
            ]

        entity.updated_at = _now()
        return permission_field

    # -- Resource location ----------------------------------------------------

    def _entity_owner(self, entity: Entity) -> ResourceOwner | None:
        app = self._apps.get(entity.app_id)
        if app is None:
            return None
        return ResourceOwner(workspace_id=app.workspace_id, app_id=app.id, entity_id=entity.id)

    async def locate_resource(
        self,
        resource: AuthorizableResourceParameter,
        resource_id: str,
    ) -> ResourceOwner | None:
        if resource is AuthorizableResourceParameter.WORKSPACE_ID:
            if resource_id in self._workspaces:
                return ResourceOwner(workspace_id=resource_id)
            return None

        if resource is AuthorizableResourceParameter.APP_ID:
            app = self._apps.get(resource_id)
            return ResourceOwner(workspace_id=app.workspace_id, app_id=app.id) if app else None

        if resource is AuthorizableResourceParameter.ENTITY_ID:
            entity = self._entities.get(resource_id)
            if entity is None or entity.deleted_at is not None:
                return None
            return self._entity_owner(entity)

        if resource is AuthorizableResourceParameter.ENTITY_FIELD_ID:
            found = self._find_field(resource_id)
            return self._entity_owner(found[0]) if found else None

        if resource is AuthorizableResourceParameter.ENTITY_PERMISSION_FIELD_ID:
            found_permission_field = self._find_permission_field(resource_id)
            return self._entity_owner(found_permission_field[0]) if found_permission_field else None

        return None


class InMemoryUserService:
    """User lookup backed by a dictionary."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    def add_user(self, user: User) -> User:
        self._users[user.id] = user
        return user

    async def find_user(self, args: dict[str, Any]) -> User | None:
        found = apply_query(self._users.values(), args, lambda u: u.to_dict())
        return found[0] if found else None
