"""Entity schema models.

An Entity owns an ordered list of versions. Version 0 is the working draft
that field and permission mutations edit; every other version is an
immutable snapshot created on commit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from entityforge.core.types import EnumDataType

CURRENT_VERSION_NUMBER = 0


class EnumEntityAction(str, Enum):
    VIEW = "View"
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
    SEARCH = "Search"


class EnumEntityPermissionType(str, Enum):
    ALL_ROLES = "AllRoles"
    GRANULAR = "Granular"
    DISABLED = "Disabled"
    PUBLIC = "Public"


@dataclass
class Workspace:
    id: str
    name: str


@dataclass
class App:
    id: str
    workspace_id: str
    name: str
    description: str = ""


@dataclass
class User:
    id: str
    workspace_id: str
    email: str
    name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "workspaceId": self.workspace_id,
            "email": self.email,
            "name": self.name,
        }


@dataclass
class AppRole:
    id: str
    app_id: str
    name: str
    display_name: str
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "appId": self.app_id,
            "name": self.name,
            "displayName": self.display_name,
            "description": self.description,
        }


@dataclass
class EntityField:
    """A typed field of an entity version.

    Attributes:
        id: Unique id of this field record
        permanent_id: Stable id shared by the copies of this field in every version
        entity_version_id: The version this record belongs to
        data_type: One of EnumDataType
        properties: Type-specific settings (for Lookup: relatedEntityId,
            allowMultipleSelection, relatedFieldId)
    """

    id: str
    permanent_id: str
    entity_version_id: str
    name: str
    display_name: str
    data_type: EnumDataType
    properties: dict[str, Any] = field(default_factory=dict)
    required: bool = False
    searchable: bool = False
    description: str = ""
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_lookup(self) -> bool:
        return self.data_type == EnumDataType.LOOKUP

    @property
    def related_entity_id(self) -> str | None:
        return self.properties.get("relatedEntityId") if self.is_lookup else None

    @property
    def related_field_id(self) -> str | None:
        return self.properties.get("relatedFieldId") if self.is_lookup else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "permanentId": self.permanent_id,
            "name": self.name,
            "displayName": self.display_name,
            "dataType": self.data_type.value,
            "properties": self.properties,
            "required": self.required,
            "searchable": self.searchable,
            "description": self.description,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class EntityPermissionRole:
    id: str
    entity_version_id: str
    action: EnumEntityAction
    app_role_id: str
    app_role: AppRole | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "action": self.action.value,
            "appRoleId": self.app_role_id,
            "appRole": self.app_role.to_dict() if self.app_role else None,
        }


@dataclass
class EntityPermissionField:
    """Field-level override of an entity permission.

    Holds the subset of the parent permission's roles allowed to perform
    the action on one field.
    """

    id: str
    permission_id: str
    field_permanent_id: str
    entity_version_id: str
    permission_roles: list[EntityPermissionRole] = field(default_factory=list)
    field: EntityField | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "permissionId": self.permission_id,
            "fieldPermanentId": self.field_permanent_id,
            "field": self.field.to_dict() if self.field else None,
            "permissionRoles": [r.to_dict() for r in self.permission_roles],
        }


@dataclass
class EntityPermission:
    id: str
    entity_version_id: str
    action: EnumEntityAction
    type: EnumEntityPermissionType = EnumEntityPermissionType.ALL_ROLES
    permission_roles: list[EntityPermissionRole] = field(default_factory=list)
    permission_fields: list[EntityPermissionField] = field(default_factory=list)

    def field_override(self, field_permanent_id: str) -> EntityPermissionField | None:
        for permission_field in self.permission_fields:
            if permission_field.field_permanent_id == field_permanent_id:
                return permission_field
        return None

    def roles_for_field(self, field_permanent_id: str) -> list[EntityPermissionRole]:
        """Return the roles authorized for a field.

        A field override replaces the entity-level roles for that field
        only; fields without an override inherit the entity-level roles.
        """
        override = self.field_override(field_permanent_id)
        if override is not None:
            return override.permission_roles
        return self.permission_roles

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "action": self.action.value,
            "type": self.type.value,
            "permissionRoles": [r.to_dict() for r in self.permission_roles],
            "permissionFields": [f.to_dict() for f in self.permission_fields],
        }


@dataclass
class EntityVersion:
    id: str
    entity_id: str
    version_number: int
    created_at: str = ""
    commit_user_id: str | None = None
    fields: list[EntityField] = field(default_factory=list)
    permissions: list[EntityPermission] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "entityId": self.entity_id,
            "versionNumber": self.version_number,
            "createdAt": self.created_at,
            "commitUserId": self.commit_user_id,
        }


@dataclass
class Entity:
    """A schema object of an application.

    ``fields`` is None unless the entity was loaded together with the
    fields of a specific version; readers fall back to fetching the
    current fields in that case.
    """

    id: str
    app_id: str
    name: str
    display_name: str
    plural_display_name: str
    description: str = ""
    locked_by_user_id: str | None = None
    locked_at: str | None = None
    deleted_at: str | None = None
    created_at: str = ""
    updated_at: str = ""
    fields: list[EntityField] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "appId": self.app_id,
            "name": self.name,
            "displayName": self.display_name,
            "pluralDisplayName": self.plural_display_name,
            "description": self.description,
            "lockedByUserId": self.locked_by_user_id,
            "lockedAt": self.locked_at,
            "deletedAt": self.deleted_at,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
