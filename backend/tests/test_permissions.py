"""Tests for the role hierarchy and action thresholds."""

import pytest

from entityforge.auth.permissions import (
    ACTION_THRESHOLDS,
    ROLE_HIERARCHY,
    AccessAction,
    can_perform,
    has_role_or_higher,
    user_role_level,
)
from entityforge.auth.types import UserContext
from entityforge.entities.models import (
    EntityPermission,
    EntityPermissionField,
    EntityPermissionRole,
    EnumEntityAction,
)


# ── Helpers ──────────────────────────────────────────────────────────────────


def make_user(*roles: str) -> UserContext:
    return UserContext(user_id="u1", tenant_id="ws1", roles=list(roles))


def make_role(role_id: str, app_role_id: str) -> EntityPermissionRole:
    return EntityPermissionRole(
        id=role_id, entity_version_id="v0", action=EnumEntityAction.VIEW, app_role_id=app_role_id
    )


# ── Role hierarchy ───────────────────────────────────────────────────────────


class TestRoleHierarchy:
    def test_order(self):
        assert ROLE_HIERARCHY["readonly"] < ROLE_HIERARCHY["user"]
        assert ROLE_HIERARCHY["user"] < ROLE_HIERARCHY["manager"]
        assert ROLE_HIERARCHY["manager"] < ROLE_HIERARCHY["admin"]

    def test_highest_role_wins(self):
        assert user_role_level(make_user("readonly", "manager")) == ROLE_HIERARCHY["manager"]

    def test_unknown_roles_have_no_level(self):
        assert user_role_level(make_user("superhero")) == 0
        assert user_role_level(None) == 0

    def test_has_role_or_higher(self):
        assert has_role_or_higher(make_user("admin"), "manager")
        assert not has_role_or_higher(make_user("user"), "manager")
        assert not has_role_or_higher(make_user("admin"), "no-such-role")


class TestCanPerform:
    def test_thresholds(self):
        assert ACTION_THRESHOLDS == {
            AccessAction.READ: "readonly",
            AccessAction.CREATE: "user",
            AccessAction.UPDATE: "user",
            AccessAction.DELETE: "manager",
        }

    @pytest.mark.parametrize("action", list(AccessAction))
    def test_admin_can_do_everything(self, action):
        assert can_perform(make_user("admin"), action) == (True, None)

    def test_denial_message(self):
        allowed, message = can_perform(make_user("user"), AccessAction.DELETE)
        assert not allowed
        assert message == "Manager role or higher required to delete"

    def test_anonymous_cannot_read(self):
        allowed, _ = can_perform(None, AccessAction.READ)
        assert not allowed


# ── Entity and field permission roles ────────────────────────────────────────


class TestEffectiveFieldRoles:
    def test_field_without_override_inherits_entity_roles(self):
        permission = EntityPermission(
            id="p1",
            entity_version_id="v0",
            action=EnumEntityAction.VIEW,
            permission_roles=[make_role("r1", "sales"), make_role("r2", "support")],
        )
        assert [r.app_role_id for r in permission.roles_for_field("field-a")] == ["sales", "support"]

    def test_override_supersedes_entity_roles_for_that_field_only(self):
        sales = make_role("r1", "sales")
        permission = EntityPermission(
            id="p1",
            entity_version_id="v0",
            action=EnumEntityAction.VIEW,
            permission_roles=[sales, make_role("r2", "support")],
        )
        permission.permission_fields.append(
            EntityPermissionField(
                id="pf1",
                permission_id="p1",
                field_permanent_id="field-a",
                entity_version_id="v0",
                permission_roles=[sales],
            )
        )

        assert permission.roles_for_field("field-a") == [sales]
        assert len(permission.roles_for_field("field-b")) == 2

    def test_to_dict(self):
        permission = EntityPermission(id="p1", entity_version_id="v0", action=EnumEntityAction.SEARCH)
        assert permission.to_dict() == {
            "id": "p1",
            "action": "Search",
            "type": "AllRoles",
            "permissionRoles": [],
            "permissionFields": [],
        }
