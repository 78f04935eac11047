"""Tests for authorization context resolution, value injection and the workspace oracle."""

import pytest
from unittest.mock import AsyncMock

from entityforge.auth.permissions import AccessAction
from entityforge.auth.types import UserContext
from entityforge.authorization import (
    AuthorizableResourceParameter,
    AuthorizationContextResolver,
    AuthorizeContext,
    ContextValueInjector,
    InjectableResourceParameter,
    InjectContextValue,
    ResourceOwner,
    WorkspacePermissionOracle,
)
from entityforge.core.errors import AuthorizationDenied, ResourceResolutionFailed
from entityforge.core.paths import ArgumentPath

ENTITY = AuthorizableResourceParameter.ENTITY_ID


def make_user(role: str = "user", tenant_id: str = "ws1") -> UserContext:
    return UserContext(user_id="u1", tenant_id=tenant_id, roles=[role])


def make_oracle(allowed: bool = True) -> AsyncMock:
    oracle = AsyncMock()
    oracle.may_access.return_value = allowed
    return oracle


# =============================================================================
# Descriptors
# =============================================================================


class TestDescriptors:
    def test_string_path_is_parsed(self):
        descriptor = AuthorizeContext(ENTITY, "where.id")
        assert descriptor.path == ArgumentPath(("where", "id"))

    def test_invalid_path_rejected_at_declaration(self):
        with pytest.raises(ValueError):
            InjectContextValue(InjectableResourceParameter.USER_ID, "data..id")


# =============================================================================
# AuthorizationContextResolver
# =============================================================================


class TestAuthorizationContextResolver:
    @pytest.mark.asyncio
    async def test_allows_and_returns_resource_id(self):
        oracle = make_oracle(True)
        resolver = AuthorizationContextResolver(oracle)
        user = make_user()

        resource_id = await resolver.authorize(
            AuthorizeContext(ENTITY, "data.entity.connect.id"),
            {"data": {"entity": {"connect": {"id": "e1"}}}},
            user,
            AccessAction.UPDATE,
        )

        assert resource_id == "e1"
        oracle.may_access.assert_awaited_once_with(user, ENTITY, "e1", AccessAction.UPDATE)

    @pytest.mark.asyncio
    async def test_denial_raises(self):
        resolver = AuthorizationContextResolver(make_oracle(False))

        with pytest.raises(AuthorizationDenied, match="entityId e1"):
            await resolver.authorize(
                AuthorizeContext(ENTITY, "where.id"),
                {"where": {"id": "e1"}},
                make_user(),
                AccessAction.READ,
            )

    @pytest.mark.asyncio
    async def test_missing_path_fails_before_oracle(self):
        oracle = make_oracle(True)
        resolver = AuthorizationContextResolver(oracle)

        with pytest.raises(ResourceResolutionFailed, match="where.id"):
            await resolver.authorize(
                AuthorizeContext(ENTITY, "where.id"), {"where": {}}, make_user(), AccessAction.READ
            )
        oracle.may_access.assert_not_awaited()

    @pytest.mark.parametrize(
        "args",
        [
            {"where": "e1"},
            {"where": {"id": {"equals": "e1"}}},
            {"where": {"id": ["e1"]}},
            {"where": {"id": True}},
            {"where": {"id": ""}},
        ],
    )
    def test_non_id_values_fail(self, args):
        resolver = AuthorizationContextResolver(make_oracle(True))
        with pytest.raises(ResourceResolutionFailed):
            resolver.resolve_resource_id(AuthorizeContext(ENTITY, "where.id"), args)

    def test_integer_id_is_stringified(self):
        resolver = AuthorizationContextResolver(make_oracle(True))
        assert resolver.resolve_resource_id(
            AuthorizeContext(ENTITY, "where.id"), {"where": {"id": 42}}
        ) == "42"

    @pytest.mark.asyncio
    async def test_oracle_resolution_failure_propagates(self):
        oracle = AsyncMock()
        oracle.may_access.side_effect = ResourceResolutionFailed("entityId e404 does not exist")
        resolver = AuthorizationContextResolver(oracle)

        with pytest.raises(ResourceResolutionFailed, match="e404"):
            await resolver.authorize(
                AuthorizeContext(ENTITY, "where.id"),
                {"where": {"id": "e404"}},
                make_user(),
                AccessAction.READ,
            )


# =============================================================================
# ContextValueInjector
# =============================================================================


class TestContextValueInjector:
    def test_injects_user_id(self):
        args = {"where": {"id": "e1"}}
        ContextValueInjector().inject(
            InjectContextValue(InjectableResourceParameter.USER_ID, "userId"), args, make_user()
        )
        assert args == {"where": {"id": "e1"}, "userId": "u1"}

    def test_injects_workspace_id_into_nested_path(self):
        args = {}
        ContextValueInjector().inject(
            InjectContextValue(InjectableResourceParameter.WORKSPACE_ID, "data.workspace.connect.id"),
            args,
            make_user(tenant_id="ws7"),
        )
        assert args == {"data": {"workspace": {"connect": {"id": "ws7"}}}}

    def test_caller_value_overrides_supplied_value(self):
        args = {"userId": "spoofed"}
        ContextValueInjector().inject(
            InjectContextValue(InjectableResourceParameter.USER_ID, "userId"), args, make_user()
        )
        assert args["userId"] == "u1"

    def test_missing_workspace_fails(self):
        with pytest.raises(ResourceResolutionFailed, match="workspaceId"):
            ContextValueInjector().inject(
                InjectContextValue(InjectableResourceParameter.WORKSPACE_ID, "workspaceId"),
                {},
                UserContext(user_id="u1"),
            )

    def test_writing_through_scalar_fails(self):
        with pytest.raises(ResourceResolutionFailed, match="Cannot inject userId"):
            ContextValueInjector().inject(
                InjectContextValue(InjectableResourceParameter.USER_ID, "data.userId"),
                {"data": "scalar"},
                make_user(),
            )


# =============================================================================
# WorkspacePermissionOracle
# =============================================================================


class TestWorkspacePermissionOracle:
    def make_oracle(self, owner):
        locator = AsyncMock()
        locator.locate_resource.return_value = owner
        return WorkspacePermissionOracle(locator), locator

    @pytest.mark.asyncio
    async def test_allows_same_workspace_with_sufficient_role(self):
        oracle, locator = self.make_oracle(ResourceOwner("ws1", "app1", "e1"))

        assert await oracle.may_access(make_user("user"), ENTITY, "e1", AccessAction.UPDATE)
        locator.locate_resource.assert_awaited_once_with(ENTITY, "e1")

    @pytest.mark.asyncio
    async def test_denies_other_workspace(self):
        oracle, _ = self.make_oracle(ResourceOwner("ws2", "app1", "e1"))
        assert not await oracle.may_access(make_user("admin"), ENTITY, "e1", AccessAction.READ)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "role,action,expected",
        [
            ("readonly", AccessAction.READ, True),
            ("readonly", AccessAction.UPDATE, False),
            ("user", AccessAction.CREATE, True),
            ("user", AccessAction.DELETE, False),
            ("manager", AccessAction.DELETE, True),
            ("admin", AccessAction.DELETE, True),
        ],
    )
    async def test_role_thresholds(self, role, action, expected):
        oracle, _ = self.make_oracle(ResourceOwner("ws1"))
        assert await oracle.may_access(make_user(role), ENTITY, "e1", action) is expected

    @pytest.mark.asyncio
    async def test_unknown_resource_fails_resolution(self):
        oracle, _ = self.make_oracle(None)
        with pytest.raises(ResourceResolutionFailed, match="does not exist"):
            await oracle.may_access(make_user(), ENTITY, "e404", AccessAction.READ)

    @pytest.mark.asyncio
    async def test_caller_without_workspace_is_denied(self):
        oracle, locator = self.make_oracle(ResourceOwner("ws1"))
        assert not await oracle.may_access(
            UserContext(user_id="u1", roles=["admin"]), ENTITY, "e1", AccessAction.READ
        )
        locator.locate_resource.assert_not_awaited()
