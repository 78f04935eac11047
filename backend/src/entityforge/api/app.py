"""FastAPI application exposing entity operations as remote procedures."""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from entityforge.auth import AuthMiddleware, JWTService, UserContext, get_user_context
from entityforge.authorization import WorkspacePermissionOracle
from entityforge.core.config import Settings
from entityforge.core.errors import (
    AuthenticationRequired,
    AuthorizationDenied,
    DataConflictError,
    EntityForgeError,
    InvalidArgumentsError,
    NotFoundError,
    ResourceResolutionFailed,
    UnknownOperationError,
)
from entityforge.entities import Entity, EntityResolver, InMemoryEntityService, InMemoryUserService
from entityforge.entities.seed import load_seed
from entityforge.operations import OperationDispatcher

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[EntityForgeError], int] = {
    AuthenticationRequired: 401,
    AuthorizationDenied: 403,
    ResourceResolutionFailed: 403,
    InvalidArgumentsError: 400,
    NotFoundError: 404,
    UnknownOperationError: 404,
    DataConflictError: 409,
}


class OperationRequest(BaseModel):
    args: dict[str, Any] = Field(default_factory=dict)
    select: dict[str, Any] | None = None


def _status_for(error: EntityForgeError) -> int:
    for error_type, status in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return status
    return 500


def _error_response(status: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": {"code": code, "message": message}})


def _serialize(value: Any) -> Any:
    if isinstance(value, list):
        return [_serialize(v) for v in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


def create_app(
    settings: Settings | None = None,
    entity_service: InMemoryEntityService | None = None,
    user_service: InMemoryUserService | None = None,
) -> FastAPI:
    """Build the API application.

    Args:
        settings: Service settings, read from the environment when omitted
        entity_service: Entity backend; a fresh in-memory backend when omitted
        user_service: User backend; a fresh in-memory backend when omitted
    """
    settings = settings or Settings.from_env()
    if entity_service is None:
        entity_service = InMemoryEntityService()
        if settings.disable_auth:
            entity_service.add_workspace(settings.dev_workspace_id, "Development")
    user_service = user_service or InMemoryUserService()
    if settings.seed_path:
        load_seed(settings.seed_path, entity_service, user_service)

    resolver = EntityResolver(entity_service, user_service)
    dispatcher = OperationDispatcher.with_oracle(
        resolver.operations(), WorkspacePermissionOracle(entity_service)
    )

    app = FastAPI(title="EntityForge API")
    app.state.settings = settings
    app.state.entity_service = entity_service
    app.state.user_service = user_service
    app.state.resolver = resolver
    app.state.dispatcher = dispatcher

    dev_context = None
    if settings.disable_auth:
        logger.warning("Authentication disabled; requests run as %s", settings.dev_user_id)
        dev_context = UserContext(
            user_id=settings.dev_user_id,
            tenant_id=settings.dev_workspace_id,
            roles=[settings.dev_role],
        )
    app.add_middleware(
        AuthMiddleware,
        jwt_service=JWTService(settings.secret_key),
        dev_context=dev_context,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(EntityForgeError)
    async def handle_entityforge_error(request: Request, exc: EntityForgeError) -> JSONResponse:
        status = _status_for(exc)
        if status == 500:
            logger.error("Unmapped error on %s: %s", request.url.path, exc.message)
        else:
            logger.info("%s on %s: %s", exc.code, request.url.path, exc.message)
        return _error_response(status, exc.code, exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Operation failed on %s", request.url.path)
        return _error_response(500, "INTERNAL_ERROR", "Internal server error")

    @app.get("/api/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok"}

    @app.get("/api/operations")
    async def list_operations() -> dict[str, Any]:
        """List every operation with its authorization declaration."""
        return {"data": [op.to_dict() for op in dispatcher.list_operations()]}

    @app.post("/api/operations/{name}")
    async def run_operation(name: str, request: OperationRequest, http_request: Request):
        """Dispatch an operation and serialize its result.

        Entity results are expanded with the derived fields named in
        ``select``.
        """
        user_context = get_user_context(http_request)
        result = await dispatcher.dispatch(name, request.args, user_context)

        if isinstance(result, Entity):
            return {"data": await resolver.resolve_derived(result, request.select)}
        if isinstance(result, list) and all(isinstance(r, Entity) for r in result):
            return {"data": [await resolver.resolve_derived(r, request.select) for r in result]}
        return {"data": _serialize(result)}

    return app
