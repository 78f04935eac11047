"""Development server and access token commands."""

import click

from entityforge.auth import ROLE_HIERARCHY, JWTService
from entityforge.core.config import Settings


@click.command()
@click.option("--host", default="127.0.0.1", help="Interface to bind.")
@click.option("--port", type=int, default=None, help="Port to bind (default: ENTITYFORGE_PORT).")
@click.option("--reload", is_flag=True, default=False, help="Restart on code changes.")
def serve(host: str, port: int | None, reload: bool):
    """Run the API with uvicorn."""
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(
        "entityforge.api.app:create_app",
        factory=True,
        host=host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level,
    )


@click.command()
@click.option("--user", "user_id", required=True, help="User id (sub claim).")
@click.option("--workspace", "workspace_id", required=True, help="Active workspace id.")
@click.option(
    "--role",
    default="user",
    type=click.Choice(list(ROLE_HIERARCHY)),
    help="Role in the workspace.",
)
@click.option("--ttl", type=int, default=None, help="Lifetime in seconds.")
def token(user_id: str, workspace_id: str, role: str, ttl: int | None):
    """Mint a development access token signed with ENTITYFORGE_SECRET_KEY."""
    settings = Settings.from_env()
    jwt_service = JWTService(settings.secret_key)
    click.echo(jwt_service.generate_access_token(user_id, workspace_id, role, ttl=ttl))
