"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_SECRET_KEY = "dev-secret-key-change-in-production"


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


@dataclass
class Settings:
    """Service settings.

    Attributes:
        secret_key: Key used to sign and verify access tokens
        disable_auth: When True, every request acts as the development user
        dev_user_id: Caller identity used when auth is disabled
        dev_workspace_id: Caller workspace used when auth is disabled
        dev_role: Caller role used when auth is disabled
        seed_path: Optional YAML file loaded into the in-memory backend
        cors_origins: Origins allowed by the CORS middleware
        port: Port for the development server
        log_level: Log level name for the service and uvicorn
    """

    secret_key: str = DEFAULT_SECRET_KEY
    disable_auth: bool = False
    dev_user_id: str = "dev-user"
    dev_workspace_id: str = "dev-workspace"
    dev_role: str = "admin"
    seed_path: Path | None = None
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:5173"])
    port: int = 8000
    log_level: str = "info"

    @classmethod
    def from_env(cls) -> Settings:
        """Create settings from ENTITYFORGE_* environment variables.

        Unset variables keep their defaults.
        """
        seed_path = os.environ.get("ENTITYFORGE_SEED_PATH")
        origins = os.environ.get("ENTITYFORGE_CORS_ORIGINS")

        return cls(
            secret_key=os.environ.get("ENTITYFORGE_SECRET_KEY", DEFAULT_SECRET_KEY),
            disable_auth=_env_flag("ENTITYFORGE_DISABLE_AUTH"),
            dev_user_id=os.environ.get("ENTITYFORGE_DEV_USER_ID", "dev-user"),
            dev_workspace_id=os.environ.get("ENTITYFORGE_DEV_WORKSPACE_ID", "dev-workspace"),
            dev_role=os.environ.get("ENTITYFORGE_DEV_ROLE", "admin"),
            seed_path=Path(seed_path) if seed_path else None,
            cors_origins=(
                [o.strip() for o in origins.split(",") if o.strip()]
                if origins
                else ["http://localhost:5173"]
            ),
            port=int(os.environ.get("ENTITYFORGE_PORT", "8000")),
            log_level=os.environ.get("ENTITYFORGE_LOG_LEVEL", "info").lower(),
        )
