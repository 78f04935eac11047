"""Load workspaces, users, apps and app roles from a YAML seed file.

Example:

    workspaces:
      - id: ws-acme
        name: Acme
    users:
      - id: user-ada
        workspaceId: ws-acme
        email: ada@acme.test
        name: Ada
    apps:
      - id: app-crm
        workspaceId: ws-acme
        name: CRM
    appRoles:
      - id: role-sales
        appId: app-crm
        name: sales
        displayName: Sales
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from entityforge.entities.memory import InMemoryEntityService, InMemoryUserService
from entityforge.entities.models import User

logger = logging.getLogger(__name__)


@dataclass
class SeedResult:
    workspaces: int = 0
    users: int = 0
    apps: int = 0
    app_roles: int = 0


def _records(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    records = data.get(key) or []
    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        raise ValueError(f"Seed section '{key}' must be a list of mappings")
    return records


def _require(record: dict[str, Any], key: str, section: str) -> Any:
    if not record.get(key):
        raise ValueError(f"Seed {section} entry is missing '{key}': {record}")
    return record[key]


def apply_seed(
    data: dict[str, Any],
    entity_service: InMemoryEntityService,
    user_service: InMemoryUserService,
) -> SeedResult:
    """Register the seed records with the in-memory services.

    Sections are applied in dependency order: workspaces, users, apps,
    app roles.

    Raises:
        ValueError: If a section is malformed or an entry lacks a required key
        NotFoundError: If an entry references an unknown workspace or app
    """
    result = SeedResult()

    for record in _records(data, "workspaces"):
        entity_service.add_workspace(
            _require(record, "id", "workspace"),
            record.get("name") or record["id"],
        )
        result.workspaces += 1

    for record in _records(data, "users"):
        user_service.add_user(
            User(
                id=_require(record, "id", "user"),
                workspace_id=_require(record, "workspaceId", "user"),
                email=_require(record, "email", "user"),
                name=record.get("name") or "",
            )
        )
        result.users += 1

    for record in _records(data, "apps"):
        entity_service.add_app(
            _require(record, "id", "app"),
            _require(record, "workspaceId", "app"),
            record.get("name") or record["id"],
            record.get("description") or "",
        )
        result.apps += 1

    for record in _records(data, "appRoles"):
        entity_service.add_app_role(
            _require(record, "appId", "app role"),
            _require(record, "name", "app role"),
            record.get("displayName") or record["name"],
            role_id=record.get("id"),
        )
        result.app_roles += 1

    return result


def load_seed(
    path: Path,
    entity_service: InMemoryEntityService,
    user_service: InMemoryUserService,
) -> SeedResult:
    """Read a YAML seed file and apply it."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Seed file {path} must contain a mapping")

    result = apply_seed(data, entity_service, user_service)
    logger.info(
        "Loaded seed %s: %d workspaces, %d users, %d apps, %d app roles",
        path,
        result.workspaces,
        result.users,
        result.apps,
        result.app_roles,
    )
    return result
