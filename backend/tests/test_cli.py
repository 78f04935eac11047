"""Tests for EntityForge CLI commands."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from entityforge.auth import JWTService
from entityforge.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


class TestOperations:
    def test_lists_every_operation(self, runner):
        result = runner.invoke(cli, ["operations"])
        assert result.exit_code == 0
        assert "createEntityField" in result.output
        assert "entityPermissionFieldId at data.permissionField.connect.id" in result.output
        assert "[inject userId at userId]" in result.output
        assert "16 operation(s)" in result.output

    def test_json_output(self, runner):
        result = runner.invoke(cli, ["operations", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert len(data) == 16
        assert data[0]["name"] == "addEntityPermissionField"


class TestToken:
    def test_mints_decodable_token(self, runner, monkeypatch):
        secret = "cli-test-secret-key-that-is-long-enough"
        monkeypatch.setenv("ENTITYFORGE_SECRET_KEY", secret)

        result = runner.invoke(
            cli, ["token", "--user", "u1", "--workspace", "ws1", "--role", "manager"]
        )

        assert result.exit_code == 0
        claims = JWTService(secret).decode_token(result.output.strip())
        assert (claims.user_id, claims.tenant_id, claims.role) == ("u1", "ws1", "manager")

    def test_rejects_unknown_role(self, runner):
        result = runner.invoke(
            cli, ["token", "--user", "u1", "--workspace", "ws1", "--role", "owner"]
        )
        assert result.exit_code != 0
        assert "Invalid value" in result.output

    def test_requires_user(self, runner):
        result = runner.invoke(cli, ["token", "--workspace", "ws1"])
        assert result.exit_code != 0


class TestServe:
    def test_runs_uvicorn_with_app_factory(self, runner, monkeypatch):
        monkeypatch.setenv("ENTITYFORGE_PORT", "9100")
        monkeypatch.setenv("ENTITYFORGE_LOG_LEVEL", "WARNING")

        with patch("uvicorn.run") as run:
            result = runner.invoke(cli, ["serve"])

        assert result.exit_code == 0
        run.assert_called_once_with(
            "entityforge.api.app:create_app",
            factory=True,
            host="127.0.0.1",
            port=9100,
            reload=False,
            log_level="warning",
        )

    def test_port_option_wins(self, runner):
        with patch("uvicorn.run") as run:
            runner.invoke(cli, ["serve", "--port", "9200", "--host", "0.0.0.0"])
        assert run.call_args.kwargs["port"] == 9200
        assert run.call_args.kwargs["host"] == "0.0.0.0"
