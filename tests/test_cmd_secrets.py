"""CLI tests for the secrets command group."""
import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from monies.commands.secrets_cmd import app
from monies.main import app as root_app
from monies.utils.errors import SecretsError

runner = CliRunner()


@pytest.fixture(autouse=True)
def _settings(fake_settings):
    with patch("monies.main.get_config", return_value=fake_settings), \
            patch("monies.commands.common.get_config", return_value=fake_settings):
        yield


# ── list ─────────────────────────────────────────────────────────────

def test_list_uses_prefix():
    with patch("monies.commands.secrets_cmd.build_secrets_store") as build_store:
        build_store.return_value.list_secrets.return_value = ["monies-a", "monies-b"]
        result = runner.invoke(app, ["list", "--output", "json"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == [{"name": "monies-a"}, {"name": "monies-b"}]
    build_store.return_value.list_secrets.assert_called_once_with("monies")


def test_list_all():
    with patch("monies.commands.secrets_cmd.build_secrets_store") as build_store:
        build_store.return_value.list_secrets.return_value = []
        result = runner.invoke(app, ["list", "--all"])

    assert result.exit_code == 0
    build_store.return_value.list_secrets.assert_called_once_with("")
    assert "No secrets found" in result.output


def test_list_error():
    with patch("monies.commands.secrets_cmd.build_secrets_store") as build_store:
        build_store.return_value.list_secrets.side_effect = SecretsError("Failed to list secrets")
        result = runner.invoke(app, ["list"])
    assert result.exit_code == 1
    assert "SECRETS_ERROR" in result.stdout


# ── delete ───────────────────────────────────────────────────────────

def test_delete_requires_name():
    result = runner.invoke(app, ["delete", "--force"])
    assert result.exit_code == 1
    assert "Secret name is required" in result.stdout


def test_delete_force():
    with patch("monies.commands.secrets_cmd.build_secrets_store") as build_store:
        result = runner.invoke(root_app, ["--secret-name", "monies-old", "secrets", "delete", "--force"])

    assert result.exit_code == 0
    build_store.return_value.delete.assert_called_once_with("monies-old")


def test_delete_confirmed():
    with patch("monies.commands.secrets_cmd.build_secrets_store") as build_store:
        result = runner.invoke(root_app, ["--secret-name", "monies-old", "secrets", "delete"], input="y\n")

    assert result.exit_code == 0
    build_store.return_value.delete.assert_called_once_with("monies-old")


def test_delete_declined():
    with patch("monies.commands.secrets_cmd.build_secrets_store") as build_store:
        result = runner.invoke(root_app, ["--secret-name", "monies-old", "secrets", "delete"], input="n\n")

    assert result.exit_code == 0
    assert "cancelled" in result.output
    build_store.return_value.delete.assert_not_called()
