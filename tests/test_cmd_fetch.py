"""CLI tests for the fetch command."""
import json
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from monies.commands.fetch_cmd import parse_date
from monies.main import app
from monies.models.accounts import Account, AccountsResponse, GetAccountsOptions, Organization
from monies.utils.errors import ApiError, SecretsError

runner = CliRunner()


@pytest.fixture(autouse=True)
def _settings(fake_settings):
    with patch("monies.main.get_config", return_value=fake_settings):
        yield


def _mock_client(accounts=None):
    client = MagicMock()
    client.get_accounts.return_value = AccountsResponse(accounts=accounts or [
        Account(id="acct-1", name="Checking", balance="100.23", currency="USD", org=Organization(name="Example Bank")),
    ])
    return client


# ── parse_date ───────────────────────────────────────────────────────

def test_parse_date():
    assert parse_date("2024-01-01") == 1704067200


def test_parse_date_empty():
    assert parse_date(None) is None


def test_parse_date_invalid():
    with pytest.raises(ValueError, match="expected YYYY-MM-DD"):
        parse_date("01/02/2024")


# ── fetch ────────────────────────────────────────────────────────────

def test_fetch_json():
    client = _mock_client()
    with patch("monies.commands.fetch_cmd._build_client", return_value=client):
        result = runner.invoke(app, ["--setup-token", "dG9rZW4=", "fetch", "--output", "json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["accounts"][0]["id"] == "acct-1"
    assert data["accounts"][0]["org"]["name"] == "Example Bank"
    client.close.assert_called_once()


def test_fetch_table():
    with patch("monies.commands.fetch_cmd._build_client", return_value=_mock_client()):
        result = runner.invoke(app, ["--use-secrets", "fetch"])
    assert result.exit_code == 0
    assert "Checking" in result.output


def test_fetch_builds_options():
    client = _mock_client()
    with patch("monies.commands.fetch_cmd._build_client", return_value=client):
        result = runner.invoke(app, [
            "--use-secrets", "fetch",
            "--start-date", "2024-01-01",
            "--pending",
            "--account", "acct-1", "--account", "acct-2",
            "--balances-only",
        ])

    assert result.exit_code == 0
    client.get_accounts.assert_called_once_with(GetAccountsOptions(
        start_date=1704067200,
        pending=True,
        account_ids=["acct-1", "acct-2"],
        balances_only=True,
    ))


def test_fetch_passes_global_flags():
    with patch("monies.commands.fetch_cmd._build_client", return_value=_mock_client()) as build:
        runner.invoke(app, ["--use-secrets", "--secret-name", "custom", "fetch"])

    run_config = build.call_args[0][0]
    assert run_config.use_secrets
    assert run_config.effective_secret_name == "custom"


def test_fetch_without_credential_source():
    result = runner.invoke(app, ["fetch"])
    assert result.exit_code == 1
    assert "INVALID_ARGUMENT" in result.stdout


def test_fetch_secret_error():
    with patch("monies.commands.fetch_cmd._build_client", side_effect=SecretsError("Failed to get secret value")):
        result = runner.invoke(app, ["--use-secrets", "fetch"])
    assert result.exit_code == 1
    assert "SECRETS_ERROR" in result.stdout


def test_fetch_api_error_closes_client():
    client = _mock_client()
    client.get_accounts.side_effect = ApiError("SimpleFIN API error (HTTP 403): revoked", status_code=403)
    with patch("monies.commands.fetch_cmd._build_client", return_value=client):
        result = runner.invoke(app, ["--use-secrets", "fetch"])

    assert result.exit_code == 1
    assert "API_ERROR" in result.stdout
    client.close.assert_called_once()


def test_fetch_invalid_date():
    result = runner.invoke(app, ["--use-secrets", "fetch", "--start-date", "yesterday"])
    assert result.exit_code == 1
    assert "INVALID_ARGUMENT" in result.stdout
    assert "expected YYYY-MM-DD" in result.stdout
