"""Shared fixtures for the monies test suite."""
from __future__ import annotations

import base64
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from monies.config import RunConfig, Settings
from monies.models.auth import (
    AccessCredential,
    ClientRegistration,
    DeviceAuthorization,
    LoginProfile,
    RoleCredential,
    SessionToken,
)

AWS_CONFIG = """\
[default]
region = eu-west-1

[profile demo]
sso_start_url = https://example.awsapps.com/start
sso_region = us-west-2
sso_account_id = 123456789012
sso_role_name = ReadOnly

[profile via-session]
sso_session = corp
sso_account_id = 210987654321
sso_role_name = Admin

[sso-session corp]
sso_start_url = https://corp.awsapps.com/start
sso_region = eu-central-1

[profile partial]
sso_start_url = https://example.awsapps.com/start
"""


def encode_token(claim_url: str) -> str:
    return base64.b64encode(claim_url.encode("utf-8")).decode("ascii")


@pytest.fixture
def fake_settings(tmp_path) -> Settings:
    return Settings(
        sso_profile="",
        region="us-east-1",
        secret_name="monies-test-token",
        secret_prefix="monies",
        db_path=str(tmp_path / "monies.duckdb"),
        aws_dir=str(tmp_path / "aws"),
        aws_config_file=str(tmp_path / "aws" / "config"),
        http_timeout=5.0,
    )


@pytest.fixture
def run_config(fake_settings) -> RunConfig:
    return RunConfig(settings=fake_settings)


@pytest.fixture
def aws_config_file(tmp_path):
    path = tmp_path / "aws" / "config"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(AWS_CONFIG)
    return path


@pytest.fixture
def credential() -> AccessCredential:
    return AccessCredential(username="alice", password="s3cr3t", host_path="api.example.com/simplefin")


@pytest.fixture
def login_profile() -> LoginProfile:
    return LoginProfile(
        profile_name="demo",
        region="us-west-2",
        start_url="https://example.awsapps.com/start",
        account_id="123456789012",
        role_name="ReadOnly",
    )


@pytest.fixture
def session_token() -> SessionToken:
    return SessionToken(
        access_token="sso-access-token",
        expires_at=datetime(2030, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def role_credential() -> RoleCredential:
    return RoleCredential(
        access_key="AKIAEXAMPLE",
        secret_key="secret-key",
        session_token="session-token",
        expires_at=datetime(2030, 1, 1, 13, 0, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def mock_backend(session_token, role_credential):
    """MagicMock standing in for an SsoBackend that authorizes on the first poll."""
    backend = MagicMock()
    backend.register_client.return_value = ClientRegistration(
        client_id="client-id",
        client_secret="client-secret",
        expires_at=datetime.now(timezone.utc) + timedelta(days=90),
    )
    backend.start_device_authorization.return_value = DeviceAuthorization(
        device_code="device-code",
        user_code="ABCD-EFGH",
        verification_uri="https://device.sso.us-west-2.amazonaws.com/",
        verification_uri_complete="https://device.sso.us-west-2.amazonaws.com/?user_code=ABCD-EFGH",
        interval=5,
        expires_in=600,
    )
    backend.create_token.return_value = session_token
    backend.get_role_credentials.return_value = role_credential
    backend.probe_identity.return_value = {"Arn": "arn:aws:sts::123456789012:assumed-role/ReadOnly/alice"}
    return backend
