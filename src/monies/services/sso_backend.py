"""AWS IAM Identity Center calls used by the login flow and status check.

``SsoBackend`` is the capability interface the flow depends on;
``Boto3SsoBackend`` implements it with boto3's ``sso-oidc``, ``sso`` and
``sts`` clients.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

import boto3
from botocore.exceptions import ClientError

from monies.models.auth import (
    ClientRegistration,
    DeviceAuthorization,
    LoginProfile,
    RoleCredential,
    SessionToken,
)
from monies.utils.errors import AuthorizationPending, SlowDown

logger = logging.getLogger(__name__)

DEVICE_CODE_GRANT = "urn:ietf:params:oauth:grant-type:device_code"


class SsoBackend(Protocol):
    def register_client(self, client_name: str) -> ClientRegistration: ...

    def start_device_authorization(
        self, registration: ClientRegistration, start_url: str
    ) -> DeviceAuthorization: ...

    def create_token(self, registration: ClientRegistration, device_code: str) -> SessionToken: ...

    def get_role_credentials(self, access_token: str, account_id: str, role_name: str) -> RoleCredential: ...

    def profile_session(self, profile: LoginProfile) -> boto3.Session: ...

    def probe_identity(self, session: boto3.Session) -> dict[str, Any]: ...

    def session_from_credentials(self, creds: RoleCredential, region: str) -> boto3.Session: ...


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


class Boto3SsoBackend:
    """``SsoBackend`` backed by boto3, bound to the SSO region."""

    def __init__(self, region: str, session: boto3.Session | None = None) -> None:
        self._region = region
        # OIDC and portal operations are unsigned
        self._session = session or boto3.Session(region_name=region)
        self._oidc = self._session.client("sso-oidc", region_name=region)
        self._sso = self._session.client("sso", region_name=region)

    def register_client(self, client_name: str) -> ClientRegistration:
        resp = self._oidc.register_client(clientName=client_name, clientType="public")
        expires_at = None
        if resp.get("clientSecretExpiresAt"):
            expires_at = datetime.fromtimestamp(resp["clientSecretExpiresAt"], tz=timezone.utc)
        return ClientRegistration(
            client_id=resp["clientId"],
            client_secret=resp["clientSecret"],
            expires_at=expires_at,
        )

    def start_device_authorization(
        self, registration: ClientRegistration, start_url: str
    ) -> DeviceAuthorization:
        resp = self._oidc.start_device_authorization(
            clientId=registration.client_id,
            clientSecret=registration.client_secret,
            startUrl=start_url,
        )
        return DeviceAuthorization(
            device_code=resp["deviceCode"],
            user_code=resp["userCode"],
            verification_uri=resp.get("verificationUri", ""),
            verification_uri_complete=resp.get("verificationUriComplete") or resp.get("verificationUri", ""),
            interval=resp.get("interval") or 5,
            expires_in=resp.get("expiresIn") or 600,
        )

    def create_token(self, registration: ClientRegistration, device_code: str) -> SessionToken:
        """Exchange the device code for an SSO access token.

        Raises:
            AuthorizationPending: The user has not approved the request yet.
            SlowDown: Polling too fast.
        """
        try:
            resp = self._oidc.create_token(
                clientId=registration.client_id,
                clientSecret=registration.client_secret,
                grantType=DEVICE_CODE_GRANT,
                deviceCode=device_code,
            )
        except ClientError as e:
            code = _error_code(e)
            if code == "AuthorizationPendingException":
                raise AuthorizationPending(code) from e
            if code == "SlowDownException":
                raise SlowDown(code) from e
            raise

        return SessionToken(
            access_token=resp["accessToken"],
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=resp.get("expiresIn", 0)),
        )

    def get_role_credentials(self, access_token: str, account_id: str, role_name: str) -> RoleCredential:
        resp = self._sso.get_role_credentials(
            roleName=role_name,
            accountId=account_id,
            accessToken=access_token,
        )
        creds = resp["roleCredentials"]
        return RoleCredential(
            access_key=creds["accessKeyId"],
            secret_key=creds["secretAccessKey"],
            session_token=creds["sessionToken"],
            expires_at=datetime.fromtimestamp(creds["expiration"] / 1000, tz=timezone.utc),
        )

    def profile_session(self, profile: LoginProfile) -> boto3.Session:
        return boto3.Session(profile_name=profile.profile_name, region_name=profile.region)

    def probe_identity(self, session: boto3.Session) -> dict[str, Any]:
        return session.client("sts").get_caller_identity()

    def session_from_credentials(self, creds: RoleCredential, region: str) -> boto3.Session:
        return boto3.Session(
            aws_access_key_id=creds.access_key,
            aws_secret_access_key=creds.secret_key,
            aws_session_token=creds.session_token,
            region_name=region,
        )
