"""Auth-related data models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalize_utc(value: datetime) -> datetime:
    """Coerce to an aware UTC datetime with whole-second precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0)


class AccessCredential(BaseModel):
    """SimpleFIN Basic-Auth credentials claimed from a setup token.

    Serialized with the ``Username``/``Password``/``Url`` keys so secrets
    written by earlier releases still load.
    """
    username: str = Field(alias="Username")
    password: str = Field(alias="Password")
    host_path: str = Field(alias="Url")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class LoginProfile(BaseModel):
    """SSO parameters for one named profile in the AWS config file."""
    profile_name: str
    region: str
    start_url: str = Field(min_length=1)
    account_id: str = Field(min_length=1)
    role_name: str = Field(min_length=1)

    model_config = ConfigDict(frozen=True)


class SessionToken(BaseModel):
    """SSO access token returned by the device-authorization exchange."""
    access_token: str
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def _utc_seconds(cls, v: datetime) -> datetime:
        return _normalize_utc(v)


class RoleCredential(BaseModel):
    """Short-lived IAM credentials scoped to one account/role."""
    access_key: str
    secret_key: str
    session_token: str
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def _utc_seconds(cls, v: datetime) -> datetime:
        return _normalize_utc(v)


class ClientRegistration(BaseModel):
    """Ephemeral public OIDC client registered for a single login."""
    client_id: str
    client_secret: str
    expires_at: datetime | None = None


class DeviceAuthorization(BaseModel):
    """Out-of-band authorization the user completes in a browser."""
    device_code: str
    user_code: str
    verification_uri: str
    verification_uri_complete: str
    interval: int = 5
    expires_in: int = 600


class CredentialStatus(str, Enum):
    VALID = "valid"
    EXPIRED = "expired"
    NOT_FOUND = "not_found"
    ERROR = "error"

    @property
    def needs_login(self) -> bool:
        return self in (CredentialStatus.EXPIRED, CredentialStatus.NOT_FOUND)
