"""On-disk cache for SSO access tokens and role credentials.

The file layout matches the AWS CLI so a successful ``monies auth login`` is
also visible to ``aws`` and boto3 profile sessions:

- ``<root>/sso/cache/<sha1(start_url)>.json`` holds the SSO access token.
- ``<root>/cli/cache/sso-<profile>.json`` holds the role credentials.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from monies.models.auth import LoginProfile, RoleCredential, SessionToken
from monies.utils.errors import CacheWriteError

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
FILE_MODE = 0o600
DIR_MODE = 0o700


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    # The AWS CLI writes "+00:00" offsets, we write "Z"
    return datetime.fromisoformat(value.replace("Z", "+00:00")).astimezone(timezone.utc)


def session_cache_key(start_url: str) -> str:
    """SHA-1 of the start URL, as the AWS CLI names its token cache files."""
    return hashlib.sha1(start_url.encode("utf-8")).hexdigest()


def role_cache_key(profile_name: str) -> str:
    return f"sso-{profile_name}"


class CredentialCache(Protocol):
    """Read/write port for credentials obtained by the login flow."""

    def write_session(self, profile: LoginProfile, token: SessionToken) -> None: ...

    def write_role(self, profile: LoginProfile, creds: RoleCredential) -> None: ...

    def read_session(self, profile: LoginProfile) -> SessionToken | None: ...

    def read_role(self, profile: LoginProfile) -> RoleCredential | None: ...


class FileCredentialCache:
    """Credential cache backed by JSON files with owner-only permissions."""

    def __init__(self, root: Path | str | None = None) -> None:
        self._root = Path(root).expanduser() if root else Path.home() / ".aws"

    @property
    def session_dir(self) -> Path:
        return self._root / "sso" / "cache"

    @property
    def role_dir(self) -> Path:
        return self._root / "cli" / "cache"

    def session_path(self, profile: LoginProfile) -> Path:
        return self.session_dir / f"{session_cache_key(profile.start_url)}.json"

    def role_path(self, profile: LoginProfile) -> Path:
        return self.role_dir / f"{role_cache_key(profile.profile_name)}.json"

    def write_session(self, profile: LoginProfile, token: SessionToken) -> None:
        record = {
            "startUrl": profile.start_url,
            "region": profile.region,
            "accessToken": token.access_token,
            "expiresAt": format_timestamp(token.expires_at),
        }
        path = self.session_path(profile)
        self._write_json(path, record)
        logger.info(f"SSO token cached at {path}")

    def write_role(self, profile: LoginProfile, creds: RoleCredential) -> None:
        record = {
            "Credentials": {
                "AccessKeyId": creds.access_key,
                "SecretAccessKey": creds.secret_key,
                "SessionToken": creds.session_token,
            },
            "Expiration": format_timestamp(creds.expires_at),
            "ProviderType": "sso",
        }
        path = self.role_path(profile)
        self._write_json(path, record)
        logger.info(f"Role credentials cached at {path}")

    def read_session(self, profile: LoginProfile) -> SessionToken | None:
        data = self._read_json(self.session_path(profile))
        if data is None:
            return None
        return SessionToken(
            access_token=data["accessToken"],
            expires_at=parse_timestamp(data["expiresAt"]),
        )

    def read_role(self, profile: LoginProfile) -> RoleCredential | None:
        data = self._read_json(self.role_path(profile))
        if data is None:
            return None
        creds = data["Credentials"]
        return RoleCredential(
            access_key=creds["AccessKeyId"],
            secret_key=creds["SecretAccessKey"],
            session_token=creds["SessionToken"],
            expires_at=parse_timestamp(data["Expiration"]),
        )

    def _read_json(self, path: Path) -> dict[str, Any] | None:
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    def _write_json(self, path: Path, record: dict[str, Any]) -> None:
        """Write ``record`` atomically: temp file in the same dir, then replace."""
        try:
            payload = json.dumps(record, indent=2)
            path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            os.chmod(path.parent, DIR_MODE)

            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.chmod(tmp_name, FILE_MODE)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise CacheWriteError(f"Failed to write credential cache {path}: {e}") from e


class InMemoryCredentialCache:
    """Dict-backed credential cache for tests and dry runs."""

    def __init__(self) -> None:
        self.sessions: dict[str, SessionToken] = {}
        self.roles: dict[str, RoleCredential] = {}

    def write_session(self, profile: LoginProfile, token: SessionToken) -> None:
        self.sessions[session_cache_key(profile.start_url)] = token

    def write_role(self, profile: LoginProfile, creds: RoleCredential) -> None:
        self.roles[role_cache_key(profile.profile_name)] = creds

    def read_session(self, profile: LoginProfile) -> SessionToken | None:
        return self.sessions.get(session_cache_key(profile.start_url))

    def read_role(self, profile: LoginProfile) -> RoleCredential | None:
        return self.roles.get(role_cache_key(profile.profile_name))
