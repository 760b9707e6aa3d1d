"""AWS config file lookup for SSO login profiles."""

from __future__ import annotations

import configparser
import logging
import os
from pathlib import Path

from monies.config import DEFAULT_REGION
from monies.models.auth import LoginProfile
from monies.utils.errors import ConfigNotFoundError, IncompleteProfileError, ProfileNotFoundError

logger = logging.getLogger(__name__)

PROFILE_PREFIX = "profile "
SESSION_PREFIX = "sso-session "


def default_config_path() -> Path:
    explicit = os.environ.get("AWS_CONFIG_FILE", "")
    if explicit:
        return Path(explicit).expanduser()
    return Path.home() / ".aws" / "config"


def profile_section_name(profile_name: str) -> str:
    """``[default]`` for the default profile, ``[profile <name>]`` otherwise."""
    if profile_name == "default":
        return "default"
    return f"{PROFILE_PREFIX}{profile_name}"


class SsoConfigLoader:
    """Resolves ``LoginProfile`` values from an AWS-style INI config file."""

    def __init__(self, config_path: Path | str | None = None, fallback_region: str = DEFAULT_REGION) -> None:
        self._path = Path(config_path).expanduser() if config_path else default_config_path()
        self._fallback_region = fallback_region

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> configparser.ConfigParser:
        if not self._path.exists():
            raise ConfigNotFoundError(f"AWS config file not found at {self._path}")

        parser = configparser.ConfigParser(interpolation=None, strict=False)
        parser.read(self._path, encoding="utf-8")
        return parser

    def list_profiles(self) -> list[str]:
        """Profile names in file order."""
        names = []
        for section in self._read().sections():
            if section == "default":
                names.append("default")
            elif section.startswith(PROFILE_PREFIX):
                names.append(section[len(PROFILE_PREFIX):].strip())
        return names

    def load(self, profile_name: str) -> LoginProfile:
        """Load the SSO parameters for ``profile_name``.

        Values from an ``sso_session`` indirection fill in only what the
        profile section leaves unset.

        Raises:
            ConfigNotFoundError: The config file does not exist.
            ProfileNotFoundError: No section for this profile.
            IncompleteProfileError: start URL, account ID or role name missing.
        """
        parser = self._read()
        section_name = profile_section_name(profile_name)
        if not parser.has_section(section_name):
            raise ProfileNotFoundError(f"Profile '{profile_name}' not found in AWS config {self._path}")

        profile = parser[section_name]
        start_url = profile.get("sso_start_url", "").strip()
        sso_region = profile.get("sso_region", "").strip()

        session_name = profile.get("sso_session", "").strip()
        if session_name:
            session_section = f"{SESSION_PREFIX}{session_name}"
            if parser.has_section(session_section):
                session = parser[session_section]
                start_url = start_url or session.get("sso_start_url", "").strip()
                sso_region = sso_region or session.get("sso_region", "").strip()
            else:
                logger.warning(f"Profile '{profile_name}' references missing [{session_section}]")

        account_id = profile.get("sso_account_id", "").strip()
        role_name = profile.get("sso_role_name", "").strip()
        region = sso_region or profile.get("region", "").strip() or self._fallback_region

        missing = [
            key for key, value in (
                ("sso_start_url", start_url),
                ("sso_account_id", account_id),
                ("sso_role_name", role_name),
            ) if not value
        ]
        if missing:
            raise IncompleteProfileError(
                f"Incomplete SSO configuration for profile '{profile_name}': missing {', '.join(missing)}"
            )

        return LoginProfile(
            profile_name=profile_name,
            region=region,
            start_url=start_url,
            account_id=account_id,
            role_name=role_name,
        )
