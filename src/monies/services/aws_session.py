"""Builds an authenticated boto3 session for an SSO profile, logging in when needed."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import boto3
from rich.console import Console

from monies.models.auth import CredentialStatus, LoginProfile
from monies.services.credential_status import CredentialStatusChecker
from monies.services.login_flow import LoginFlow
from monies.services.sso_backend import Boto3SsoBackend, SsoBackend
from monies.services.sso_config import SsoConfigLoader
from monies.utils.cache import CredentialCache, FileCredentialCache
from monies.utils.errors import ConfigLookupError

logger = logging.getLogger(__name__)
console = Console(stderr=True)

# Cached role credentials this close to expiry are not reused
ROLE_EXPIRY_MARGIN = timedelta(minutes=5)


class AwsSessionProvider:
    """Resolves a usable boto3 session for one SSO profile.

    Unexpired role credentials from a previous login are reused first.
    Next come the profile's own credentials when the identity probe accepts
    them; otherwise the device-authorization login runs and its role credentials
    back the returned session.
    """

    def __init__(
        self,
        profile_name: str,
        loader: SsoConfigLoader | None = None,
        cache: CredentialCache | None = None,
        backend_factory: Callable[[str], SsoBackend] = Boto3SsoBackend,
    ) -> None:
        self._profile_name = profile_name
        self._loader = loader or SsoConfigLoader()
        self._cache = cache or FileCredentialCache()
        self._backend_factory = backend_factory
        self._profile: LoginProfile | None = None
        self._backend: SsoBackend | None = None

    @property
    def profile(self) -> LoginProfile:
        if self._profile is None:
            self._profile = self._loader.load(self._profile_name)
        return self._profile

    @property
    def backend(self) -> SsoBackend:
        if self._backend is None:
            self._backend = self._backend_factory(self.profile.region)
        return self._backend

    def status(self) -> tuple[LoginProfile | None, CredentialStatus]:
        """Current credential status, or ERROR if the profile cannot be loaded."""
        try:
            profile = self.profile
        except ConfigLookupError as e:
            logger.info(f"Cannot check credentials: {e}")
            return None, CredentialStatus.ERROR
        return profile, CredentialStatusChecker(self.backend).check(profile)

    def available_profiles(self) -> list[str]:
        """Profile names in the config file, empty if it cannot be read."""
        try:
            return self._loader.list_profiles()
        except ConfigLookupError:
            return []

    def login(self) -> boto3.Session:
        """Run the interactive login unconditionally."""
        flow = LoginFlow(self.backend, self._cache)
        creds = flow.initiate(self.profile)
        logger.info(f"SSO login succeeded; credentials expire at {creds.expires_at.isoformat()}")
        return self.backend.session_from_credentials(creds, self.profile.region)

    def get_session(self) -> boto3.Session:
        """Return a session with valid credentials, logging in if required."""
        profile = self.profile
        cached = self._cached_session(profile)
        if cached is not None:
            return cached

        status = CredentialStatusChecker(self.backend).check(profile)
        if status.needs_login:
            console.print(
                f"AWS credentials for profile [bold]{profile.profile_name}[/bold] are "
                f"{status.value.replace('_', ' ')}. Starting SSO login...",
                style="yellow",
            )
            return self.login()
        return self.backend.profile_session(profile)

    def _cached_session(self, profile: LoginProfile) -> boto3.Session | None:
        """Session from cached role credentials, or None if absent or near expiry."""
        try:
            creds = self._cache.read_role(profile)
        except (OSError, ValueError, KeyError) as e:
            logger.warning(f"Ignoring unreadable role credential cache: {e}")
            return None
        if creds is None:
            return None
        if creds.expires_at - ROLE_EXPIRY_MARGIN <= datetime.now(timezone.utc):
            logger.info(f"Cached role credentials expired at {creds.expires_at.isoformat()}")
            return None
        logger.info(f"Reusing cached role credentials until {creds.expires_at.isoformat()}")
        return self.backend.session_from_credentials(creds, profile.region)
