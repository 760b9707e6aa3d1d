"""Classifies locally available AWS credentials as valid, expired, or missing."""

from __future__ import annotations

import logging
from typing import Any

from monies.models.auth import CredentialStatus, LoginProfile
from monies.services.sso_backend import SsoBackend
from monies.utils.errors import ProbeError

logger = logging.getLogger(__name__)

_EXPIRED_MARKERS = ("expired", "ExpiredToken", "TokenExpired", "InvalidGrantException", "refresh")
_NOT_FOUND_MARKERS = ("NoCredentialProviders", "no valid credential", "Unable to locate credentials")


def _contains_any(text: str, markers: tuple[str, ...]) -> bool:
    lower = text.lower()
    return any(marker.lower() in lower for marker in markers)


def classify_session_error(error: Exception) -> CredentialStatus:
    """Status for a failure to build a session from the profile."""
    if _contains_any(str(error), _EXPIRED_MARKERS):
        return CredentialStatus.EXPIRED
    return CredentialStatus.NOT_FOUND


def classify_probe_error(error: Exception) -> CredentialStatus:
    """Status for a failed identity probe; unknown failures count as expired."""
    text = str(error)
    if _contains_any(text, _EXPIRED_MARKERS):
        return CredentialStatus.EXPIRED
    if _contains_any(text, _NOT_FOUND_MARKERS):
        return CredentialStatus.NOT_FOUND
    return CredentialStatus.EXPIRED


class CredentialStatusChecker:
    """Probes ``sts:GetCallerIdentity`` with the profile's cached credentials."""

    def __init__(self, backend: SsoBackend) -> None:
        self._backend = backend

    def probe(self, profile: LoginProfile) -> dict[str, Any]:
        """Return the caller identity for ``profile``.

        Raises:
            ProbeError: Carrying the classified ``CredentialStatus``.
        """
        try:
            session = self._backend.profile_session(profile)
        except Exception as e:
            raise ProbeError(
                f"Could not load credentials for profile '{profile.profile_name}': {e}",
                status=classify_session_error(e),
            ) from e

        try:
            return self._backend.probe_identity(session)
        except Exception as e:
            raise ProbeError(
                f"Identity probe failed for profile '{profile.profile_name}': {e}",
                status=classify_probe_error(e),
            ) from e

    def check(self, profile: LoginProfile) -> CredentialStatus:
        try:
            identity = self.probe(profile)
        except ProbeError as e:
            logger.info(f"{e} ({e.status.value})")
            return e.status

        logger.info(f"Credentials valid for {identity.get('Arn', profile.profile_name)}")
        return CredentialStatus.VALID
