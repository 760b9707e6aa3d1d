"""Device-authorization login against AWS IAM Identity Center.

The flow registers a throwaway public client, asks the user to approve the
device in a browser, polls for the SSO access token, and trades it for
role credentials. Both tokens are cached so later runs (and the AWS CLI)
can reuse them.
"""

from __future__ import annotations

import logging
import time
import webbrowser
from collections.abc import Callable
from enum import Enum

from rich.console import Console

from monies.models.auth import LoginProfile, RoleCredential, SessionToken
from monies.services.sso_backend import SsoBackend
from monies.utils.cache import CredentialCache
from monies.utils.errors import (
    AuthorizationPending,
    AuthorizationStartError,
    AuthorizationTimeoutError,
    CacheWriteError,
    RegistrationError,
    RoleCredentialError,
    SlowDown,
    TokenExchangeError,
)

logger = logging.getLogger(__name__)
console = Console(stderr=True)

CLIENT_NAME = "monies-cli"
SLOW_DOWN_INCREMENT = 5


class LoginState(str, Enum):
    IDLE = "idle"
    CLIENT_REGISTERED = "client_registered"
    AUTHORIZATION_STARTED = "authorization_started"
    POLLING = "polling"
    AUTHORIZED = "authorized"
    EXPIRED = "expired"
    FAILED = "failed"


def _open_browser(url: str) -> bool:
    return webbrowser.open(url)


class LoginFlow:
    """Runs one SSO device-authorization login for a profile."""

    def __init__(
        self,
        backend: SsoBackend,
        cache: CredentialCache,
        *,
        sleep: Callable[[float], None] | None = None,
        clock: Callable[[], float] | None = None,
        open_browser: Callable[[str], bool] | None = None,
    ) -> None:
        self._backend = backend
        self._cache = cache
        self._sleep = sleep or time.sleep
        self._clock = clock or time.monotonic
        self._open_browser = open_browser or _open_browser
        self.state = LoginState.IDLE

    def initiate(self, profile: LoginProfile) -> RoleCredential:
        """Log in interactively and return role credentials for ``profile``.

        Raises:
            RegistrationError: Client registration failed.
            AuthorizationStartError: Device authorization could not start.
            TokenExchangeError: Polling failed with something other than "pending".
            AuthorizationTimeoutError: The user did not approve in time.
            RoleCredentialError: Role credentials could not be fetched.
            CacheWriteError: Role credentials could not be cached.
        """
        self.state = LoginState.IDLE
        try:
            token = self._authorize(profile)
            return self._fetch_role_credentials(profile, token)
        except AuthorizationTimeoutError:
            self.state = LoginState.EXPIRED
            raise
        except Exception:
            self.state = LoginState.FAILED
            raise

    def _authorize(self, profile: LoginProfile) -> SessionToken:
        try:
            registration = self._backend.register_client(CLIENT_NAME)
        except Exception as e:
            raise RegistrationError(f"Failed to register SSO client: {e}") from e
        self.state = LoginState.CLIENT_REGISTERED

        try:
            device = self._backend.start_device_authorization(registration, profile.start_url)
        except Exception as e:
            raise AuthorizationStartError(f"Failed to start device authorization: {e}") from e
        self.state = LoginState.AUTHORIZATION_STARTED

        self._present(device.verification_uri_complete, device.user_code)

        interval = float(device.interval)
        deadline = self._clock() + device.expires_in
        self.state = LoginState.POLLING
        console.print("Waiting for authorization...", style="yellow")

        while self._clock() < deadline:
            self._sleep(interval)
            try:
                token = self._backend.create_token(registration, device.device_code)
            except SlowDown:
                interval += SLOW_DOWN_INCREMENT
                logger.info(f"SSO asked to slow down; polling every {interval:.0f}s")
                continue
            except AuthorizationPending:
                continue
            except Exception as e:
                raise TokenExchangeError(f"Failed to create SSO token: {e}") from e

            self.state = LoginState.AUTHORIZED
            self._cache_session(profile, token)
            return token

        raise AuthorizationTimeoutError("Device authorization expired before it was approved")

    def _present(self, url: str, user_code: str) -> None:
        console.print("Opening browser for SSO authentication...")
        console.print(f"Verification URL: [bold]{url}[/bold]")
        console.print(f"User code: [bold]{user_code}[/bold]")
        try:
            opened = self._open_browser(url)
        except Exception as e:
            logger.warning(f"Browser launch failed: {e}")
            opened = False
        if not opened:
            console.print("[dim]Could not open a browser. Visit the URL above manually.[/dim]")

    def _cache_session(self, profile: LoginProfile, token: SessionToken) -> None:
        try:
            self._cache.write_session(profile, token)
        except Exception as e:
            logger.warning(f"Failed to cache SSO token: {e}")

    def _fetch_role_credentials(self, profile: LoginProfile, token: SessionToken) -> RoleCredential:
        try:
            creds = self._backend.get_role_credentials(
                token.access_token, profile.account_id, profile.role_name
            )
        except Exception as e:
            raise RoleCredentialError(
                f"Failed to get role credentials for {profile.role_name}@{profile.account_id}: {e}"
            ) from e

        try:
            self._cache.write_role(profile, creds)
        except CacheWriteError:
            raise
        except Exception as e:
            raise CacheWriteError(f"Failed to cache role credentials: {e}") from e
        return creds
