"""Error types and structured error handling for agent-friendly output."""

from __future__ import annotations

import json
import sys

from rich.console import Console

from monies.models.auth import CredentialStatus

console = Console(stderr=True)


class MoniesError(Exception):
    """Base class for every failure the credential and sync pipeline raises."""
    code = "RUNTIME_ERROR"


# ── Setup token / HTTP ───────────────────────────────────────────────

class SetupTokenError(MoniesError):
    code = "SETUP_TOKEN_ERROR"


class DecodeError(SetupTokenError):
    code = "DECODE_ERROR"


class MalformedResponseError(SetupTokenError):
    code = "MALFORMED_RESPONSE"


class NetworkError(MoniesError):
    code = "CONNECTION_ERROR"


class ApiError(MoniesError):
    code = "API_ERROR"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# ── AWS config lookup ────────────────────────────────────────────────

class ConfigLookupError(MoniesError):
    code = "CONFIG_ERROR"


class ConfigNotFoundError(ConfigLookupError):
    code = "CONFIG_NOT_FOUND"


class ProfileNotFoundError(ConfigLookupError):
    code = "PROFILE_NOT_FOUND"


class IncompleteProfileError(ConfigLookupError):
    code = "INCOMPLETE_PROFILE"


# ── SSO login ────────────────────────────────────────────────────────

class LoginError(MoniesError):
    code = "AUTH_ERROR"


class RegistrationError(LoginError):
    pass


class AuthorizationStartError(LoginError):
    pass


class TokenExchangeError(LoginError):
    pass


class AuthorizationTimeoutError(LoginError):
    code = "TIMEOUT"


class RoleCredentialError(LoginError):
    pass


class AuthorizationPending(Exception):
    """The user has not finished authorizing the device yet."""


class SlowDown(AuthorizationPending):
    """The OIDC service asked the client to poll less often."""


# ── Credential status ────────────────────────────────────────────────

class ProbeError(MoniesError):
    """The identity probe failed; ``status`` says whether to log in again."""
    code = "PROBE_ERROR"

    def __init__(self, message: str, status: CredentialStatus = CredentialStatus.ERROR) -> None:
        super().__init__(message)
        self.status = status


# ── Persistence ──────────────────────────────────────────────────────

class CacheWriteError(MoniesError):
    code = "CACHE_WRITE_ERROR"


class SecretsError(MoniesError):
    code = "SECRETS_ERROR"


class StorageError(MoniesError):
    code = "STORAGE_ERROR"


# Actionable hints keyed by error substring
_ERROR_HINTS: list[tuple[str, str]] = [
    ("base64", "The setup token must be the base64 string copied from SimpleFIN Bridge"),
    ("setup token", "Setup tokens are single-use; create a new one in SimpleFIN Bridge"),
    ("claim", "Setup tokens are single-use; create a new one in SimpleFIN Bridge"),
    ("403", "Access denied; the SimpleFIN token may have been revoked"),
    ("401", "Credentials rejected; re-run `monies store` with a fresh setup token"),
    ("expired", "SSO session expired; run `monies auth login`"),
    ("aws config", "Check ~/.aws/config or set AWS_CONFIG_FILE"),
    ("profile", "Check the [profile ...] section in your AWS config"),
    ("secret", "Check --secret-name and that your AWS role can read Secrets Manager"),
    ("timeout", "Request timed out; try again or check network connectivity"),
    ("timed out", "Request timed out; try again or check network connectivity"),
    ("connection", "Connection error; check network connectivity"),
]


def _get_hint(error_message: str) -> str | None:
    """Match an error message to an actionable hint."""
    lower = error_message.lower()
    for pattern, hint in _ERROR_HINTS:
        if pattern.lower() in lower:
            return hint
    return None


def _get_code(error: Exception) -> str:
    if isinstance(error, MoniesError):
        return error.code
    message = str(error).lower()
    if "401" in message or "unauthorized" in message:
        return "AUTH_ERROR"
    if "timeout" in message:
        return "TIMEOUT"
    if "connection" in message:
        return "CONNECTION_ERROR"
    if isinstance(error, ValueError):
        return "INVALID_ARGUMENT"
    return "RUNTIME_ERROR"


def handle_error(error: Exception) -> None:
    """Handle an error with structured output to stdout and human-readable output to stderr.

    Outputs a JSON error object to stdout for agent consumption:
    {"error": true, "code": "SECRETS_ERROR", "message": "...", "hint": "..."}

    Also prints a human-readable error to stderr.
    """
    message = str(error)
    hint = _get_hint(message)

    error_obj: dict[str, object] = {
        "error": True,
        "code": _get_code(error),
        "message": message,
    }
    if hint:
        error_obj["hint"] = hint

    json.dump(error_obj, sys.stdout)
    sys.stdout.write("\n")

    console.print(f"[red]Error:[/red] {message}")
    if hint:
        console.print(f"[dim]Hint: {hint}[/dim]")
