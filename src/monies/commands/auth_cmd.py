"""CLI commands for AWS SSO authentication."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from monies.commands.common import get_state, resolve_output
from monies.services.credentials import build_session_provider
from monies.utils.errors import MoniesError, handle_error
from monies.utils.output import OutputFormat, print_output

console = Console(stderr=True)
app = typer.Typer(name="auth", help="Manage AWS SSO credentials.")


def _require_profile(ctx: typer.Context) -> None:
    if not get_state(ctx).run.effective_sso_profile:
        handle_error(ValueError("An SSO profile is required (--sso-profile or MONIES_SSO_PROFILE)"))
        raise typer.Exit(1)


@app.command()
def login(
    ctx: typer.Context,
    output: Annotated[OutputFormat | None, typer.Option("--output", "-o", help="Output format")] = None,
) -> None:
    """Run the SSO device-authorization login and cache the credentials."""
    _require_profile(ctx)
    state = get_state(ctx)
    fmt = resolve_output(state, output)
    provider = build_session_provider(state.run)

    try:
        console.print(
            f"Logging in with profile [bold]{state.run.effective_sso_profile}[/bold]...", style="yellow"
        )
        provider.login()
    except MoniesError as e:
        handle_error(e)
        raise typer.Exit(1)

    profile = provider.profile
    result = {
        "status": "authenticated",
        "profile": profile.profile_name,
        "account_id": profile.account_id,
        "role_name": profile.role_name,
        "region": profile.region,
    }
    print_output(result, fmt, title="Authentication")


@app.command()
def status(
    ctx: typer.Context,
    output: Annotated[OutputFormat | None, typer.Option("--output", "-o", help="Output format")] = None,
) -> None:
    """Show whether the cached SSO credentials are usable."""
    _require_profile(ctx)
    state = get_state(ctx)
    fmt = resolve_output(state, output)

    provider = build_session_provider(state.run)
    profile, credential_status = provider.status()
    result: dict[str, object] = {
        "profile": state.run.effective_sso_profile,
        "status": credential_status.value,
        "needs_login": credential_status.needs_login,
        "account_id": profile.account_id if profile else "N/A",
        "role_name": profile.role_name if profile else "N/A",
        "region": profile.region if profile else "N/A",
    }
    if profile is None:
        result["available_profiles"] = ", ".join(provider.available_profiles()) or "none"
    print_output(result, fmt, title="Credential Status")
