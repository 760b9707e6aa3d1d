"""CLI commands for managing stored credentials in AWS Secrets Manager."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from monies.commands.common import get_state, resolve_output
from monies.services.credentials import build_secrets_store
from monies.utils.errors import MoniesError, handle_error
from monies.utils.output import OutputFormat, print_output

console = Console(stderr=True)
app = typer.Typer(name="secrets", help="Manage secrets in AWS Secrets Manager.")


@app.command("list")
def list_secrets(
    ctx: typer.Context,
    all_secrets: Annotated[bool, typer.Option("--all", help="List all secrets, not just monies ones")] = False,
    output: Annotated[OutputFormat | None, typer.Option("--output", "-o", help="Output format")] = None,
) -> None:
    """List stored secrets, filtered by the monies prefix unless --all."""
    state = get_state(ctx)
    fmt = resolve_output(state, output)
    prefix = "" if all_secrets else state.run.settings.secret_prefix

    try:
        names = build_secrets_store(state.run).list_secrets(prefix)
    except MoniesError as e:
        handle_error(e)
        raise typer.Exit(1)

    if not names and fmt == OutputFormat.TABLE:
        if prefix:
            console.print(f"No secrets found with prefix '{prefix}'")
        else:
            console.print("No secrets found")
        return

    print_output([{"name": name} for name in names], fmt, title=f"Secrets ({len(names)})")


@app.command("delete")
def delete_secret(
    ctx: typer.Context,
    force: Annotated[bool, typer.Option("--force", help="Delete without confirmation")] = False,
) -> None:
    """Permanently delete the secret named by --secret-name. This cannot be undone."""
    state = get_state(ctx)
    name = state.run.secret_name
    if not name:
        handle_error(ValueError("Secret name is required (--secret-name)"))
        raise typer.Exit(1)

    if not force and not typer.confirm(
        f"Are you sure you want to delete secret '{name}'? This cannot be undone.", default=False
    ):
        console.print("Deletion cancelled.")
        return

    try:
        build_secrets_store(state.run).delete(name)
    except MoniesError as e:
        handle_error(e)
        raise typer.Exit(1)

    console.print(f"[green]Deleted secret:[/green] {name}")
