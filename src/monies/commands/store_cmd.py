"""CLI command for storing the SimpleFIN credential in Secrets Manager."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from monies.auth import SetupTokenResolver
from monies.commands.common import get_state, resolve_output
from monies.services.credentials import build_secrets_store
from monies.utils.errors import MoniesError, handle_error
from monies.utils.output import OutputFormat, print_output

console = Console(stderr=True)


def store(
    ctx: typer.Context,
    output: Annotated[OutputFormat | None, typer.Option("--output", "-o", help="Output format")] = None,
) -> None:
    """Claim a setup token and store the resulting credential in AWS Secrets Manager.

    The setup token is single-use; afterwards run `monies --use-secrets fetch`.
    """
    state = get_state(ctx)
    run = state.run
    fmt = resolve_output(state, output)

    if not run.setup_token:
        handle_error(ValueError("Setup token is required for storing (--setup-token)"))
        raise typer.Exit(1)

    secret_name = run.effective_secret_name
    resolver = SetupTokenResolver(timeout=run.settings.http_timeout)
    try:
        credential = resolver.resolve(run.setup_token)
        build_secrets_store(run).store(secret_name, credential)
    except MoniesError as e:
        handle_error(e)
        raise typer.Exit(1)
    finally:
        resolver.close()

    console.print("[green]Stored access token in AWS Secrets Manager[/green]")
    print_output(
        {
            "status": "stored",
            "secret_name": secret_name,
            "next": f'monies --use-secrets --secret-name "{secret_name}" fetch',
        },
        fmt,
        title="Secret Stored",
    )
