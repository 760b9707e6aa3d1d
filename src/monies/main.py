"""monies CLI entry point.

Pulls account data from a SimpleFIN bridge, keeps the access credential in
AWS Secrets Manager behind SSO, and records balances in a local DuckDB file.
"""

from __future__ import annotations

import logging
from typing import Annotated

import typer

from monies.commands.auth_cmd import app as auth_app
from monies.commands.common import CliState
from monies.commands.fetch_cmd import fetch
from monies.commands.secrets_cmd import app as secrets_app
from monies.commands.store_cmd import store
from monies.commands.sync_cmd import sync
from monies.config import RunConfig, get_config
from monies.utils.output import OutputFormat

app = typer.Typer(
    name="monies",
    help="CLI tool for pulling SimpleFIN account data and tracking balances.",
    no_args_is_help=True,
)

# Register commands
app.command("fetch")(fetch)
app.command("store")(store)
app.command("sync")(sync)
app.add_typer(secrets_app, name="secrets")
app.add_typer(auth_app, name="auth")


@app.callback()
def main(
    ctx: typer.Context,
    secret_name: Annotated[str, typer.Option("--secret-name", help="Name of the secret in AWS Secrets Manager")] = "",
    use_secrets: Annotated[bool, typer.Option("--use-secrets", help="Read the access credential from AWS Secrets Manager")] = False,
    setup_token: Annotated[str, typer.Option("--setup-token", help="SimpleFIN setup token (base64)")] = "",
    sso_profile: Annotated[str, typer.Option("--sso-profile", help="AWS SSO profile for Secrets Manager access")] = "",
    db_path: Annotated[str, typer.Option("--db-path", help="DuckDB file for recorded balances")] = "",
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = OutputFormat.TABLE,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """monies: SimpleFIN accounts, stored credentials, and balance history."""
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    ctx.obj = CliState(
        run=RunConfig(
            settings=get_config(),
            setup_token=setup_token,
            use_secrets=use_secrets,
            secret_name=secret_name,
            sso_profile=sso_profile,
            db_path=db_path,
        ),
        output=output,
    )


if __name__ == "__main__":
    app()
