"""CLI command for the scheduled sync run: fetch balances and persist them."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from monies.client import SimpleFinClient
from monies.commands.common import get_state, resolve_output
from monies.config import RunConfig
from monies.services.credentials import resolve_access_credential
from monies.services.storage import AccountStore
from monies.services.sync import SyncService
from monies.utils.errors import MoniesError, handle_error
from monies.utils.output import OutputFormat, print_output

console = Console(stderr=True)


def _build_service(run_config: RunConfig) -> tuple[SimpleFinClient, AccountStore, SyncService]:
    # A sync without a setup token reads the stored credential
    if not run_config.setup_token:
        run_config = run_config.model_copy(update={"use_secrets": True})

    credential = resolve_access_credential(run_config)
    client = SimpleFinClient(credential, timeout=run_config.settings.http_timeout)
    try:
        store = AccountStore(run_config.effective_db_path)
    except MoniesError:
        client.close()
        raise
    return client, store, SyncService(client, store)


def sync(
    ctx: typer.Context,
    output: Annotated[OutputFormat | None, typer.Option("--output", "-o", help="Output format")] = None,
) -> None:
    """Fetch account balances and record them in the local database.

    Intended for cron: one run writes one balance row per account.
    """
    state = get_state(ctx)
    fmt = resolve_output(state, output)

    try:
        client, store, service = _build_service(state.run)
    except (MoniesError, ValueError) as e:
        handle_error(e)
        raise typer.Exit(1)

    try:
        result = service.run()
        if fmt == OutputFormat.JSON:
            print_output(
                {**result.model_dump(), "balances": store.balances_for_run(result.run_id)},
                fmt,
            )
        else:
            print_output(result, fmt, title="Sync Run")
            print_output(
                store.balances_for_run(result.run_id),
                fmt,
                columns=["name", "institution", "balance", "account_id"],
                title="Balances",
            )
    except MoniesError as e:
        handle_error(e)
        raise typer.Exit(1)
    finally:
        client.close()
        store.close()
