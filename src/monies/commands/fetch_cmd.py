"""CLI command for fetching accounts from SimpleFIN."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

import typer
from rich.console import Console

from monies.client import SimpleFinClient
from monies.commands.common import get_state, resolve_output
from monies.config import RunConfig
from monies.models.accounts import AccountsResponse, GetAccountsOptions
from monies.services.credentials import resolve_access_credential
from monies.utils.errors import MoniesError, handle_error
from monies.utils.output import OutputFormat, print_json, print_output

console = Console(stderr=True)

ACCOUNT_COLUMNS = ["name", "id", "balance", "currency", "organization", "transactions"]


def parse_date(value: str | None) -> int | None:
    """YYYY-MM-DD (UTC midnight) to unix epoch seconds."""
    if not value:
        return None
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD") from e
    return int(parsed.timestamp())


def _build_client(run_config: RunConfig) -> SimpleFinClient:
    credential = resolve_access_credential(run_config)
    return SimpleFinClient(credential, timeout=run_config.settings.http_timeout)


def account_rows(response: AccountsResponse) -> list[dict[str, object]]:
    return [
        {
            "name": account.name,
            "id": account.id,
            "balance": account.balance,
            "currency": account.currency,
            "organization": account.org.name,
            "transactions": len(account.transactions),
        }
        for account in response.accounts
    ]


def fetch(
    ctx: typer.Context,
    start_date: Annotated[str | None, typer.Option("--start-date", help="Transactions on or after this date (YYYY-MM-DD)")] = None,
    end_date: Annotated[str | None, typer.Option("--end-date", help="Transactions before this date (YYYY-MM-DD)")] = None,
    pending: Annotated[bool, typer.Option("--pending", help="Include pending transactions")] = False,
    account: Annotated[list[str] | None, typer.Option("--account", help="Only this account ID (repeatable)")] = None,
    balances_only: Annotated[bool, typer.Option("--balances-only", help="Skip transaction data")] = False,
    output: Annotated[OutputFormat | None, typer.Option("--output", "-o", help="Output format")] = None,
) -> None:
    """Fetch account information from the SimpleFIN API.

    Uses --setup-token, or a stored credential with --use-secrets.
    """
    state = get_state(ctx)
    fmt = resolve_output(state, output)
    try:
        options = GetAccountsOptions(
            start_date=parse_date(start_date),
            end_date=parse_date(end_date),
            pending=pending,
            account_ids=account or [],
            balances_only=balances_only,
        )
        client = _build_client(state.run)
    except (MoniesError, ValueError) as e:
        handle_error(e)
        raise typer.Exit(1)

    try:
        response = client.get_accounts(options)
        if fmt == OutputFormat.JSON:
            print_json(response.model_dump(by_alias=True))
        else:
            console.print(f"Found {len(response.accounts)} account(s)")
            print_output(account_rows(response), fmt, columns=ACCOUNT_COLUMNS, title="Accounts")
    except MoniesError as e:
        handle_error(e)
        raise typer.Exit(1)
    finally:
        client.close()
