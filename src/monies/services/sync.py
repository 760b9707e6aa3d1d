"""Sync run: fetch SimpleFIN accounts and record their balances."""

from __future__ import annotations

import logging
import uuid

from rich.console import Console

from monies.client import SimpleFinClient
from monies.models.accounts import GetAccountsOptions, SyncResult
from monies.services.storage import AccountStore

logger = logging.getLogger(__name__)
console = Console(stderr=True)


class SyncService:
    """Writes one balance snapshot per account per run."""

    def __init__(self, client: SimpleFinClient, store: AccountStore) -> None:
        self._client = client
        self._store = store

    def run(self, options: GetAccountsOptions | None = None) -> SyncResult:
        """Fetch accounts and persist them under a fresh run ID.

        Accounts seen for the first time are inserted before their balance.
        """
        result = SyncResult(run_id=str(uuid.uuid4()))
        options = options or GetAccountsOptions()

        self._store.ensure_schema()
        response = self._client.get_accounts(options)
        console.print(f"Fetched {len(response.accounts)} account(s), run {result.run_id}")

        for account in response.accounts:
            result.accounts_seen += 1
            if not self._store.bank_account_exists(account.id):
                self._store.put_bank_account(account)
                result.accounts_created += 1
                logger.info(f"New account {account.id} ({account.name})")

            self._store.put_account_balance(account.id, result.run_id, account.balance)
            result.balances_written += 1

        return result
