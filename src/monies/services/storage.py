"""DuckDB storage for bank accounts and per-run balance snapshots."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Any

import duckdb

from monies.models.accounts import Account
from monies.utils.errors import StorageError

logger = logging.getLogger(__name__)

BANK_ACCOUNT_TABLE = "BANK_ACCOUNT"
BANK_ACCOUNT_BALANCE_TABLE = "BANK_ACCOUNT_BALANCE"

SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {BANK_ACCOUNT_TABLE} (
    ID TEXT PRIMARY KEY,
    NAME TEXT NOT NULL,
    INSTITUTION_NAME TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS {BANK_ACCOUNT_BALANCE_TABLE} (
    ID TEXT,
    BANK_ACCOUNT_ID TEXT REFERENCES {BANK_ACCOUNT_TABLE}(ID),
    RUN_ID TEXT NOT NULL,
    BALANCE TEXT NOT NULL,
    CREATED_AT TIMESTAMP DEFAULT current_timestamp
);
"""


class AccountStore:
    """Single-connection store; not safe for concurrent writers."""

    def __init__(self, database_path: Path | str) -> None:
        self.database_path = str(database_path)
        if self.database_path != ":memory:":
            path = Path(self.database_path).expanduser()
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageError(f"Failed to create database directory {path.parent}: {e}") from e
            self.database_path = str(path)

        try:
            self._conn = duckdb.connect(self.database_path)
        except duckdb.Error as e:
            raise StorageError(f"Failed to open database {self.database_path}: {e}") from e
        logger.info(f"Opened account database: {self.database_path}")

    def _execute(self, query: str, params: list[Any] | None = None) -> duckdb.DuckDBPyConnection:
        try:
            if params is None:
                return self._conn.execute(query)
            return self._conn.execute(query, params)
        except duckdb.Error as e:
            raise StorageError(f"Database error: {e}") from e

    def ensure_schema(self) -> None:
        self._execute(SCHEMA)

    def bank_account_exists(self, account_id: str) -> bool:
        row = self._execute(
            f"SELECT COUNT(*) FROM {BANK_ACCOUNT_TABLE} WHERE ID = ?", [account_id]
        ).fetchone()
        return bool(row and row[0] > 0)

    def put_bank_account(self, account: Account) -> None:
        self._execute(
            f"INSERT INTO {BANK_ACCOUNT_TABLE} (ID, NAME, INSTITUTION_NAME) VALUES (?, ?, ?)",
            [account.id, account.name, account.org.name],
        )

    def put_account_balance(self, bank_account_id: str, run_id: str, balance: str) -> None:
        self._execute(
            f"INSERT INTO {BANK_ACCOUNT_BALANCE_TABLE} (ID, BANK_ACCOUNT_ID, RUN_ID, BALANCE) "
            "VALUES (?, ?, ?, ?)",
            [str(uuid.uuid4()), bank_account_id, run_id, balance],
        )

    def balances_for_run(self, run_id: str) -> list[dict[str, Any]]:
        """Balances written by one run, joined with their account names."""
        rows = self._execute(
            f"""
            SELECT a.ID, a.NAME, a.INSTITUTION_NAME, b.BALANCE, b.CREATED_AT
            FROM {BANK_ACCOUNT_BALANCE_TABLE} b
            JOIN {BANK_ACCOUNT_TABLE} a ON a.ID = b.BANK_ACCOUNT_ID
            WHERE b.RUN_ID = ?
            ORDER BY a.NAME
            """,
            [run_id],
        ).fetchall()
        return [
            {
                "account_id": row[0],
                "name": row[1],
                "institution": row[2],
                "balance": row[3],
                "created_at": str(row[4]),
            }
            for row in rows
        ]

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> AccountStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
