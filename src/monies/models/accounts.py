"""SimpleFIN account data models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Organization(BaseModel):
    domain: str = ""
    name: str = ""
    sfin_url: str = Field(default="", alias="sfin-url")
    url: str = ""
    id: str = ""

    model_config = ConfigDict(populate_by_name=True)


class Transaction(BaseModel):
    id: str
    posted: int = 0  # unix epoch seconds
    amount: str = "0"
    description: str = ""
    payee: str = ""
    memo: str = ""
    transacted_at: int = 0
    pending: bool = False

    @property
    def posted_time(self) -> datetime:
        return datetime.fromtimestamp(self.posted, tz=timezone.utc)

    @property
    def transacted_time(self) -> datetime:
        return datetime.fromtimestamp(self.transacted_at, tz=timezone.utc)


class Account(BaseModel):
    org: Organization = Field(default_factory=Organization)
    id: str
    name: str = ""
    currency: str = ""
    balance: str = "0"
    available_balance: str = Field(default="", alias="available-balance")
    balance_date: int = Field(default=0, alias="balance-date")
    transactions: list[Transaction] = Field(default_factory=list)
    holdings: list[Any] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @property
    def balance_time(self) -> datetime:
        return datetime.fromtimestamp(self.balance_date, tz=timezone.utc)


class AccountsResponse(BaseModel):
    """Body of ``GET /accounts``."""
    errors: list[str] = Field(default_factory=list)
    accounts: list[Account] = Field(default_factory=list)
    x_api_message: list[str] = Field(default_factory=list, alias="x-api-message")

    model_config = ConfigDict(populate_by_name=True)


class GetAccountsOptions(BaseModel):
    """Query filters for ``GET /accounts``.

    Dates are unix epoch seconds; ``end_date`` is exclusive.
    """
    start_date: int | None = None
    end_date: int | None = None
    pending: bool = False
    account_ids: list[str] = Field(default_factory=list)
    balances_only: bool = False


class SyncResult(BaseModel):
    run_id: str
    accounts_seen: int = 0
    accounts_created: int = 0
    balances_written: int = 0
