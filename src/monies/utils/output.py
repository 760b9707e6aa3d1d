"""Table and JSON rendering for command results.

JSON goes to stdout so it can be piped; tables and progress go to stderr.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel
from rich.console import Console
from rich.table import Table

console = Console(stderr=True)

Record = dict[str, Any] | BaseModel

# Columns rendered right-aligned in tables
NUMERIC_COLUMNS = frozenset({"balance", "available_balance", "amount", "transactions"})


class OutputFormat(str, Enum):
    TABLE = "table"
    JSON = "json"


def to_records(data: Record | Sequence[Record]) -> list[dict[str, Any]]:
    """Normalize one record or a sequence of records into plain dicts."""
    items = [data] if isinstance(data, (dict, BaseModel)) else list(data)
    return [item.model_dump(mode="json") if isinstance(item, BaseModel) else item for item in items]


def print_output(
    data: Record | Sequence[Record],
    fmt: OutputFormat = OutputFormat.TABLE,
    columns: list[str] | None = None,
    title: str | None = None,
) -> None:
    """Print dicts or pydantic models as a table (stderr) or JSON (stdout).

    A single record prints as a JSON object, a sequence as a JSON array.
    """
    if fmt == OutputFormat.JSON:
        if isinstance(data, BaseModel):
            print_json(data.model_dump(mode="json"))
        elif isinstance(data, dict):
            print_json(data)
        else:
            print_json(to_records(data))
    else:
        print_table(to_records(data), columns, title)


def print_json(data: Any) -> None:
    json.dump(data, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")


def print_table(
    rows: list[dict[str, Any]],
    columns: list[str] | None = None,
    title: str | None = None,
) -> None:
    if not rows:
        console.print("[dim]No results.[/dim]")
        return

    columns = columns or list(rows[0].keys())
    table = Table(title=title)
    for col in columns:
        justify = "right" if col in NUMERIC_COLUMNS else "left"
        table.add_column(col, justify=justify, overflow="fold")

    for row in rows:
        table.add_row(*["" if row.get(col) is None else str(row[col]) for col in columns])

    console.print(table)
