"""CSV export of projection and payoff tables."""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Any

from .debt_payoff import PayoffSimulationResult
from .projection import MonthlySnapshot, ProjectionResult

# Per-debt columns are inserted between LEADING_COLUMNS and TRAILING_COLUMNS.
LEADING_COLUMNS = (
    "month",
    "age",
    "net_worth",
    "savings",
    "taxable",
    "retirement",
    "real_estate",
    "car",
    "other",
    "mortgage",
)
TRAILING_COLUMNS = ("total_assets", "total_debts")


def _unique(names: list[str]) -> list[str]:
    """Suffix repeated names with their occurrence count: ``x``, ``x (2)``."""
    columns: list[str] = []
    seen: dict[str, int] = {}
    for name in names:
        seen[name] = seen.get(name, 0) + 1
        columns.append(name if seen[name] == 1 else f"{name} ({seen[name]})")
    return columns


def debt_columns(result: ProjectionResult) -> list[str]:
    """Column names for each debt, made unique when labels repeat."""
    return _unique([f"debt:{label}" for label, _ in result.table[0].debt_balances])


def projection_columns(result: ProjectionResult) -> list[str]:
    return [*LEADING_COLUMNS, *debt_columns(result), *TRAILING_COLUMNS]


def _row(row: MonthlySnapshot, debt_names: list[str]) -> dict[str, Any]:
    values: dict[str, Any] = {
        "month": row.month,
        "age": row.age,
        "net_worth": round(row.net_worth, 2),
        "savings": round(row.savings, 2),
        "taxable": round(row.taxable, 2),
        "retirement": round(row.retirement, 2),
        "real_estate": round(row.real_estate, 2),
        "car": round(row.car, 2),
        "other": round(row.other, 2),
        "mortgage": round(row.mortgage, 2),
    }
    for name, (_, balance) in zip(debt_names, row.debt_balances):
        values[name] = round(balance, 2)
    values["total_assets"] = round(row.total_assets, 2)
    values["total_debts"] = round(row.total_debts, 2)
    return values


def projection_rows(result: ProjectionResult, rows: list[MonthlySnapshot] | None = None) -> list[dict[str, Any]]:
    debt_names = debt_columns(result)
    return [_row(row, debt_names) for row in (rows if rows is not None else result.table)]


def projection_csv(result: ProjectionResult, rows: list[MonthlySnapshot] | None = None) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=projection_columns(result), lineterminator="\n")
    writer.writeheader()
    writer.writerows(projection_rows(result, rows))
    return buffer.getvalue()


def write_projection_csv(result: ProjectionResult, path: str | Path, rows: list[MonthlySnapshot] | None = None) -> Path:
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(projection_csv(result, rows), encoding="utf-8")
    return output


def write_payoff_csv(result: PayoffSimulationResult, path: str | Path) -> Path:
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    labels = _unique([label for label, _ in result.timeline[0].balances]) if result.timeline else []
    with output.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle, lineterminator="\n")
        writer.writerow(["month", *labels, "total_remaining"])
        for entry in result.timeline:
            writer.writerow([entry.month, *(round(balance, 2) for _, balance in entry.balances), round(entry.total_remaining, 2)])
    return output
