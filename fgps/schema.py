"""Financial snapshot dataclasses and JSON loading."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import json
import math
from pathlib import Path
from typing import Any

from .assumptions import (
    CONTRIBUTION_LIMITS,
    DEFAULT_EF_MONTHS,
    GROWTH_RATES,
    Assumptions,
)


class SchemaError(ValueError):
    """Raised when raw JSON cannot be parsed into schema objects."""


def _expect_dict(value: Any, path: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise SchemaError(f"{path}: expected object")
    return value


def _expect_list(value: Any, path: str) -> list[Any]:
    if not isinstance(value, list):
        raise SchemaError(f"{path}: expected array")
    return value


def _optional(data: dict[str, Any], key: str, default: Any = None) -> Any:
    value = data.get(key, default)
    return default if value is None else value


def _section(data: dict[str, Any], key: str, path: str) -> dict[str, Any]:
    raw = data.get(key)
    if raw is None:
        return {}
    return _expect_dict(raw, f"{path}.{key}" if path else key)


def _number(data: dict[str, Any], key: str, path: str, default: float = 0.0) -> float:
    """Read a numeric field; missing, null and non-finite values become the default."""
    value = data.get(key)
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise SchemaError(f"{path}.{key}: expected number, got {value!r}") from exc
    if not math.isfinite(number):
        return default
    return number


def _optional_number(data: dict[str, Any], key: str, path: str) -> float | None:
    if data.get(key) is None:
        return None
    return _number(data, key, path)


@dataclass(slots=True)
class General:
    age: float = 30.0
    target_retirement: float = 65.0
    annual_income: float = 0.0
    monthly_take_home: float = 0.0
    monthly_expense: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "general") -> "General":
        return cls(
            age=_number(data, "age", path, 30.0) or 30.0,
            target_retirement=_number(data, "target_retirement", path, 65.0) or 65.0,
            annual_income=_number(data, "annual_income", path),
            monthly_take_home=_number(data, "monthly_take_home", path),
            monthly_expense=_number(data, "monthly_expense", path),
        )


@dataclass(slots=True)
class Investments:
    savings: float = 0.0
    stocks_bonds: float = 0.0
    real_estate: float = 0.0
    car_value: float = 0.0
    ira: float = 0.0
    roth_ira: float = 0.0
    four_oh_one_k: float = 0.0
    other: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "investments") -> "Investments":
        return cls(
            savings=_number(data, "savings", path),
            stocks_bonds=_number(data, "stocks_bonds", path),
            real_estate=_number(data, "real_estate", path),
            car_value=_number(data, "car_value", path),
            ira=_number(data, "ira", path),
            roth_ira=_number(data, "roth_ira", path),
            four_oh_one_k=_number(data, "four_oh_one_k", path),
            other=_number(data, "other", path),
        )

    @property
    def retirement_total(self) -> float:
        return self.ira + self.roth_ira + self.four_oh_one_k


@dataclass(slots=True)
class Debt:
    category: str
    label: str
    balance: float
    interest_rate: float
    term_months: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "Debt":
        category = str(_optional(data, "category", "OTHER")).upper()
        term = _optional_number(data, "term_months", path)
        return cls(
            category=category,
            label=str(_optional(data, "label", category.replace("_", " ").title())),
            balance=_number(data, "balance", path),
            interest_rate=_number(data, "interest_rate", path),
            term_months=int(term) if term else None,
        )


@dataclass(slots=True)
class FireSettings:
    has_employer_match: bool = False
    employer_match_percent: float = 0.0
    is_getting_match: bool = False
    emergency_fund_months: float = DEFAULT_EF_MONTHS
    has_hsa: bool = False
    is_contributing_to_hsa: bool = False
    allocations: dict[str, float | None] = field(default_factory=dict)
    ira_contribution_ytd: float = 0.0
    four_oh_one_k_contribution_ytd: float = 0.0
    fire_annual_expense_target: float | None = None
    flexible_order: list[str] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "fire_settings") -> "FireSettings":
        allocations_raw = _section(data, "allocations", path)
        allocations = {
            key: _optional_number(allocations_raw, key, f"{path}.allocations") for key in allocations_raw
        }
        order_raw = data.get("flexible_order")
        return cls(
            has_employer_match=bool(_optional(data, "has_employer_match", False)),
            employer_match_percent=_number(data, "employer_match_percent", path),
            is_getting_match=bool(_optional(data, "is_getting_match", False)),
            emergency_fund_months=_number(data, "emergency_fund_months", path, DEFAULT_EF_MONTHS),
            has_hsa=bool(_optional(data, "has_hsa", False)),
            is_contributing_to_hsa=bool(_optional(data, "is_contributing_to_hsa", False)),
            allocations=allocations,
            ira_contribution_ytd=_number(data, "ira_contribution_ytd", path),
            four_oh_one_k_contribution_ytd=_number(data, "four_oh_one_k_contribution_ytd", path),
            fire_annual_expense_target=_optional_number(data, "fire_annual_expense_target", path),
            # Kept verbatim; the allocator decides whether the shape is usable.
            flexible_order=list(order_raw) if isinstance(order_raw, list) else order_raw,
        )


@dataclass(slots=True)
class TaxDestiny:
    """Monthly contribution amounts decided by the external tax allocator."""

    hsa: float = 0.0
    traditional_ira: float = 0.0
    roth_ira: float = 0.0
    four_oh_one_k: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "tax_destiny") -> "TaxDestiny":
        allocations = _section(data, "allocations", path)
        alloc_path = f"{path}.allocations"
        return cls(
            hsa=max(0.0, _number(allocations, "hsa", alloc_path)),
            traditional_ira=max(0.0, _number(allocations, "traditional_ira", alloc_path)),
            roth_ira=max(0.0, _number(allocations, "roth_ira", alloc_path)),
            four_oh_one_k=max(0.0, _number(allocations, "four_oh_one_k", alloc_path)),
        )


def _rate_map(data: dict[str, Any], key: str, path: str, defaults: dict[str, float]) -> dict[str, float]:
    raw = _section(data, key, path)
    merged = dict(defaults)
    for name in raw:
        if name not in defaults:
            expected = ", ".join(sorted(defaults))
            raise SchemaError(f"{path}.{key}.{name}: unknown key; expected one of [{expected}]")
        merged[name] = _number(raw, name, f"{path}.{key}", defaults[name])
    return merged


def parse_assumptions(data: dict[str, Any], path: str = "assumptions") -> Assumptions:
    defaults = Assumptions()
    return Assumptions(
        inflation_rate=_number(data, "inflation_rate", path, defaults.inflation_rate),
        growth_rates=_rate_map(data, "growth_rates", path, GROWTH_RATES),
        contribution_limits=_rate_map(data, "contribution_limits", path, CONTRIBUTION_LIMITS),
        starter_ef_target=_number(data, "starter_ef_target", path, defaults.starter_ef_target),
        car_depreciation_rate=_number(data, "car_depreciation_rate", path, defaults.car_depreciation_rate),
        fire_multiple=_number(data, "fire_multiple", path, defaults.fire_multiple),
    )


@dataclass(slots=True)
class Snapshot:
    general: General
    investments: Investments
    debts: list[Debt]
    fire_settings: FireSettings
    tax_destiny: TaxDestiny
    assumptions: Assumptions = field(default_factory=Assumptions)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Snapshot":
        debts_raw = _expect_list(_optional(data, "debts", []), "debts")
        return cls(
            general=General.from_dict(_section(data, "general", "")),
            investments=Investments.from_dict(_section(data, "investments", "")),
            debts=[Debt.from_dict(_expect_dict(item, f"debts[{idx}]"), f"debts[{idx}]") for idx, item in enumerate(debts_raw)],
            fire_settings=FireSettings.from_dict(_section(data, "fire_settings", "")),
            tax_destiny=TaxDestiny.from_dict(_section(data, "tax_destiny", "")),
            assumptions=parse_assumptions(_section(data, "assumptions", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["tax_destiny"] = {"allocations": data["tax_destiny"]}
        data["assumptions"] = self.assumptions.to_dict()
        return data


def load_snapshot(path: str | Path) -> Snapshot:
    """Load snapshot JSON into strongly-typed dataclasses."""
    source = Path(path)
    raw = json.loads(source.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise SchemaError("snapshot: root must be a JSON object")
    return Snapshot.from_dict(raw)
