"""Semantic validation for financial snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .assumptions import DEBT_CATEGORIES, FLEXIBLE_BOX_KEYS
from .schema import Snapshot
from .waterfall import is_valid_flexible_order

MIN_AGE = 18
MAX_AGE = 100
MAX_CURRENCY = 10_000_000.0
MAX_INTEREST_RATE = 30.0
MIN_TERM = 1
MAX_TERM = 480


@dataclass(slots=True)
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _check_enum(result: ValidationResult, path: str, value: str, allowed: Iterable[str]) -> None:
    allowed_set = set(allowed)
    if value not in allowed_set:
        expected = ", ".join(sorted(allowed_set))
        result.errors.append(f"{path}: '{value}' is not valid; expected one of [{expected}]")


def _check_currency(result: ValidationResult, path: str, value: float) -> None:
    if value < 0:
        result.errors.append(f"{path}: amount cannot be negative")
    elif value > MAX_CURRENCY:
        result.errors.append(f"{path}: amount cannot exceed ${MAX_CURRENCY:,.0f}")


def validate_snapshot(snapshot: Snapshot) -> ValidationResult:
    result = ValidationResult()
    general = snapshot.general

    if not MIN_AGE <= general.age <= MAX_AGE:
        result.errors.append(f"general.age: must be between {MIN_AGE} and {MAX_AGE}")
    if general.target_retirement <= general.age:
        result.errors.append(f"general.target_retirement: must be greater than general.age ({general.age:g})")
    elif general.target_retirement > MAX_AGE:
        result.errors.append(f"general.target_retirement: cannot exceed {MAX_AGE}")

    for name in ("annual_income", "monthly_take_home", "monthly_expense"):
        _check_currency(result, f"general.{name}", getattr(general, name))
    for name in ("savings", "stocks_bonds", "real_estate", "car_value", "ira", "roth_ira", "four_oh_one_k", "other"):
        _check_currency(result, f"investments.{name}", getattr(snapshot.investments, name))

    if general.monthly_take_home < general.monthly_expense:
        result.warnings.append("general: monthly expenses exceed take-home pay; no cash flow will be allocated")

    for idx, debt in enumerate(snapshot.debts):
        path = f"debts[{idx}]"
        _check_enum(result, f"{path}.category", debt.category, DEBT_CATEGORIES)
        _check_currency(result, f"{path}.balance", debt.balance)
        if debt.interest_rate < 0:
            result.errors.append(f"{path}.interest_rate: cannot be negative")
        elif debt.interest_rate > MAX_INTEREST_RATE:
            result.warnings.append(f"{path}.interest_rate: {debt.interest_rate:g}% is above {MAX_INTEREST_RATE:g}%")
        if debt.term_months is not None and not MIN_TERM <= debt.term_months <= MAX_TERM:
            result.errors.append(f"{path}.term_months: must be between {MIN_TERM} and {MAX_TERM} months")

    settings = snapshot.fire_settings
    if not 0 <= settings.employer_match_percent <= 100:
        result.errors.append("fire_settings.employer_match_percent: must be between 0 and 100")
    if settings.emergency_fund_months < 0:
        result.errors.append("fire_settings.emergency_fund_months: cannot be negative")
    for key, cap in settings.allocations.items():
        if key not in FLEXIBLE_BOX_KEYS:
            _check_enum(result, "fire_settings.allocations", key, FLEXIBLE_BOX_KEYS)
        elif cap is not None and cap < 0:
            result.errors.append(f"fire_settings.allocations.{key}: cannot be negative")
    if settings.flexible_order is not None and not is_valid_flexible_order(settings.flexible_order):
        result.warnings.append("fire_settings.flexible_order: must list each flexible box exactly once; the default order will be used")

    destiny = snapshot.tax_destiny
    limits = snapshot.assumptions.contribution_limits
    if destiny.hsa > 0 and not settings.has_hsa:
        result.warnings.append("tax_destiny.allocations.hsa: HSA contributions set but fire_settings.has_hsa is false")
    if destiny.hsa * 12 > limits["hsa"]:
        result.warnings.append(f"tax_destiny.allocations.hsa: exceeds the ${limits['hsa']:,.0f} annual limit; contributions will be capped")
    if (destiny.traditional_ira + destiny.roth_ira) * 12 > limits["ira"]:
        result.warnings.append(f"tax_destiny.allocations: IRA contributions exceed the ${limits['ira']:,.0f} annual limit; contributions will be capped")
    if destiny.four_oh_one_k * 12 > limits["401k"]:
        result.warnings.append(f"tax_destiny.allocations.four_oh_one_k: exceeds the ${limits['401k']:,.0f} annual limit; contributions will be capped")

    return result
