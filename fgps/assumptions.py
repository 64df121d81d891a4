"""Model assumptions and reference limits for FGPS."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final

GROWTH_RATES: Final[dict[str, float]] = {
    "savings": 0.04,
    "taxable": 0.07,
    "retirement": 0.07,
    "real_estate": 0.05,
    "other": 0.05,
}
INFLATION_RATE: Final[float] = 0.03
CAR_DEPRECIATION_RATE: Final[float] = 0.20

# Annual limits. Traditional and Roth IRA share the "ira" limit.
CONTRIBUTION_LIMITS: Final[dict[str, float]] = {
    "ira": 7_000.0,
    "401k": 23_000.0,
    "hsa": 4_150.0,
}
LIMIT_CATEGORIES: Final[tuple[str, ...]] = ("ira", "401k", "hsa")

STARTER_EF_TARGET: Final[float] = 1_000.0
DEFAULT_EF_MONTHS: Final[float] = 6.0
FIRE_MULTIPLE: Final[float] = 25.0

HIGH_INTEREST_THRESHOLD: Final[float] = 10.0
MODERATE_INTEREST_FLOOR: Final[float] = 5.0

DEBT_CATEGORIES: Final[set[str]] = {
    "CREDIT_CARD",
    "MEDICAL",
    "STUDENT",
    "AUTO",
    "MORTGAGE",
    "OTHER",
}
DEFAULT_DEBT_TERM: Final[int] = 60
MORTGAGE_DEFAULT_TERM: Final[int] = 360

MAX_SAFE_BALANCE: Final[float] = 1e15
MAX_RATE: Final[float] = 100.0
MAX_DEBTS: Final[int] = 100
MAX_PAYOFF_MONTHS: Final[int] = 600

FLEXIBLE_BOX_KEYS: Final[tuple[str, ...]] = (
    "highInterestDebt",
    "hsaIra",
    "moderateDebt",
    "max401k",
    "taxableInvesting",
)
DEFAULT_FLEXIBLE_ORDER: Final[tuple[str, ...]] = FLEXIBLE_BOX_KEYS
FOUNDATION_BOX_KEYS: Final[tuple[str, ...]] = ("starterEF", "employerMatch", "fullEF")


@dataclass(slots=True)
class Assumptions:
    """Economic assumptions applied to a single projection run."""

    inflation_rate: float = INFLATION_RATE
    growth_rates: dict[str, float] = field(default_factory=lambda: dict(GROWTH_RATES))
    contribution_limits: dict[str, float] = field(default_factory=lambda: dict(CONTRIBUTION_LIMITS))
    starter_ef_target: float = STARTER_EF_TARGET
    car_depreciation_rate: float = CAR_DEPRECIATION_RATE
    fire_multiple: float = FIRE_MULTIPLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "inflation_rate": self.inflation_rate,
            "growth_rates": dict(self.growth_rates),
            "contribution_limits": dict(self.contribution_limits),
            "starter_ef_target": self.starter_ef_target,
            "car_depreciation_rate": self.car_depreciation_rate,
            "fire_multiple": self.fire_multiple,
        }
