"""Asset growth, depreciation and inflation helpers."""

from __future__ import annotations

from dataclasses import dataclass

from .schema import Investments

BUCKET_NAMES = ("savings", "taxable", "retirement", "real_estate", "other")


@dataclass(slots=True)
class AssetBuckets:
    savings: float = 0.0
    taxable: float = 0.0
    retirement: float = 0.0
    real_estate: float = 0.0
    other: float = 0.0

    @classmethod
    def from_investments(cls, investments: Investments) -> "AssetBuckets":
        return cls(
            savings=max(0.0, investments.savings),
            taxable=max(0.0, investments.stocks_bonds),
            retirement=max(0.0, investments.retirement_total),
            real_estate=max(0.0, investments.real_estate),
            other=max(0.0, investments.other),
        )

    def as_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in BUCKET_NAMES}


def annual_to_monthly_rate(annual_rate: float) -> float:
    if annual_rate <= -1.0:
        return -1.0
    return (1.0 + annual_rate) ** (1.0 / 12.0) - 1.0


def monthly_rates(growth_rates: dict[str, float]) -> dict[str, float]:
    return {name: annual_to_monthly_rate(growth_rates.get(name, 0.0)) for name in BUCKET_NAMES}


def apply_growth(buckets: AssetBuckets, rates: dict[str, float]) -> dict[str, float]:
    """Compound every bucket by one month and return the growth per bucket."""
    growth: dict[str, float] = {}
    for name in BUCKET_NAMES:
        current = getattr(buckets, name)
        delta = current * rates.get(name, 0.0)
        setattr(buckets, name, current + delta)
        growth[name] = delta
    return growth


def car_value(original_value: float, month: int, depreciation_rate: float) -> float:
    """Straight-line value, always measured from the original purchase value."""
    if original_value <= 0:
        return 0.0
    return original_value * max(0.0, 1.0 - depreciation_rate * month / 12.0)


def inflation_multiplier(month: int, inflation_rate: float) -> float:
    return (1.0 + inflation_rate) ** (month // 12)
