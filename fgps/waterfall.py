"""Priority waterfall that routes each month's free cash into goal boxes.

The foundation boxes (starter emergency fund, employer match, full emergency
fund) always run first and in that order. The five flexible boxes run next in
a caller-supplied order. Each flexible box is a small object registered in
``FLEXIBLE_BOXES`` exposing ``need(state)`` and ``allocate(state, cash, cap)``,
so the priority loop is a plain fold over the ordered keys.

Box objects are stateless; ``allocate`` mutates the per-run ``WaterfallState``
it is given and returns the dollars it consumed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import logging
import math
from types import MappingProxyType
from typing import Any, ClassVar, Mapping, Protocol, Sequence

from .amortization import DebtState
from .assumptions import (
    DEFAULT_FLEXIBLE_ORDER,
    FLEXIBLE_BOX_KEYS,
    FOUNDATION_BOX_KEYS,
    HIGH_INTEREST_THRESHOLD,
    MODERATE_INTEREST_FLOOR,
    Assumptions,
)
from .growth import AssetBuckets
from .limits import ContributionLimitTracker
from .schema import FireSettings, TaxDestiny

logger = logging.getLogger(__name__)

ALLOCATION_KEYS = FOUNDATION_BOX_KEYS + FLEXIBLE_BOX_KEYS
CONTRIBUTION_KEYS = ("hsa", "traditional_ira", "roth_ira", "401k", "employer_match")


def is_valid_flexible_order(raw: Any) -> bool:
    return (
        isinstance(raw, (list, tuple))
        and len(raw) == len(FLEXIBLE_BOX_KEYS)
        and all(isinstance(key, str) for key in raw)
        and set(raw) == set(FLEXIBLE_BOX_KEYS)
    )


def resolve_flexible_order(raw: Any) -> tuple[str, ...]:
    """Return ``raw`` as a box order when it names each flexible box exactly once."""
    if raw is None:
        return DEFAULT_FLEXIBLE_ORDER
    if is_valid_flexible_order(raw):
        return tuple(raw)
    logger.warning("invalid flexible box order %r; using default %s", raw, ", ".join(DEFAULT_FLEXIBLE_ORDER))
    return DEFAULT_FLEXIBLE_ORDER


class FlexibleBox(Protocol):
    key: ClassVar[str]

    def need(self, state: "WaterfallState") -> float: ...

    def allocate(self, state: "WaterfallState", cash: float, cap: float | None) -> float: ...


@dataclass(slots=True)
class FoundationState:
    starter_ef: bool = False
    employer_match: bool = False
    full_ef: bool = False


@dataclass(slots=True)
class WaterfallState:
    buckets: AssetBuckets
    debts: list[DebtState]
    limits: ContributionLimitTracker
    foundation: FoundationState
    settings: FireSettings
    tax_destiny: TaxDestiny
    assumptions: Assumptions
    contributions: dict[str, float] = field(default_factory=dict)

    def record(self, key: str, amount: float) -> None:
        if amount > 0:
            self.contributions[key] = self.contributions.get(key, 0.0) + amount


@dataclass(frozen=True, slots=True)
class MonthAllocation:
    available: float
    amounts: Mapping[str, float]
    contributions: Mapping[str, float]

    @property
    def total(self) -> float:
        return sum(self.amounts.values())

    @property
    def leftover(self) -> float:
        return max(0.0, self.available - self.total)

    @classmethod
    def build(cls, available: float, amounts: dict[str, float], contributions: dict[str, float]) -> "MonthAllocation":
        """Freeze per-box and per-account totals, filling unused keys with zero."""
        return cls(
            available=available,
            amounts=MappingProxyType({key: amounts.get(key, 0.0) for key in ALLOCATION_KEYS}),
            contributions=MappingProxyType({key: contributions.get(key, 0.0) for key in CONTRIBUTION_KEYS}),
        )

    @classmethod
    def empty(cls, available: float = 0.0) -> "MonthAllocation":
        return cls.build(available, {}, {})


def _budget(cash: float, cap: float | None) -> float:
    if cap is None:
        return cash
    return min(cash, max(0.0, cap))


class _DebtBandBox(ABC):
    key: ClassVar[str]

    @abstractmethod
    def matches(self, debt: DebtState) -> bool: ...

    def _targets(self, state: WaterfallState) -> list[DebtState]:
        # Caller array order is kept; debts are not re-sorted inside a band.
        return [debt for debt in state.debts if not debt.is_mortgage and debt.balance > 0 and self.matches(debt)]

    def need(self, state: WaterfallState) -> float:
        return sum(debt.balance for debt in self._targets(state))

    def allocate(self, state: WaterfallState, cash: float, cap: float | None) -> float:
        targets = self._targets(state)
        to_pay = min(_budget(cash, cap), sum(debt.balance for debt in targets))
        left = to_pay
        for debt in targets:
            if left <= 0:
                break
            payment = min(left, debt.balance)
            debt.balance -= payment
            left -= payment
        return to_pay


@dataclass(frozen=True, slots=True)
class HighInterestDebtBox(_DebtBandBox):
    key: ClassVar[str] = "highInterestDebt"

    def matches(self, debt: DebtState) -> bool:
        return debt.interest_rate > HIGH_INTEREST_THRESHOLD


@dataclass(frozen=True, slots=True)
class ModerateDebtBox(_DebtBandBox):
    key: ClassVar[str] = "moderateDebt"

    def matches(self, debt: DebtState) -> bool:
        return MODERATE_INTEREST_FLOOR <= debt.interest_rate <= HIGH_INTEREST_THRESHOLD


@dataclass(frozen=True, slots=True)
class HsaIraBox:
    """HSA dollars land in the taxable bucket; IRA dollars land in retirement."""

    key: ClassVar[str] = "hsaIra"

    def need(self, state: WaterfallState) -> float:
        destiny = state.tax_destiny
        hsa = min(destiny.hsa, state.limits.remaining("hsa"))
        ira = min(destiny.traditional_ira + destiny.roth_ira, state.limits.remaining("ira"))
        return hsa + ira

    def allocate(self, state: WaterfallState, cash: float, cap: float | None) -> float:
        budget = _budget(cash, cap)
        destiny = state.tax_destiny

        hsa = state.limits.contribute("hsa", min(destiny.hsa, budget))
        state.buckets.taxable += hsa
        state.record("hsa", hsa)
        budget -= hsa

        traditional, roth = state.limits.contribute_ira(destiny.traditional_ira, destiny.roth_ira, budget)
        state.buckets.retirement += traditional + roth
        state.record("traditional_ira", traditional)
        state.record("roth_ira", roth)
        return hsa + traditional + roth


@dataclass(frozen=True, slots=True)
class Max401kBox:
    key: ClassVar[str] = "max401k"

    def need(self, state: WaterfallState) -> float:
        return min(state.tax_destiny.four_oh_one_k, state.limits.remaining("401k"))

    def allocate(self, state: WaterfallState, cash: float, cap: float | None) -> float:
        amount = state.limits.contribute("401k", min(state.tax_destiny.four_oh_one_k, _budget(cash, cap)))
        state.buckets.retirement += amount
        state.record("401k", amount)
        return amount


@dataclass(frozen=True, slots=True)
class TaxableInvestingBox:
    key: ClassVar[str] = "taxableInvesting"

    def need(self, state: WaterfallState) -> float:
        cap = state.settings.allocations.get(self.key)
        return math.inf if cap is None else max(0.0, cap)

    def allocate(self, state: WaterfallState, cash: float, cap: float | None) -> float:
        amount = max(0.0, _budget(cash, cap))
        state.buckets.taxable += amount
        return amount


FLEXIBLE_BOXES: dict[str, FlexibleBox] = {
    box.key: box
    for box in (
        HighInterestDebtBox(),
        HsaIraBox(),
        ModerateDebtBox(),
        Max401kBox(),
        TaxableInvestingBox(),
    )
}


def full_ef_target(monthly_expense: float, ef_months: float, starter_target: float) -> float:
    return monthly_expense * max(0.0, ef_months) + starter_target


def _fund_starter_ef(state: WaterfallState, cash: float) -> float:
    target = state.assumptions.starter_ef_target
    if state.foundation.starter_ef:
        return 0.0
    amount = min(cash, max(0.0, target - state.buckets.savings))
    state.buckets.savings += amount
    state.foundation.starter_ef = state.buckets.savings >= target
    return amount


def _capture_employer_match(state: WaterfallState, cash: float, annual_income: float) -> float:
    settings = state.settings
    if state.foundation.employer_match or not settings.has_employer_match:
        return 0.0
    match = (settings.employer_match_percent / 100.0) * annual_income / 12.0
    amount = state.limits.contribute("401k", min(cash, max(0.0, match)))
    state.buckets.retirement += amount
    state.record("employer_match", amount)
    # Captured once; later months are covered by payroll.
    state.foundation.employer_match = True
    return amount


def _fund_full_ef(state: WaterfallState, cash: float, target: float) -> float:
    """Top savings up toward this month's target, which rises with inflation."""
    if state.buckets.savings >= target:
        state.foundation.full_ef = True
        return 0.0
    amount = min(cash, target - state.buckets.savings)
    state.buckets.savings += amount
    state.foundation.full_ef = state.buckets.savings >= target
    return amount


def allocate_month(
    state: WaterfallState,
    available_cash: float,
    order: Sequence[str],
    *,
    monthly_expense: float,
    annual_income: float,
) -> MonthAllocation:
    """Distribute ``available_cash`` across the foundation then flexible boxes."""
    state.contributions = {}
    ef_target = full_ef_target(monthly_expense, state.settings.emergency_fund_months, state.assumptions.starter_ef_target)
    state.foundation.full_ef = state.buckets.savings >= ef_target
    if available_cash <= 0:
        return MonthAllocation.empty(available_cash)

    amounts: dict[str, float] = {}
    remaining = available_cash

    amounts["starterEF"] = _fund_starter_ef(state, remaining)
    remaining -= amounts["starterEF"]

    if remaining > 0:
        amounts["employerMatch"] = _capture_employer_match(state, remaining, annual_income)
        remaining -= amounts["employerMatch"]

    if remaining > 0:
        amounts["fullEF"] = _fund_full_ef(state, remaining, ef_target)
        remaining -= amounts["fullEF"]

    for key in order:
        if remaining <= 0:
            break
        used = FLEXIBLE_BOXES[key].allocate(state, remaining, state.settings.allocations.get(key))
        amounts[key] = used
        remaining -= used

    return MonthAllocation.build(available_cash, amounts, state.contributions)
