"""Avalanche vs. snowball debt payoff simulation and comparison."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Any, Iterable

from .amortization import (
    DebtAnnualBreakdown,
    annual_breakdown,
    clamp_balance,
    clamp_rate,
    debt_min_payment,
)
from .assumptions import DEBT_CATEGORIES, DEFAULT_DEBT_TERM, MAX_DEBTS, MAX_PAYOFF_MONTHS
from .schema import Debt, SchemaError

logger = logging.getLogger(__name__)

PAID_OFF_EPSILON = 0.01
AVALANCHE_SAVINGS_THRESHOLD = 1_000.0
SNOWBALL_SAVINGS_THRESHOLD = 100.0
HIGH_RATE_RECOMMENDATION_THRESHOLD = 15.0


@dataclass(slots=True)
class _PayoffDebt:
    category: str
    label: str
    original_balance: float
    balance: float
    interest_rate: float
    term_months: int
    monthly_payment: float
    interest_paid: float = 0.0


@dataclass(frozen=True, slots=True)
class PayoffMonth:
    month: int
    balances: tuple[tuple[str, float], ...]
    interest_paid: tuple[float, ...]
    total_remaining: float


@dataclass(frozen=True, slots=True)
class PayoffMilestone:
    month: int
    category: str
    label: str
    original_balance: float
    freed_monthly_payment: float


@dataclass(frozen=True, slots=True)
class PayoffSimulationResult:
    method: str
    total_interest_paid: float
    months_to_payoff: int
    timeline: tuple[PayoffMonth, ...]
    paid_off_milestones: tuple[PayoffMilestone, ...]
    reached_max_months: bool


@dataclass(frozen=True, slots=True)
class StrategyComparison:
    interest_savings: float
    months_saved: int
    recommendation: str
    reason: str
    active_debt_count: int
    total_debt: float


@dataclass(frozen=True, slots=True)
class DebtComparison:
    avalanche: PayoffSimulationResult
    snowball: PayoffSimulationResult
    comparison: StrategyComparison


def _coerce_debt(item: Any, idx: int) -> Debt:
    if isinstance(item, Debt):
        return item
    if isinstance(item, dict):
        return Debt.from_dict(item, f"debts[{idx}]")
    raise SchemaError(f"debts[{idx}]: expected object")


def sanitize_debts(debts: Any) -> list[Debt]:
    """Validate the collection shape and clamp each debt into safe ranges."""
    if not isinstance(debts, (list, tuple)):
        raise SchemaError(f"debts: expected array, got {type(debts).__name__}")
    if len(debts) > MAX_DEBTS:
        logger.warning("debt list has %d entries; truncating to %d", len(debts), MAX_DEBTS)
        debts = debts[:MAX_DEBTS]

    sanitized: list[Debt] = []
    for idx, item in enumerate(debts):
        debt = _coerce_debt(item, idx)
        category = debt.category if debt.category in DEBT_CATEGORIES else "OTHER"
        sanitized.append(
            Debt(
                category=category,
                label=debt.label or category,
                balance=clamp_balance(debt.balance),
                interest_rate=clamp_rate(debt.interest_rate),
                term_months=max(1, debt.term_months or DEFAULT_DEBT_TERM),
            )
        )
    return sanitized


def _clean_cash(value: float | None) -> float:
    try:
        cash = float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0
    return cash if math.isfinite(cash) and cash > 0 else 0.0


def simulate_payoff(debts: Any, monthly_cash: float, method: str) -> PayoffSimulationResult:
    """Pay debts in the given priority order until all are cleared.

    ``monthly_cash`` is the whole monthly debt budget. Each month every debt
    receives its fixed minimum payment (interest first, then principal) while
    cash lasts, then whatever is left goes to the first debt in priority order
    that still carries a balance.
    """
    cash = _clean_cash(monthly_cash)
    working = [
        _PayoffDebt(
            category=debt.category,
            label=debt.label,
            original_balance=debt.balance,
            balance=debt.balance,
            interest_rate=debt.interest_rate,
            term_months=debt.term_months or DEFAULT_DEBT_TERM,
            monthly_payment=debt_min_payment(debt.balance, debt.interest_rate, debt.term_months),
        )
        for debt in sanitize_debts(debts)
    ]

    timeline: list[PayoffMonth] = []
    milestones: list[PayoffMilestone] = []
    paid_off: set[int] = set()
    total_interest = 0.0
    month = 0

    while any(debt.balance > PAID_OFF_EPSILON for debt in working) and month < MAX_PAYOFF_MONTHS:
        month += 1
        available = cash

        # Step 1: Minimum payments on every open debt.
        for debt in working:
            if debt.balance <= PAID_OFF_EPSILON:
                continue
            interest = debt.balance * (debt.interest_rate / 100.0) / 12.0
            payment = min(debt.monthly_payment, debt.balance + interest, available)
            interest_paid = min(interest, payment)
            principal = max(0.0, payment - interest_paid)
            debt.interest_paid += interest_paid
            total_interest += interest_paid
            debt.balance = max(0.0, debt.balance - principal)
            available -= payment

        # Step 2: Leftover cash goes to the highest-priority open debt.
        for debt in working:
            if debt.balance <= PAID_OFF_EPSILON or available <= 0:
                continue
            extra = min(available, debt.balance)
            debt.balance = max(0.0, debt.balance - extra)
            available -= extra
            break

        # Step 3: Milestones for debts cleared this month.
        for idx, debt in enumerate(working):
            if debt.balance <= PAID_OFF_EPSILON and idx not in paid_off:
                paid_off.add(idx)
                milestones.append(
                    PayoffMilestone(
                        month=month,
                        category=debt.category,
                        label=debt.label,
                        original_balance=debt.original_balance,
                        freed_monthly_payment=debt.monthly_payment,
                    )
                )

        timeline.append(
            PayoffMonth(
                month=month,
                balances=tuple((debt.label, debt.balance) for debt in working),
                interest_paid=tuple(debt.interest_paid for debt in working),
                total_remaining=sum(debt.balance for debt in working),
            )
        )

    reached_max = month >= MAX_PAYOFF_MONTHS
    if reached_max:
        logger.warning("%s payoff did not finish within %d months", method, MAX_PAYOFF_MONTHS)
    return PayoffSimulationResult(
        method=method,
        total_interest_paid=round(total_interest, 2),
        months_to_payoff=month,
        timeline=tuple(timeline),
        paid_off_milestones=tuple(milestones),
        reached_max_months=reached_max,
    )


def _active(debts: Any) -> list[Debt]:
    return [debt for debt in sanitize_debts(debts) if debt.balance > 0]


def calculate_avalanche(debts: Any, monthly_cash: float) -> PayoffSimulationResult:
    ordered = sorted(_active(debts), key=lambda debt: debt.interest_rate, reverse=True)
    return simulate_payoff(ordered, monthly_cash, "avalanche")


def calculate_snowball(debts: Any, monthly_cash: float) -> PayoffSimulationResult:
    ordered = sorted(_active(debts), key=lambda debt: debt.balance)
    return simulate_payoff(ordered, monthly_cash, "snowball")


def recommend(interest_savings: float, debts: Iterable[Debt]) -> tuple[str, str]:
    """Return (strategy, reason) for the given interest savings of avalanche over snowball."""
    if interest_savings > AVALANCHE_SAVINGS_THRESHOLD:
        return (
            "avalanche",
            f"Avalanche could save approximately ${interest_savings:,.2f} in interest compared to snowball.",
        )
    if interest_savings < SNOWBALL_SAVINGS_THRESHOLD:
        return (
            "snowball",
            "The interest difference is minimal, so the early wins from clearing small balances first may help keep momentum.",
        )
    if any(debt.interest_rate > HIGH_RATE_RECOMMENDATION_THRESHOLD for debt in debts):
        return "avalanche", "High-interest debt is present; paying the highest rates first reduces total interest."
    return "snowball", "Building momentum with quick payoffs can help sustain the plan."


def compare_debt_strategies(debts: Any, monthly_cash: float) -> DebtComparison | None:
    """Run both strategies; ``None`` when there is no active debt."""
    active = _active(debts)
    if not active:
        return None

    total_debt = sum(debt.balance for debt in active)
    if len(active) == 1:
        single = calculate_avalanche(active, monthly_cash)
        return DebtComparison(
            avalanche=single,
            snowball=single,
            comparison=StrategyComparison(
                interest_savings=0.0,
                months_saved=0,
                recommendation="avalanche",
                reason="With a single debt, both methods produce identical results.",
                active_debt_count=1,
                total_debt=total_debt,
            ),
        )

    avalanche = calculate_avalanche(active, monthly_cash)
    snowball = calculate_snowball(active, monthly_cash)
    savings = round(snowball.total_interest_paid - avalanche.total_interest_paid, 2)
    recommendation, reason = recommend(savings, active)
    return DebtComparison(
        avalanche=avalanche,
        snowball=snowball,
        comparison=StrategyComparison(
            interest_savings=savings,
            months_saved=snowball.months_to_payoff - avalanche.months_to_payoff,
            recommendation=recommendation,
            reason=reason,
            active_debt_count=len(active),
            total_debt=total_debt,
        ),
    )


def debt_annual_breakdown(debt: Debt | dict[str, Any]) -> DebtAnnualBreakdown:
    debt = _coerce_debt(debt, 0)
    return annual_breakdown(debt.balance, debt.interest_rate, debt.term_months)
