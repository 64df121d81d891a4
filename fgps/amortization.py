"""Fixed-payment loan math shared by the projection and payoff simulators."""

from __future__ import annotations

from dataclasses import dataclass
import math

from .assumptions import DEFAULT_DEBT_TERM, MAX_RATE, MAX_SAFE_BALANCE, MORTGAGE_DEFAULT_TERM
from .schema import Debt

MIN_PAYMENT_FLOOR = 25.0
MIN_PAYMENT_PERCENT = 0.02


def _finite(value: float | None) -> float:
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def clamp_rate(annual_rate_pct: float | None) -> float:
    return min(MAX_RATE, max(0.0, _finite(annual_rate_pct)))


def clamp_balance(balance: float | None) -> float:
    return min(MAX_SAFE_BALANCE, max(0.0, _finite(balance)))


def monthly_payment(balance: float, annual_rate_pct: float, term_months: int) -> float:
    """Standard PMT for a fully amortizing loan."""
    balance = clamp_balance(balance)
    if balance <= 0 or term_months <= 0:
        return 0.0
    rate = clamp_rate(annual_rate_pct)
    if rate <= 0:
        return balance / term_months
    monthly_rate = rate / 100.0 / 12.0
    try:
        growth = (1.0 + monthly_rate) ** term_months
    except OverflowError:
        # Limit of the PMT formula as the term grows without bound.
        return balance * monthly_rate
    return balance * monthly_rate * growth / (growth - 1.0)


def interest_portion(balance: float, annual_rate_pct: float) -> float:
    rate = clamp_rate(annual_rate_pct)
    if balance <= 0 or rate <= 0:
        return 0.0
    return balance * (rate / 100.0) / 12.0


def principal_portion(payment: float, interest: float, balance: float | None = None) -> float:
    principal = max(0.0, payment - interest)
    if balance is not None:
        principal = min(principal, max(0.0, balance))
    return principal


def debt_min_payment(balance: float, annual_rate_pct: float, term_months: int | None) -> float:
    """Return the scheduled payment, falling back to 2% of balance (at least $25)."""
    balance = clamp_balance(balance)
    if balance <= 0:
        return 0.0
    payment = monthly_payment(balance, annual_rate_pct, max(1, term_months or DEFAULT_DEBT_TERM))
    if payment > 0:
        return payment
    return min(balance, max(balance * MIN_PAYMENT_PERCENT, MIN_PAYMENT_FLOOR))


def default_term(category: str) -> int:
    return MORTGAGE_DEFAULT_TERM if category == "MORTGAGE" else DEFAULT_DEBT_TERM


@dataclass(slots=True)
class DebtState:
    category: str
    label: str
    balance: float
    interest_rate: float
    term_months: int
    remaining_term: int
    min_payment: float
    original_balance: float

    @classmethod
    def from_debt(cls, debt: Debt) -> "DebtState":
        term = debt.term_months if debt.term_months and debt.term_months > 0 else default_term(debt.category)
        balance = clamp_balance(debt.balance)
        rate = clamp_rate(debt.interest_rate)
        return cls(
            category=debt.category,
            label=debt.label,
            balance=balance,
            interest_rate=rate,
            term_months=term,
            remaining_term=term,
            # Held fixed for the life of the run; never re-amortized.
            min_payment=monthly_payment(balance, rate, term),
            original_balance=balance,
        )

    @property
    def is_mortgage(self) -> bool:
        return self.category == "MORTGAGE"


def amortize(state: DebtState) -> tuple[float, float]:
    """Apply one scheduled payment and return (interest_paid, principal_paid)."""
    if state.balance <= 0 or state.remaining_term <= 0:
        state.balance = 0.0
        state.remaining_term = 0
        return 0.0, 0.0

    interest = interest_portion(state.balance, state.interest_rate)
    principal = principal_portion(state.min_payment, interest, state.balance)
    state.balance = max(0.0, state.balance - principal)
    state.remaining_term -= 1
    return interest, principal


@dataclass(slots=True)
class DebtAnnualBreakdown:
    monthly_payment: float
    annual_interest: float
    annual_principal: float


def annual_breakdown(balance: float, annual_rate_pct: float, term_months: int | None) -> DebtAnnualBreakdown:
    """Annualize the current month's interest/principal split of the scheduled payment."""
    balance = clamp_balance(balance)
    if balance <= 0:
        return DebtAnnualBreakdown(0.0, 0.0, 0.0)
    payment = debt_min_payment(balance, annual_rate_pct, term_months)
    interest = interest_portion(balance, annual_rate_pct)
    return DebtAnnualBreakdown(
        monthly_payment=payment,
        annual_interest=interest * 12.0,
        annual_principal=principal_portion(payment, interest) * 12.0,
    )
