"""Core month-by-month projection from current age to retirement."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from types import MappingProxyType
from typing import Mapping, Sequence

from .amortization import DebtState, amortize
from .assumptions import Assumptions
from .growth import AssetBuckets, apply_growth, car_value, inflation_multiplier, monthly_rates
from .limits import ContributionLimitTracker
from .schema import Snapshot
from .waterfall import (
    FLEXIBLE_BOXES,
    FoundationState,
    MonthAllocation,
    WaterfallState,
    allocate_month,
    full_ef_target,
    resolve_flexible_order,
)

logger = logging.getLogger(__name__)

BOX_STATUS_KEYS = ("starterEF", "employerMatch", "fullEF", "highInterestDebt", "moderateDebt")


@dataclass(frozen=True, slots=True)
class MonthlySnapshot:
    """Balances at the start of ``month`` plus the activity applied during it."""

    month: int
    year: int
    month_in_year: int
    age: float
    monthly_take_home: float
    monthly_expense: float
    cash_flow: float
    freed_cash_flow: float
    savings: float
    taxable: float
    retirement: float
    real_estate: float
    car: float
    other: float
    mortgage: float
    debt_balances: tuple[tuple[str, float], ...]
    total_assets: float
    total_debts: float
    net_worth: float
    box_status: Mapping[str, bool]
    allocation: MonthAllocation
    growth: Mapping[str, float]
    interest_paid: float

    @property
    def consumer_debt(self) -> float:
        return self.total_debts - self.mortgage


@dataclass(frozen=True, slots=True)
class ProjectionSummary:
    current_age: float
    retirement_age: float
    months_to_retirement: int
    starting_net_worth: float
    ending_net_worth: float
    annual_expenses: float
    fire_target: float
    shortfall: float
    on_track: bool
    fire_month: int | None
    monthly_mortgage_payment: float
    inflation_rate: float


@dataclass(frozen=True, slots=True)
class ProjectionResult:
    table: tuple[MonthlySnapshot, ...]
    summary: ProjectionSummary
    order: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class Milestone:
    month: int
    age: float


def months_to_retirement(snapshot: Snapshot) -> int:
    return int(round((snapshot.general.target_retirement - snapshot.general.age) * 12))


def fire_annual_expenses(snapshot: Snapshot) -> float:
    """Custom FIRE expense target when set, otherwise current expenses annualized."""
    custom = snapshot.fire_settings.fire_annual_expense_target
    if custom is not None and custom > 0:
        return custom
    return max(0.0, snapshot.general.monthly_expense) * 12.0


def _box_status(state: WaterfallState, ef_target: float) -> Mapping[str, bool]:
    foundation = state.foundation
    return MappingProxyType(
        {
            "starterEF": foundation.starter_ef,
            "employerMatch": foundation.employer_match,
            "fullEF": state.buckets.savings >= ef_target,
            "highInterestDebt": FLEXIBLE_BOXES["highInterestDebt"].need(state) <= 0,
            "moderateDebt": FLEXIBLE_BOXES["moderateDebt"].need(state) <= 0,
        }
    )


def run_projection(
    snapshot: Snapshot,
    order: Sequence[str] | None = None,
    assumptions: Assumptions | None = None,
) -> ProjectionResult | None:
    """Project the snapshot month by month; ``None`` when retirement is not in the future."""
    total_months = months_to_retirement(snapshot)
    if total_months <= 0:
        logger.debug("no projection: retirement age %s <= age %s", snapshot.general.target_retirement, snapshot.general.age)
        return None

    assumptions = assumptions or snapshot.assumptions
    general = snapshot.general
    settings = snapshot.fire_settings
    flexible_order = resolve_flexible_order(order if order is not None else settings.flexible_order)
    logger.debug("projecting %d months with order %s", total_months, ", ".join(flexible_order))

    debts = [DebtState.from_debt(debt) for debt in snapshot.debts]
    buckets = AssetBuckets.from_investments(snapshot.investments)
    original_car = max(0.0, snapshot.investments.car_value)
    starter_target = assumptions.starter_ef_target
    state = WaterfallState(
        buckets=buckets,
        debts=debts,
        limits=ContributionLimitTracker.seeded(
            assumptions.contribution_limits,
            settings.ira_contribution_ytd,
            settings.four_oh_one_k_contribution_ytd,
        ),
        foundation=FoundationState(
            starter_ef=buckets.savings >= starter_target,
            employer_match=not settings.has_employer_match or settings.is_getting_match,
            full_ef=buckets.savings >= full_ef_target(general.monthly_expense, settings.emergency_fund_months, starter_target),
        ),
        settings=settings,
        tax_destiny=snapshot.tax_destiny,
        assumptions=assumptions,
    )
    rates = monthly_rates(assumptions.growth_rates)
    starting_min_payments = sum(debt.min_payment for debt in debts if not debt.is_mortgage and debt.balance > 0)

    table: list[MonthlySnapshot] = []
    for month in range(total_months + 1):
        # Step 1: Inflation, always from the base values.
        multiplier = inflation_multiplier(month, assumptions.inflation_rate)
        take_home = general.monthly_take_home * multiplier
        expense = general.monthly_expense * multiplier
        annual_income = general.annual_income * multiplier
        cash_flow = take_home - expense
        state.limits.start_month(month)

        # Step 2: Capture balances before anything moves.
        car = car_value(original_car, month, assumptions.car_depreciation_rate)
        opening = buckets.as_dict()
        debt_balances = tuple((debt.label, debt.balance) for debt in debts)
        mortgage = sum(debt.balance for debt in debts if debt.is_mortgage)
        total_debts = sum(balance for _, balance in debt_balances)
        total_assets = sum(opening.values()) + car
        status = _box_status(state, full_ef_target(expense, settings.emergency_fund_months, starter_target))

        def _record(allocation: MonthAllocation, freed: float, growth: dict[str, float], interest: float) -> None:
            table.append(
                MonthlySnapshot(
                    month=month,
                    year=month // 12,
                    month_in_year=month % 12,
                    age=round(general.age + month / 12.0, 2),
                    monthly_take_home=take_home,
                    monthly_expense=expense,
                    cash_flow=cash_flow,
                    freed_cash_flow=freed,
                    savings=opening["savings"],
                    taxable=opening["taxable"],
                    retirement=opening["retirement"],
                    real_estate=opening["real_estate"],
                    car=car,
                    other=opening["other"],
                    mortgage=mortgage,
                    debt_balances=debt_balances,
                    total_assets=total_assets,
                    total_debts=total_debts,
                    net_worth=total_assets - total_debts,
                    box_status=status,
                    allocation=allocation,
                    growth=MappingProxyType(growth),
                    interest_paid=interest,
                )
            )

        # Step 3: Terminal month records balances only.
        if month == total_months:
            _record(MonthAllocation.empty(), 0.0, {name: 0.0 for name in opening}, 0.0)
            break

        # Step 4: Asset growth.
        growth = apply_growth(buckets, rates)

        # Step 5: Scheduled payments on every debt, mortgage included.
        interest_paid = 0.0
        for debt in debts:
            interest, _ = amortize(debt)
            interest_paid += interest

        # Step 6: Minimum payments released by debts that are now paid off.
        current_min_payments = sum(debt.min_payment for debt in debts if not debt.is_mortgage and debt.balance > 0)
        freed = starting_min_payments - current_min_payments

        # Step 7: Waterfall allocation.
        allocation = allocate_month(
            state,
            cash_flow + freed,
            flexible_order,
            monthly_expense=expense,
            annual_income=annual_income,
        )
        _record(allocation, freed, growth, interest_paid)

    annual_expenses = fire_annual_expenses(snapshot)
    fire_target = annual_expenses * assumptions.fire_multiple
    first, last = table[0], table[-1]
    fire_month = None
    if fire_target > 0:
        fire_month = next((row.month for row in table if row.net_worth >= fire_target), None)

    summary = ProjectionSummary(
        current_age=general.age,
        retirement_age=general.target_retirement,
        months_to_retirement=total_months,
        starting_net_worth=first.net_worth,
        ending_net_worth=last.net_worth,
        annual_expenses=annual_expenses,
        fire_target=fire_target,
        shortfall=fire_target - last.net_worth,
        on_track=last.net_worth >= fire_target,
        fire_month=fire_month,
        monthly_mortgage_payment=sum(debt.min_payment for debt in debts if debt.is_mortgage),
        inflation_rate=assumptions.inflation_rate,
    )
    return ProjectionResult(table=tuple(table), summary=summary, order=flexible_order)


def yearly_rows(result: ProjectionResult) -> list[MonthlySnapshot]:
    """First month of every simulated year plus the final month."""
    last_month = result.table[-1].month
    return [row for row in result.table if row.month_in_year == 0 or row.month == last_month]


def box_timeline(result: ProjectionResult) -> dict[str, Milestone | None]:
    """Month and age at which each foundation and debt box first shows complete."""
    timeline: dict[str, Milestone | None] = {key: None for key in BOX_STATUS_KEYS}
    for row in result.table:
        for key in BOX_STATUS_KEYS:
            if timeline[key] is None and row.box_status[key]:
                timeline[key] = Milestone(month=row.month, age=row.age)
    return timeline


def net_worth_milestones(result: ProjectionResult) -> dict[str, Milestone | None]:
    milestones: dict[str, Milestone | None] = {
        "debt_free": None,
        "positive_net_worth": None,
        "hundred_k": None,
        "millionaire": None,
    }
    first = result.table[0]
    had_consumer_debt = first.consumer_debt > 0
    for row in result.table:
        if had_consumer_debt and milestones["debt_free"] is None and row.consumer_debt <= 0.005:
            milestones["debt_free"] = Milestone(row.month, row.age)
        if first.net_worth <= 0 and milestones["positive_net_worth"] is None and row.net_worth > 0:
            milestones["positive_net_worth"] = Milestone(row.month, row.age)
        if milestones["hundred_k"] is None and row.net_worth >= 100_000:
            milestones["hundred_k"] = Milestone(row.month, row.age)
        if milestones["millionaire"] is None and row.net_worth >= 1_000_000:
            milestones["millionaire"] = Milestone(row.month, row.age)
    return milestones
