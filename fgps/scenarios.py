"""What-if scenarios, sensitivity analysis and a caller-owned projection cache."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
import hashlib
import json
import logging
from typing import Callable, Sequence

from .assumptions import Assumptions
from .projection import ProjectionResult, fire_annual_expenses, run_projection
from .schema import Snapshot
from .waterfall import resolve_flexible_order

logger = logging.getLogger(__name__)

MAX_401K_ANNUAL = 23_500.0
MAX_401K_MONTHLY = 1_958.0
SENSITIVITY_DEBT_RATE = 7.0
TEMPLATE_DEBT_RATE = 10.0


def snapshot_hash(snapshot: Snapshot, order: Sequence[str] | None = None, assumptions: Assumptions | None = None) -> str:
    """Stable digest of everything a projection run depends on."""
    payload = {
        "snapshot": snapshot.to_dict(),
        "order": list(resolve_flexible_order(order if order is not None else snapshot.fire_settings.flexible_order)),
        "assumptions": (assumptions or snapshot.assumptions).to_dict(),
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass(slots=True)
class ProjectionCache:
    """Memoizes projection results by input hash; owned and scoped by the caller."""

    _results: dict[str, ProjectionResult | None] = field(default_factory=dict)
    hits: int = 0
    misses: int = 0

    def get_or_run(
        self,
        snapshot: Snapshot,
        order: Sequence[str] | None = None,
        assumptions: Assumptions | None = None,
    ) -> ProjectionResult | None:
        key = snapshot_hash(snapshot, order, assumptions)
        if key in self._results:
            self.hits += 1
            return self._results[key]
        self.misses += 1
        result = run_projection(snapshot, order, assumptions)
        self._results[key] = result
        return result

    def clear(self) -> None:
        self._results.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._results)


def _raise_10k(snapshot: Snapshot) -> None:
    snapshot.general.annual_income += 10_000
    # Take-home estimate assumes roughly 72% of the raise survives payroll taxes.
    snapshot.general.monthly_take_home += 600


def _reduce_expenses_500(snapshot: Snapshot) -> None:
    snapshot.general.monthly_expense = max(0.0, snapshot.general.monthly_expense - 500)


def _max_401k(snapshot: Snapshot) -> None:
    snapshot.general.monthly_take_home = max(0.0, snapshot.general.monthly_take_home - MAX_401K_MONTHLY)


def _pay_off_high_interest(snapshot: Snapshot) -> None:
    for debt in snapshot.debts:
        if debt.interest_rate > TEMPLATE_DEBT_RATE:
            debt.balance = 0.0


def _side_hustle_1k(snapshot: Snapshot) -> None:
    snapshot.general.monthly_take_home += 1_000


@dataclass(frozen=True, slots=True)
class ScenarioTemplate:
    name: str
    title: str
    description: str
    modify: Callable[[Snapshot], None]


TEMPLATES: dict[str, ScenarioTemplate] = {
    template.name: template
    for template in (
        ScenarioTemplate("raise_10k", "+$10K Income", "A $10,000 annual raise (+$600/mo take-home).", _raise_10k),
        ScenarioTemplate("reduce_expenses_500", "$500 Lower Expenses", "Monthly expenses reduced by $500.", _reduce_expenses_500),
        ScenarioTemplate("max_401k", "Maximum 401(k)", "401(k) at the annual limit; take-home reduced by $1,958/mo.", _max_401k),
        ScenarioTemplate("pay_off_high_interest", "No High-Interest Debt", "Debts above 10% APR eliminated.", _pay_off_high_interest),
        ScenarioTemplate("side_hustle_1k", "+$1K Monthly", "An extra $1,000/mo of take-home income.", _side_hustle_1k),
    )
}


def apply_template(snapshot: Snapshot, name: str) -> Snapshot:
    """Return a modified deep copy of ``snapshot``; the original is left untouched."""
    if name not in TEMPLATES:
        raise KeyError(f"unknown scenario template '{name}'; expected one of [{', '.join(sorted(TEMPLATES))}]")
    modified = copy.deepcopy(snapshot)
    TEMPLATES[name].modify(modified)
    return modified


@dataclass(frozen=True, slots=True)
class SensitivityRow:
    label: str
    fire_years: float | None
    now_possible: bool
    end_net_worth_diff: float
    cash_flow_diff: float


def _plus_10_percent_income(snapshot: Snapshot) -> None:
    snapshot.general.annual_income = round(snapshot.general.annual_income * 1.1)
    snapshot.general.monthly_take_home = round(snapshot.general.monthly_take_home * 1.1)


def _minus_20_percent_expenses(snapshot: Snapshot) -> None:
    snapshot.general.monthly_expense = round(snapshot.general.monthly_expense * 0.8)


def _pay_off_high_rate_debt(snapshot: Snapshot) -> None:
    for debt in snapshot.debts:
        if debt.interest_rate > SENSITIVITY_DEBT_RATE:
            debt.balance = 0.0


def _max_401k_from_tax_destiny(snapshot: Snapshot) -> None:
    current = snapshot.tax_destiny.four_oh_one_k * 12
    additional = max(0.0, MAX_401K_ANNUAL - current)
    snapshot.general.monthly_take_home = max(0.0, snapshot.general.monthly_take_home - round(additional / 12))


def _save_500_more(snapshot: Snapshot) -> None:
    snapshot.general.monthly_expense = max(0.0, snapshot.general.monthly_expense - 500)


SENSITIVITY_SCENARIOS: tuple[tuple[str, Callable[[Snapshot], None]], ...] = (
    ("+10% Income", _plus_10_percent_income),
    ("-20% Expenses", _minus_20_percent_expenses),
    ("Pay Off High-Rate Debt", _pay_off_high_rate_debt),
    ("Max 401(k)", _max_401k_from_tax_destiny),
    ("+$500/mo Savings", _save_500_more),
)


def _first_month_at(result: ProjectionResult, target: float) -> int | None:
    return next((row.month for row in result.table if row.net_worth >= target), None)


def _cash_flow(snapshot: Snapshot) -> float:
    return snapshot.general.monthly_take_home - snapshot.general.monthly_expense


def sensitivity(
    snapshot: Snapshot,
    order: Sequence[str] | None = None,
    assumptions: Assumptions | None = None,
    cache: ProjectionCache | None = None,
) -> list[SensitivityRow]:
    """How the FIRE date, ending net worth and cash flow move under common changes.

    The FIRE target is held at the baseline value for every scenario so the
    rows are comparable. ``fire_years`` is positive when the scenario reaches
    the target sooner.
    """
    cache = cache if cache is not None else ProjectionCache()
    multiple = (assumptions or snapshot.assumptions).fire_multiple
    fire_target = fire_annual_expenses(snapshot) * multiple
    if fire_target <= 0:
        return []

    baseline = cache.get_or_run(snapshot, order, assumptions)
    if baseline is None:
        return []
    baseline_fire = _first_month_at(baseline, fire_target)
    baseline_end = baseline.summary.ending_net_worth
    baseline_cash_flow = _cash_flow(snapshot)

    rows: list[SensitivityRow] = []
    for label, modify in SENSITIVITY_SCENARIOS:
        scenario = copy.deepcopy(snapshot)
        modify(scenario)
        result = cache.get_or_run(scenario, order, assumptions)
        if result is None:
            continue
        scenario_fire = _first_month_at(result, fire_target)
        fire_years = None
        if baseline_fire is not None and scenario_fire is not None:
            fire_years = round((baseline_fire - scenario_fire) / 12, 1)
        rows.append(
            SensitivityRow(
                label=label,
                fire_years=fire_years,
                now_possible=baseline_fire is None and scenario_fire is not None,
                end_net_worth_diff=result.summary.ending_net_worth - baseline_end,
                cash_flow_diff=_cash_flow(scenario) - baseline_cash_flow,
            )
        )
    logger.debug("sensitivity: %d scenarios, cache hits=%d misses=%d", len(rows), cache.hits, cache.misses)
    return rows


@dataclass(frozen=True, slots=True)
class ScenarioOutcome:
    name: str
    estimated_fi_age: float | None
    ending_net_worth: float | None
    monthly_cash_flow: float


def compare_scenarios(
    scenarios: dict[str, Snapshot],
    order: Sequence[str] | None = None,
    cache: ProjectionCache | None = None,
) -> list[ScenarioOutcome]:
    """Project each named snapshot and report when it reaches its own FIRE target."""
    cache = cache if cache is not None else ProjectionCache()
    outcomes: list[ScenarioOutcome] = []
    for name, snapshot in scenarios.items():
        result = cache.get_or_run(snapshot, order)
        fi_age = None
        ending = None
        if result is not None:
            ending = result.summary.ending_net_worth
            if result.summary.fire_month is not None:
                fi_age = round(snapshot.general.age + result.summary.fire_month / 12, 1)
        outcomes.append(
            ScenarioOutcome(
                name=name,
                estimated_fi_age=fi_age,
                ending_net_worth=ending,
                monthly_cash_flow=_cash_flow(snapshot),
            )
        )
    return outcomes
