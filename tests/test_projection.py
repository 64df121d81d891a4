import logging

import pytest

from fgps.assumptions import DEFAULT_FLEXIBLE_ORDER
from fgps.projection import (
    box_timeline,
    fire_annual_expenses,
    months_to_retirement,
    net_worth_milestones,
    run_projection,
    yearly_rows,
)
from tests.helpers import build_snapshot, clone_snapshot, simple_snapshot_dict

TAXABLE_FIRST = ["taxableInvesting", "highInterestDebt", "hsaIra", "moderateDebt", "max401k"]


def test_first_month_surplus_flows_past_funded_foundation():
    snapshot = build_snapshot(simple_snapshot_dict(emergency_fund_months=0))
    result = run_projection(snapshot, order=TAXABLE_FIRST)

    assert result is not None
    assert len(result.table) == 13
    first = result.table[0]
    assert first.cash_flow == pytest.approx(2000.0)
    assert first.allocation.amounts["starterEF"] == pytest.approx(1000.0)
    assert first.allocation.amounts["taxableInvesting"] == pytest.approx(1000.0)
    assert result.table[1].savings == pytest.approx(1000.0)
    assert result.table[1].taxable == pytest.approx(1000.0)


def test_default_settings_build_the_emergency_fund_first():
    result = run_projection(build_snapshot(simple_snapshot_dict()))

    assert result.table[0].allocation.amounts["fullEF"] == pytest.approx(1000.0)
    assert result.table[1].savings == pytest.approx(2000.0)
    assert result.table[1].taxable == 0.0


@pytest.mark.parametrize("months", [0, -12])
def test_no_projection_when_retirement_is_not_in_the_future(months):
    assert run_projection(build_snapshot(simple_snapshot_dict(months=months))) is None


def test_months_to_retirement_rounds():
    data = simple_snapshot_dict()
    data["general"]["target_retirement"] = 30.96
    assert months_to_retirement(build_snapshot(data)) == 12


def test_projection_is_deterministic(sample_snapshot_dict):
    snapshot = build_snapshot(sample_snapshot_dict)
    assert run_projection(snapshot) == run_projection(snapshot)


def test_run_does_not_mutate_the_snapshot(sample_snapshot_dict):
    snapshot = build_snapshot(sample_snapshot_dict)
    before = snapshot.to_dict()
    run_projection(snapshot)
    assert snapshot.to_dict() == before


def test_debt_balances_never_increase(sample_snapshot_dict):
    result = run_projection(build_snapshot(sample_snapshot_dict))

    for previous, current in zip(result.table, result.table[1:]):
        for (_, before), (_, after) in zip(previous.debt_balances, current.debt_balances):
            assert after <= before + 1e-9


def test_monthly_allocations_stay_within_available_cash(sample_snapshot_dict):
    result = run_projection(build_snapshot(sample_snapshot_dict))

    for row in result.table:
        allocation = row.allocation
        assert allocation.total <= max(0.0, allocation.available) + 1e-6
        assert row.net_worth == pytest.approx(row.total_assets - row.total_debts)


def test_yearly_contributions_respect_limits(sample_snapshot_dict):
    snapshot = build_snapshot(sample_snapshot_dict)
    result = run_projection(snapshot)
    limits = snapshot.assumptions.contribution_limits
    seeds = {
        "ira": snapshot.fire_settings.ira_contribution_ytd,
        "401k": snapshot.fire_settings.four_oh_one_k_contribution_ytd,
        "hsa": 0.0,
    }

    totals: dict[int, dict[str, float]] = {}
    for row in result.table:
        year = totals.setdefault(row.year, {"ira": 0.0, "401k": 0.0, "hsa": 0.0})
        contributions = row.allocation.contributions
        year["ira"] += contributions["traditional_ira"] + contributions["roth_ira"]
        year["401k"] += contributions["401k"] + contributions["employer_match"]
        year["hsa"] += contributions["hsa"]

    for year, spent in totals.items():
        for category, amount in spent.items():
            seed = seeds[category] if year == 0 else 0.0
            assert amount + seed <= limits[category] + 1e-6


def test_paid_off_minimum_payment_is_freed():
    debts = [{"category": "CREDIT_CARD", "label": "Card", "balance": 1000, "interest_rate": 0, "term_months": 2}]
    snapshot = build_snapshot(simple_snapshot_dict(take_home=4000, expense=4000, months=6, debts=debts))

    result = run_projection(snapshot)

    assert result.table[0].freed_cash_flow == 0.0
    assert result.table[0].allocation.total == 0.0
    assert result.table[1].freed_cash_flow == pytest.approx(500.0)
    assert result.table[1].allocation.amounts["starterEF"] == pytest.approx(500.0)
    assert result.table[2].debt_balances == (("Card", 0.0),)


def test_income_and_expenses_inflate_at_year_boundaries():
    result = run_projection(build_snapshot(simple_snapshot_dict(months=24)))

    assert result.table[11].monthly_take_home == pytest.approx(6000.0)
    assert result.table[12].monthly_take_home == pytest.approx(6180.0)
    assert result.table[12].monthly_expense == pytest.approx(4120.0)
    assert result.table[12].cash_flow == pytest.approx(2060.0)


def test_car_value_depreciates_from_original_value():
    data = simple_snapshot_dict()
    data["investments"]["car_value"] = 20000
    result = run_projection(build_snapshot(data))

    assert result.table[0].car == pytest.approx(20000.0)
    assert result.table[6].car == pytest.approx(18000.0)
    assert result.table[12].car == pytest.approx(16000.0)


def test_invalid_order_falls_back_with_warning(caplog):
    snapshot = build_snapshot(simple_snapshot_dict())
    with caplog.at_level(logging.WARNING, logger="fgps.waterfall"):
        result = run_projection(snapshot, order=["maxRoth"])

    assert result.order == DEFAULT_FLEXIBLE_ORDER
    assert "invalid flexible box order" in caplog.text


def test_order_from_settings_is_used_when_none_passed():
    snapshot = build_snapshot(simple_snapshot_dict(flexible_order=TAXABLE_FIRST))
    assert run_projection(snapshot).order == tuple(TAXABLE_FIRST)


def test_fire_target_uses_annual_expenses():
    snapshot = build_snapshot(simple_snapshot_dict())
    result = run_projection(snapshot)

    assert fire_annual_expenses(snapshot) == pytest.approx(48000.0)
    assert result.summary.fire_target == pytest.approx(1_200_000.0)
    assert result.summary.on_track is False
    assert result.summary.shortfall == pytest.approx(1_200_000.0 - result.table[-1].net_worth)
    assert result.summary.fire_month is None


def test_custom_fire_expense_target_overrides_expenses():
    snapshot = build_snapshot(simple_snapshot_dict(fire_annual_expense_target=40000))
    assert run_projection(snapshot).summary.fire_target == pytest.approx(1_000_000.0)


def test_box_timeline_reports_first_complete_month():
    snapshot = build_snapshot(simple_snapshot_dict(emergency_fund_months=12))
    timeline = box_timeline(run_projection(snapshot))

    assert timeline["starterEF"].month == 1
    assert timeline["employerMatch"].month == 0
    assert timeline["highInterestDebt"].month == 0
    assert timeline["fullEF"] is None


def test_yearly_rows_for_sample(sample_snapshot_dict):
    result = run_projection(build_snapshot(sample_snapshot_dict))
    rows = yearly_rows(result)

    assert result.summary.months_to_retirement == 276
    assert len(rows) == 24
    assert rows[0].month == 0
    assert rows[-1].month == 276


def test_net_worth_milestones_track_debt_freedom():
    debts = [{"category": "MEDICAL", "label": "Hospital", "balance": 1000, "interest_rate": 0, "term_months": 2}]
    data = simple_snapshot_dict(take_home=4000, expense=4000, debts=debts)
    milestones = net_worth_milestones(run_projection(build_snapshot(data)))

    assert milestones["debt_free"].month == 2
    assert milestones["positive_net_worth"].month == 2
    assert milestones["millionaire"] is None


def test_custom_assumptions_override_snapshot_values(sample_snapshot_dict):
    data = clone_snapshot(sample_snapshot_dict)
    data["assumptions"] = {"growth_rates": {"taxable": 0.0, "retirement": 0.0}, "inflation_rate": 0.0}
    flat = run_projection(build_snapshot(data))
    baseline = run_projection(build_snapshot(sample_snapshot_dict))

    assert flat.summary.inflation_rate == 0.0
    assert flat.table[-1].monthly_take_home == pytest.approx(5800.0)
    assert flat.summary.ending_net_worth < baseline.summary.ending_net_worth


def test_one_month_to_retirement_funds_starter_then_first_flexible_box():
    snapshot = build_snapshot(simple_snapshot_dict(months=1, emergency_fund_months=0))
    result = run_projection(snapshot)

    assert len(result.table) == 2
    start, end = result.table
    assert (start.savings, start.taxable, start.retirement, start.net_worth) == (0.0, 0.0, 0.0, 0.0)
    assert start.allocation.amounts["starterEF"] == pytest.approx(1000.0)
    assert start.allocation.amounts["highInterestDebt"] == 0.0
    assert end.savings == pytest.approx(1000.0)
    assert end.taxable == pytest.approx(1000.0)
    assert end.allocation.total == 0.0


def test_full_emergency_fund_is_topped_up_as_expenses_inflate():
    data = simple_snapshot_dict(months=24)
    data["investments"]["savings"] = 25000
    data["assumptions"] = {"growth_rates": {"savings": 0.0}}
    result = run_projection(build_snapshot(data))

    assert result.table[0].box_status["fullEF"] is True
    assert result.table[11].allocation.amounts["fullEF"] == 0.0
    assert result.table[12].box_status["fullEF"] is False
    assert result.table[12].allocation.amounts["fullEF"] == pytest.approx(720.0)
    assert result.table[13].savings == pytest.approx(25720.0)
    assert result.table[13].box_status["fullEF"] is True


def test_monthly_rows_cannot_be_mutated():
    row = run_projection(build_snapshot(simple_snapshot_dict())).table[0]

    with pytest.raises(TypeError):
        row.box_status["fullEF"] = True
    with pytest.raises(TypeError):
        row.allocation.amounts["taxableInvesting"] = 1.0
    with pytest.raises(TypeError):
        row.growth["savings"] = 1.0
