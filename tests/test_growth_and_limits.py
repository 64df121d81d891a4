import pytest

from fgps.growth import AssetBuckets, annual_to_monthly_rate, apply_growth, car_value, inflation_multiplier
from fgps.limits import ContributionLimitTracker


def test_monthly_rate_compounds_back_to_annual():
    monthly = annual_to_monthly_rate(0.07)
    assert (1 + monthly) ** 12 == pytest.approx(1.07)
    assert annual_to_monthly_rate(-1.5) == -1.0


@pytest.mark.parametrize(
    ("month", "expected"),
    [(0, 20000.0), (6, 18000.0), (24, 12000.0), (60, 0.0), (72, 0.0)],
)
def test_car_depreciates_straight_line_from_original_value(month, expected):
    assert car_value(20000, month, 0.20) == pytest.approx(expected)


def test_inflation_steps_once_per_year():
    assert inflation_multiplier(0, 0.03) == 1.0
    assert inflation_multiplier(11, 0.03) == 1.0
    assert inflation_multiplier(12, 0.03) == pytest.approx(1.03)
    assert inflation_multiplier(25, 0.03) == pytest.approx(1.03**2)


def test_apply_growth_mutates_buckets_and_returns_deltas():
    buckets = AssetBuckets(savings=1000, taxable=2000, retirement=0, real_estate=0, other=0)
    growth = apply_growth(buckets, {"savings": 0.01, "taxable": 0.02})

    assert growth["savings"] == pytest.approx(10.0)
    assert growth["taxable"] == pytest.approx(40.0)
    assert growth["retirement"] == 0.0
    assert buckets.savings == pytest.approx(1010.0)
    assert buckets.taxable == pytest.approx(2040.0)


def test_contributions_are_capped_by_remaining_limit():
    tracker = ContributionLimitTracker(limits={"ira": 7000, "401k": 23000, "hsa": 4150})
    tracker.ytd["hsa"] = 4000

    assert tracker.contribute("hsa", 500) == pytest.approx(150.0)
    assert tracker.remaining("hsa") == 0.0
    assert tracker.contribute("hsa", 100) == 0.0
    assert tracker.contribute("401k", -5) == 0.0


def test_counters_reset_on_year_boundaries_but_not_month_zero():
    tracker = ContributionLimitTracker.seeded({"ira": 7000, "401k": 23000, "hsa": 4150}, ira_ytd=2000)

    tracker.start_month(0)
    assert tracker.ytd["ira"] == 2000
    tracker.start_month(5)
    assert tracker.ytd["ira"] == 2000
    tracker.start_month(12)
    assert tracker.ytd["ira"] == 0.0


def test_seeded_ytd_is_clamped_to_the_limit():
    tracker = ContributionLimitTracker.seeded({"ira": 7000, "401k": 23000, "hsa": 4150}, four_oh_one_k_ytd=30000)
    assert tracker.ytd["401k"] == 23000
    assert tracker.remaining("401k") == 0.0


def test_traditional_ira_is_drawn_before_roth():
    tracker = ContributionLimitTracker.seeded({"ira": 7000, "401k": 23000, "hsa": 4150}, ira_ytd=6800)

    traditional, roth = tracker.contribute_ira(150, 150)

    assert traditional == pytest.approx(150.0)
    assert roth == pytest.approx(50.0)
    assert tracker.ytd["ira"] == pytest.approx(7000.0)


def test_ira_contributions_respect_budget():
    tracker = ContributionLimitTracker()
    traditional, roth = tracker.contribute_ira(300, 300, budget=400)

    assert traditional == pytest.approx(300.0)
    assert roth == pytest.approx(100.0)
