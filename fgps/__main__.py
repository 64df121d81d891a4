"""CLI entry point for FGPS."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from .debt_payoff import compare_debt_strategies
from .export import write_projection_csv
from .projection import ProjectionResult, box_timeline, yearly_rows
from .scenarios import TEMPLATES, ProjectionCache, apply_template, sensitivity
from .schema import SchemaError, Snapshot, load_snapshot
from .validate import validate_snapshot


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Financial GPS net worth projection")
    parser.add_argument("snapshot", help="Path to financial snapshot JSON file")
    parser.add_argument("--validate", action="store_true", help="Validate JSON only")
    parser.add_argument("--order", help="Comma-separated flexible box priority order")
    parser.add_argument("--template", choices=sorted(TEMPLATES), help="Apply a what-if scenario template before projecting")
    parser.add_argument("--csv", help="Write the monthly projection table to this CSV path")
    parser.add_argument("--yearly", action="store_true", help="Print one row per simulated year")
    parser.add_argument("--timeline", action="store_true", help="Print the month each foundation and debt box completes")
    parser.add_argument("--debts", action="store_true", help="Compare avalanche and snowball debt payoff")
    parser.add_argument("--extra", type=float, help="Monthly debt budget for --debts (default: take-home minus expenses)")
    parser.add_argument("--sensitivity", action="store_true", help="Print the what-if sensitivity grid")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level (default: WARNING)")
    return parser


def _print_validation(errors: list[str], warnings: list[str]) -> None:
    for warning in warnings:
        print(f"WARNING: {warning}")
    for error in errors:
        print(f"ERROR: {error}", file=sys.stderr)


def _print_summary(result: ProjectionResult) -> None:
    summary = result.summary
    print(f"Months to retirement: {summary.months_to_retirement}")
    print(f"Priority order: {', '.join(result.order)}")
    print(f"Starting net worth: ${summary.starting_net_worth:,.0f}")
    print(f"Ending net worth: ${summary.ending_net_worth:,.0f}")
    print(f"FIRE target: ${summary.fire_target:,.0f}")
    if summary.fire_month is not None:
        print(f"FIRE reached: month {summary.fire_month} (age {summary.current_age + summary.fire_month / 12:.1f})")
    print(f"On track: {'yes' if summary.on_track else 'no'} (shortfall ${max(0.0, summary.shortfall):,.0f})")


def _print_yearly(result: ProjectionResult) -> None:
    print(f"{'Age':>6} {'Net worth':>14} {'Savings':>12} {'Retirement':>12} {'Taxable':>12} {'Debts':>12}")
    for row in yearly_rows(result):
        print(
            f"{row.age:>6.1f} {row.net_worth:>14,.0f} {row.savings:>12,.0f} "
            f"{row.retirement:>12,.0f} {row.taxable:>12,.0f} {row.total_debts:>12,.0f}"
        )


def _print_timeline(result: ProjectionResult) -> None:
    for box, milestone in box_timeline(result).items():
        if milestone is None:
            print(f"{box}: not reached")
        else:
            print(f"{box}: month {milestone.month} (age {milestone.age:.1f})")


def _print_debt_comparison(snapshot: Snapshot, extra: float | None) -> None:
    budget = extra if extra is not None else snapshot.general.monthly_take_home - snapshot.general.monthly_expense
    comparison = compare_debt_strategies(snapshot.debts, budget)
    if comparison is None:
        print("No active debts to compare.")
        return
    for side in (comparison.avalanche, comparison.snowball):
        capped = " (not paid off within 50 years)" if side.reached_max_months else ""
        print(f"{side.method}: {side.months_to_payoff} months, ${side.total_interest_paid:,.2f} interest{capped}")
    print(f"Recommendation: {comparison.comparison.recommendation} - {comparison.comparison.reason}")


def _print_sensitivity(snapshot: Snapshot, order: list[str] | None, cache: ProjectionCache) -> None:
    rows = sensitivity(snapshot, order, cache=cache)
    if not rows:
        print("Sensitivity unavailable: add income, expenses and a future retirement age.")
        return
    for row in rows:
        if row.fire_years is not None:
            fire = f"{row.fire_years:+.1f} yrs"
        elif row.now_possible:
            fire = "now possible"
        else:
            fire = "-"
        print(f"{row.label:<24} {fire:>14} {row.end_net_worth_diff:>+16,.0f} {row.cash_flow_diff:>+10,.0f}/mo")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    try:
        snapshot = load_snapshot(args.snapshot)
    except (SchemaError, OSError, ValueError) as exc:
        print(f"Failed to load snapshot: {exc}", file=sys.stderr)
        return 2

    validation = validate_snapshot(snapshot)
    _print_validation(validation.errors, validation.warnings)
    if not validation.is_valid:
        return 1

    if args.validate:
        print("Snapshot is valid.")
        return 0

    if args.template:
        snapshot = apply_template(snapshot, args.template)
        print(f"Scenario: {TEMPLATES[args.template].title}")

    order = [key.strip() for key in args.order.split(",")] if args.order else None
    cache = ProjectionCache()
    result = cache.get_or_run(snapshot, order)
    if result is None:
        print("No projection: target retirement age must be greater than current age.")
    else:
        _print_summary(result)
        if args.yearly:
            _print_yearly(result)
        if args.timeline:
            _print_timeline(result)
        if args.csv:
            print(f"Wrote projection to {write_projection_csv(result, Path(args.csv))}")

    if args.debts:
        _print_debt_comparison(snapshot, args.extra)
    if args.sensitivity:
        _print_sensitivity(snapshot, order, cache)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
