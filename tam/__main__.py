"""
CLI entry point for the TAM capacity planner.

Usage:
    python -m tam report --accounts banks.csv                  # Markdown summary
    python -m tam report --accounts banks.csv --format json    # Full report as JSON
    python -m tam report --coverage-count 50 --csv out.csv     # Scenario + account CSV
    python -m tam classify 45e9                                # Tier for an asset value
    python -m tam headcount --quarter 2027-Q2                  # Headcount as of a quarter
    python -m tam assignments --quarter 2028-Q4                # Auto-assignment plan
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from config.settings import settings


def _inputs(args: argparse.Namespace):
    from tam.loader import load_planning_inputs

    accounts_path = args.accounts or settings.accounts_path
    if accounts_path is None:
        sys.exit("No account snapshot given: pass --accounts or set ACCOUNTS_PATH")
    coverage_count = args.coverage_count
    if coverage_count is None:
        coverage_count = settings.default_target_coverage_count
    return load_planning_inputs(
        Path(accounts_path),
        assumptions_path=args.assumptions or settings.assumptions_path,
        roster_path=args.roster or settings.roster_path,
        target_coverage_count=coverage_count,
        horizon_start_year=settings.horizon_start_year,
    )


def _cmd_report(args: argparse.Namespace) -> None:
    """Run the full pipeline and print the report."""
    from tam.pipeline import run_pipeline
    from tam.reporter import generate_markdown_report, save_accounts_csv

    report = run_pipeline(_inputs(args))

    output = report.model_dump_json(indent=2) if args.format == "json" else generate_markdown_report(report)
    if args.output:
        out_path = Path(args.output)
        out_path.write_text(output)
        print(f"Report saved to {out_path}")
    else:
        print(output)

    if args.csv:
        save_accounts_csv(report, Path(args.csv))
        print(f"Account detail saved to {args.csv}")


def _cmd_classify(args: argparse.Namespace) -> None:
    from tam.loader import load_assumptions
    from tam.tiers import classify_tier

    path = args.assumptions or settings.assumptions_path
    thresholds = load_assumptions(path).tier_thresholds
    for value in args.total_assets:
        print(f"{value:>22,.0f}  {classify_tier(value, thresholds).value}")


def _cmd_headcount(args: argparse.Namespace) -> None:
    from tam.capacity import headcount_as_of
    from tam.loader import load_assumptions, load_roster

    team_sizing = load_assumptions(args.assumptions or settings.assumptions_path).team_sizing
    roster = load_roster(args.roster or settings.roster_path)
    hc = headcount_as_of(
        roster,
        args.quarter,
        ramp_quarters=int(team_sizing.ramp_quarters.value),
        ramp_curve=team_sizing.ramp_curve.value,
    )

    print(f"\nHeadcount as of {hc.quarter}")
    print(f"  AEs: {hc.total_aes} ({hc.effective_aes:.2f} effective)")
    print(f"  SEs: {hc.total_ses} ({hc.effective_ses:.2f} effective)")
    print(f"\n{'Tier':<15} {'AEs':>5} {'SEs':>5}")
    print("-" * 27)
    for tier, row in hc.by_tier.items():
        print(f"{tier.value:<15} {row.total_aes:>5} {row.total_ses:>5}")
    print()


def _cmd_assignments(args: argparse.Namespace) -> None:
    from tam.pipeline import run_assignment_plan
    from tam.reporter import generate_assignment_table

    plan = run_assignment_plan(_inputs(args), args.quarter)
    print(generate_assignment_table(plan))


def _add_input_args(p: argparse.ArgumentParser, accounts: bool = True) -> None:
    if accounts:
        p.add_argument("--accounts", help="Account snapshot (YAML/JSON/CSV)")
        p.add_argument("--coverage-count", type=int, default=None, help="Number of accounts to cover")
    p.add_argument("--assumptions", help="Assumption set (YAML/JSON)")
    p.add_argument("--roster", help="Roster and hiring plan (YAML/JSON)")


def main() -> None:
    """Parse arguments and dispatch to subcommand."""
    parser = argparse.ArgumentParser(
        prog="python -m tam",
        description="TAM projection and sales capacity planner",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- report ---
    p_report = subparsers.add_parser("report", help="Run the pipeline and print the report")
    _add_input_args(p_report)
    p_report.add_argument("--format", choices=["markdown", "json"], default="markdown")
    p_report.add_argument("--output", "-o", help="Save report to file")
    p_report.add_argument("--csv", help="Save per-account detail as CSV")

    # --- classify ---
    p_classify = subparsers.add_parser("classify", help="Tier for one or more asset values")
    p_classify.add_argument("total_assets", type=float, nargs="+")
    p_classify.add_argument("--assumptions", help="Assumption set (YAML/JSON)")

    # --- headcount ---
    p_headcount = subparsers.add_parser("headcount", help="Headcount on staff as of a quarter")
    _add_input_args(p_headcount, accounts=False)
    p_headcount.add_argument("--quarter", required=True, help="e.g. 2027-Q2")

    # --- assignments ---
    p_assign = subparsers.add_parser("assignments", help="Auto-assignment plan as of a quarter")
    _add_input_args(p_assign)
    p_assign.add_argument("--quarter", default="2028-Q4", help="e.g. 2028-Q4")

    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    commands = {
        "report": _cmd_report,
        "classify": _cmd_classify,
        "headcount": _cmd_headcount,
        "assignments": _cmd_assignments,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
