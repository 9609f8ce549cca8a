"""
Report rendering for the CLI.

Produces a markdown summary of a TamReport and a flat per-account table
(pandas) for CSV export.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from tam.models import PRODUCTS, TIER_ORDER
from tam.report import AssignmentPlan, TamReport

logger = logging.getLogger(__name__)


def _money(value: float) -> str:
    if abs(value) >= 1e9:
        return f"${value / 1e9:,.2f}B"
    if abs(value) >= 1e6:
        return f"${value / 1e6:,.1f}M"
    return f"${value:,.0f}"


def _pct(value: float | None) -> str:
    return "-" if value is None else f"{value * 100:.1f}%"


def accounts_frame(report: TamReport) -> pd.DataFrame:
    """One row per account: tier, coverage, TAM by product, projections, team share."""
    rows = []
    for a in report.accounts:
        row = {
            "account_id": a.account_id,
            "name": a.name,
            "tier": a.tier.value,
            "covered": a.covered,
            "total_assets": a.total_assets,
            "fte": a.fte,
            "revenue_source": a.tam.revenue_source.value,
        }
        for product in PRODUCTS:
            row[f"tam_{product.value}"] = a.tam.components[product]
        row["tam_total"] = a.tam.total
        row["three_year_achievable"] = a.three_year_achievable
        for year, rrr in sorted(a.run_rate_by_year.items()):
            row[f"rrr_{year}"] = rrr
        row["ae_share"] = a.ae_share
        row["se_share"] = a.se_share
        row["assigned_members"] = ";".join(a.assigned_member_ids)
        rows.append(row)
    return pd.DataFrame(rows)


def save_accounts_csv(report: TamReport, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    accounts_frame(report).to_csv(path, index=False)
    logger.info("Saved account detail: %s", path)
    return path


def generate_markdown_report(report: TamReport) -> str:
    """Markdown summary: coverage, team by tier, year rollups, audit notes."""
    cov = report.coverage
    lines = [
        f"# TAM Capacity Plan ({report.assumptions_version})",
        "",
        f"Horizon: {report.horizon[0]} .. {report.horizon[-1]}",
        "",
        "## Coverage",
        "",
        f"- Covered accounts: {cov.covered_count} of {cov.total_count} (target {cov.target_count})",
        f"- TAM covered: {_money(cov.tam_covered)} of {_money(cov.total_tam)} ({_pct(cov.coverage_pct)})",
        f"- Three-year achievable (covered): {_money(cov.three_year_covered)}",
        "",
        "## Team by tier",
        "",
        "| Tier | Accounts | TAM | AEs | SEs | Headcount |",
        "|------|---------:|----:|----:|----:|----------:|",
    ]
    for tier in TIER_ORDER:
        row = report.team_by_tier.get(tier)
        if row is None:
            continue
        lines.append(
            f"| {tier.value} | {row.account_count} | {_money(row.tam)} "
            f"| {row.aes_needed:.2f} | {row.ses_needed:.2f} | {row.total_headcount:.2f} |"
        )
    totals = report.team_totals
    lines += [
        f"| **Total** | | | {totals.aes:.2f} | {totals.ses:.2f} | {totals.total:.2f} |",
        "",
        f"SE:AE ratio {totals.se_to_ae_ratio:.2f}",
        "",
        "## Revenue by year",
        "",
        "| Year | Potential | Captured | Capture rate | Potential RRR | Adjusted RRR |",
        "|------|----------:|---------:|-------------:|--------------:|-------------:|",
    ]
    for y in report.rollups.by_year:
        lines.append(
            f"| {y.year} | {_money(y.potential)} | {_money(y.captured)} | {_pct(y.capture_rate)} "
            f"| {_money(y.potential_rrr)} | {_money(y.adjusted_rrr)} |"
        )
    total = report.rollups.total
    lines += [
        "",
        f"Horizon total: {_money(total.captured)} captured of {_money(total.potential)} ({_pct(total.capture_rate)})",
    ]

    if report.data_quality_gaps or report.warnings:
        lines += ["", "## Audit", ""]
        for gap in report.data_quality_gaps:
            lines.append(f"- Data gap: {gap.account_id} missing {', '.join(gap.missing_fields)}")
        for w in report.warnings:
            lines.append(f"- {w.code}: {w.message}")

    return "\n".join(lines) + "\n"


def generate_assignment_table(plan: AssignmentPlan) -> str:
    lines = [
        f"Assignment plan as of {plan.quarter}",
        "",
        "| Tier | AEs | Accounts/AE | Carried | Uncovered | Carried TAM |",
        "|------|----:|------------:|--------:|----------:|------------:|",
    ]
    for tier in TIER_ORDER:
        p = plan.by_tier[tier]
        lines.append(
            f"| {tier.value} | {p.total_aes} | {p.accounts_per_ae} | {p.covered_account_count} "
            f"| {p.uncovered_account_count} | {_money(p.covered_tam)} |"
        )
    return "\n".join(lines) + "\n"
