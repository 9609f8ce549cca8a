"""
Tier, quarter and year rollups of covered-account revenue.

Two kinds of annual figure are produced and never mixed:
    - potential / captured: sum of the year's four quarters
    - potential_rrr / adjusted_rrr: Q4 quarterly figure x 4 (run-rate)
"""

from __future__ import annotations

import logging

import pandas as pd

from tam.defaults import QUARTERS_PER_YEAR
from tam.index import AccountIndex
from tam.models import PRODUCTS, TIER_ORDER, Product, Tier
from tam.quarters import Horizon, Quarter
from tam.report import (
    AccountProjection,
    CapacityAllocationResult,
    CoverageSelection,
    HorizonTotal,
    OperatingExpenseCheck,
    RollupResult,
    TierQuarterRollup,
    TierYearRollup,
    YearRollup,
)

logger = logging.getLogger(__name__)

_COLUMNS = ["tier", "quarter", "year", "is_q4", "potential", "captured", *[p.value for p in PRODUCTS]]


def _rate(captured: float, potential: float) -> float:
    return captured / potential if potential > 0 else 0.0


def allocation_frame(
    allocation: CapacityAllocationResult,
    projections: dict[str, AccountProjection],
) -> pd.DataFrame:
    """One row per covered account per quarter, with product-level potential."""
    rows = []
    for qa in allocation.quarters:
        quarter = Quarter.parse(qa.quarter)
        for cov in qa.accounts:
            by_product = projections[cov.account_id].quarter(qa.quarter).by_product
            row = {
                "tier": cov.tier.value,
                "quarter": qa.quarter,
                "year": quarter.year,
                "is_q4": quarter.is_year_end,
                "potential": cov.potential,
                "captured": cov.captured,
            }
            for product in PRODUCTS:
                row[product.value] = by_product[product].revenue
            rows.append(row)
    dtypes = {"year": "int64", "is_q4": "bool", "potential": "float64", "captured": "float64"}
    dtypes.update({p.value: "float64" for p in PRODUCTS})
    return pd.DataFrame(rows, columns=_COLUMNS).astype(dtypes)


def _year_rollup(frame: pd.DataFrame, year: int) -> dict:
    in_year = frame[frame["year"] == year]
    q4 = in_year[in_year["is_q4"]]
    potential = float(in_year["potential"].sum())
    captured = float(in_year["captured"].sum())
    return {
        "year": year,
        "potential": potential,
        "captured": captured,
        "capture_rate": _rate(captured, potential),
        "potential_rrr": float(q4["potential"].sum()) * QUARTERS_PER_YEAR,
        "adjusted_rrr": float(q4["captured"].sum()) * QUARTERS_PER_YEAR,
    }


def operating_expense_check(
    index: AccountIndex,
    coverage: CoverageSelection,
    by_year: list[YearRollup],
) -> OperatingExpenseCheck:
    """Covered TAM and potential run-rate as a fraction of covered operating expense."""
    opex = salaries = premises = other = 0.0
    for account_id in coverage.covered_ids:
        account = index.accounts[account_id]
        opex += account.annual_operating_expense or 0.0
        breakdown = account.operating_expense_breakdown
        if breakdown is not None:
            salaries += breakdown.salaries_and_benefits
            premises += breakdown.premises
            other += breakdown.other

    covered_tam = coverage.summary.tam_covered
    return OperatingExpenseCheck(
        total_covered_opex=opex,
        salaries_and_benefits=salaries,
        premises=premises,
        other=other,
        total_covered_tam=covered_tam,
        tam_as_opex_pct=covered_tam / opex if opex > 0 else None,
        rrr_as_opex_pct={y.year: (y.potential_rrr / opex if opex > 0 else None) for y in by_year},
    )


def aggregate_rollups(
    index: AccountIndex,
    coverage: CoverageSelection,
    projections: dict[str, AccountProjection],
    allocation: CapacityAllocationResult,
    horizon: Horizon,
) -> RollupResult:
    frame = allocation_frame(allocation, projections)
    product_cols = [p.value for p in PRODUCTS]

    # Tier x quarter: reindex so every tier and quarter appears, zero-filled.
    grid = pd.MultiIndex.from_product([[t.value for t in TIER_ORDER], list(horizon.labels)], names=["tier", "quarter"])
    by_tq = (
        frame.groupby(["tier", "quarter"])[["potential", "captured", *product_cols]]
        .sum()
        .reindex(grid, fill_value=0.0)
    )
    by_tier_quarter = [
        TierQuarterRollup(
            tier=Tier(tier),
            quarter=quarter,
            potential=float(row["potential"]),
            captured=float(row["captured"]),
            by_product={Product(p): float(row[p]) for p in product_cols},
        )
        for (tier, quarter), row in by_tq.iterrows()
    ]

    by_tier_year = []
    for tier in TIER_ORDER:
        tier_frame = frame[frame["tier"] == tier.value]
        for year in horizon.fiscal_years:
            by_tier_year.append(TierYearRollup(tier=tier, **_year_rollup(tier_frame, year)))

    by_year = [YearRollup(**_year_rollup(frame, year)) for year in horizon.fiscal_years]

    potential = float(frame["potential"].sum())
    captured = float(frame["captured"].sum())
    total = HorizonTotal(potential=potential, captured=captured, capture_rate=_rate(captured, potential))

    by_q = frame.groupby("quarter")[product_cols].sum().reindex(list(horizon.labels), fill_value=0.0)
    quarterly_by_product = {
        label: {Product(p): float(row[p]) for p in product_cols}
        for label, row in by_q.iterrows()
    }

    logger.info(
        "Rollup: potential %.0f, captured %.0f (%.1f%%) over %d quarters",
        potential, captured, total.capture_rate * 100, len(horizon),
    )
    return RollupResult(
        by_tier_quarter=by_tier_quarter,
        by_tier_year=by_tier_year,
        by_year=by_year,
        total=total,
        quarterly_potential_by_product=quarterly_by_product,
        operating_expense=operating_expense_check(index, coverage, by_year),
    )
