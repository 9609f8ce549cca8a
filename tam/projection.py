"""
Revenue projection: TAM x penetration, quarter by quarter.

    quarterly revenue   = sum over products of (annual TAM / 4) * target penetration
    three-year achievable = sum of the horizon's 12 quarterly revenues
    run-rate revenue    = Q4 quarterly revenue * 4, per fiscal year

Run-rate is a Q4 snapshot annualized, not a sum of quarters; the two are kept
under distinct names everywhere downstream.
"""

from __future__ import annotations

import logging

from tam.defaults import QUARTERS_PER_YEAR
from tam.index import AccountIndex
from tam.models import PRODUCTS, AssumptionSet
from tam.penetration import PenetrationScheduleProvider
from tam.quarters import Horizon
from tam.report import AccountProjection, AccountTam, ProductQuarterRevenue, QuarterRevenue

logger = logging.getLogger(__name__)


def project_account(
    tam: AccountTam,
    provider: PenetrationScheduleProvider,
    horizon: Horizon,
) -> AccountProjection:
    quarterly_tam = tam.total / QUARTERS_PER_YEAR
    quarters: list[QuarterRevenue] = []

    for quarter in horizon:
        by_product: dict = {}
        total = 0.0
        for product in PRODUCTS:
            resolved = provider.resolve(tam.account_id, tam.tier, product, quarter)
            revenue = (tam.components[product] / QUARTERS_PER_YEAR) * resolved.target
            by_product[product] = ProductQuarterRevenue(
                revenue=revenue,
                penetration=resolved.target,
                provenance=resolved.provenance,
            )
            total += revenue
        quarters.append(QuarterRevenue(
            quarter=quarter.label,
            by_product=by_product,
            total=total,
            blended_penetration=total / quarterly_tam if quarterly_tam > 0 else None,
        ))

    three_year = 0.0
    for q in quarters:
        three_year += q.total

    by_label = {q.quarter: q for q in quarters}
    run_rate = {
        year: by_label[horizon.year_end(year).label].total * QUARTERS_PER_YEAR
        for year in horizon.fiscal_years
    }

    return AccountProjection(
        account_id=tam.account_id,
        tier=tam.tier,
        quarters=quarters,
        three_year_achievable=three_year,
        run_rate_by_year=run_rate,
    )


def run_rate_revenue(projection: AccountProjection, horizon: Horizon, year: int) -> float:
    """Q4 quarterly revenue of ``year`` annualized."""
    return projection.quarter(horizon.year_end(year).label).total * QUARTERS_PER_YEAR


def project_revenue(index: AccountIndex, assumptions: AssumptionSet) -> dict[str, AccountProjection]:
    """Projections for every indexed account, keyed by account id."""
    provider = PenetrationScheduleProvider(assumptions.penetration)
    horizon = assumptions.horizon
    projections = {
        account_id: project_account(tam, provider, horizon)
        for account_id, tam in index.tams.items()
    }
    logger.info("Projected %d accounts over %s..%s", len(projections), horizon.labels[0], horizon.labels[-1])
    return projections
