"""
TAM engine: annual total addressable market per account.

Four products, each a closed-form function of the account's headcount or
revenue and the (override-resolved) product assumptions:

    developer seat      price_dev   * (fte * eligibility) * 12
    enterprise seat     price_ent   * (fte * adoption)    * 12
    per-employee agent  agents/emp  * fte * price_agent   * 12
    revenue share       annual_revenue * revenue_share * platform_share

Components are never rounded; the total is summed in fixed product order so
results are reproducible to the last bit.
"""

from __future__ import annotations

import logging

from tam.models import PRODUCTS, Account, Product, ProductAssumptions, Tier
from tam.report import AccountTam, DataQualityGap, RevenueSource

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12


def resolve_annual_revenue(account: Account) -> tuple[float, RevenueSource]:
    """
    Pick the annual revenue figure for the revenue-share product.

    Prefers the fiscal year-end (full-year cumulative) figure; falls back to
    the latest single quarter annualized. Never mixes the two.
    """
    if account.annual_revenue is not None and account.annual_revenue > 0:
        return account.annual_revenue, RevenueSource.FISCAL_YEAR_END
    if account.latest_quarter_revenue is not None and account.latest_quarter_revenue > 0:
        return account.latest_quarter_revenue * 4, RevenueSource.ANNUALIZED_QUARTER
    return 0.0, RevenueSource.MISSING


def product_components(fte: float, annual_revenue: float, products: ProductAssumptions) -> dict[Product, float]:
    dev = products.developer_seat
    ent = products.enterprise_seat
    agent = products.per_employee_agent
    share = products.revenue_share_agent

    developers = fte * dev.eligibility_rate.value
    enterprise_seats = fte * ent.adoption_rate.value

    return {
        Product.DEVELOPER_SEAT: dev.price_per_seat_month.value * developers * MONTHS_PER_YEAR,
        Product.ENTERPRISE_SEAT: ent.price_per_seat_month.value * enterprise_seats * MONTHS_PER_YEAR,
        Product.PER_EMPLOYEE_AGENT: (
            agent.agents_per_employee.value * fte * agent.price_per_agent_month.value * MONTHS_PER_YEAR
        ),
        Product.REVENUE_SHARE_AGENT: (
            annual_revenue * share.revenue_share_fraction.value * share.platform_share_fraction.value
        ),
    }


def find_data_gaps(account: Account, revenue_source: RevenueSource) -> DataQualityGap | None:
    missing: list[str] = []
    if account.total_assets is None:
        missing.append("total_assets")
    if account.fte is None:
        missing.append("fte")
    if revenue_source == RevenueSource.MISSING:
        missing.append("annual_revenue")
    if not missing:
        return None
    return DataQualityGap(
        account_id=account.id,
        missing_fields=missing,
        note="missing inputs contribute 0 to the dependent TAM components",
    )


def compute_account_tam(
    account: Account,
    products: ProductAssumptions,
    tier: Tier,
    has_overrides: bool = False,
) -> tuple[AccountTam, DataQualityGap | None]:
    """
    Compute one account's annual TAM.

    Args:
        account: Financial snapshot.
        products: Product assumptions with this account's overrides already applied.
        tier: The account's tier (derived by ``classify_tier``).
        has_overrides: Whether any account-level override exists, for display.

    Returns:
        (AccountTam, DataQualityGap or None). Missing inputs are reported, not raised.
    """
    fte = account.fte or 0.0
    annual_revenue, revenue_source = resolve_annual_revenue(account)
    components = product_components(fte, annual_revenue, products)

    total = 0.0
    for product in PRODUCTS:
        total += components[product]

    product_share = {p: (components[p] / total if total > 0 else None) for p in PRODUCTS}

    opex = account.annual_operating_expense
    tam_as_opex_pct = total / opex if opex else None

    gap = find_data_gaps(account, revenue_source)
    if gap is not None:
        logger.warning("Account %s missing %s", account.id, ", ".join(gap.missing_fields))

    return (
        AccountTam(
            account_id=account.id,
            tier=tier,
            components=components,
            total=total,
            annual_revenue=annual_revenue,
            revenue_source=revenue_source,
            product_share=product_share,
            tam_as_opex_pct=tam_as_opex_pct,
            has_overrides=has_overrides,
        ),
        gap,
    )
