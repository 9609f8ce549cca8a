"""
Team sizing: AE/SE requirement per covered account, rolled up by tier.

Per account:
    ae_raw = account TAM / tam_per_ae[tier]
    se_raw = ae_raw * se_per_ae[tier]

Both are rounded with ``aggressive_round`` and the tier totals are the plain
sum of the rounded shares, never re-rounded.
"""

from __future__ import annotations

import logging

from tam.index import AccountIndex
from tam.models import TIER_ORDER, ProductAssumptions, TeamSizingAssumptions, Tier
from tam.report import (
    AccountProjection,
    AccountTeamShare,
    TeamSizingResult,
    TeamTotals,
    TierTeamSizing,
    WorksheetInputs,
)
from tam.rounding import aggressive_round, round_half_up

logger = logging.getLogger(__name__)


def size_account(
    account_id: str,
    tier: Tier,
    tam: float,
    assumptions: TeamSizingAssumptions,
) -> AccountTeamShare:
    ae_raw = tam / assumptions.tam_per_ae_for(tier)
    se_raw = ae_raw * assumptions.se_per_ae_for(tier)
    threshold = assumptions.rounding_up_threshold.value
    return AccountTeamShare(
        account_id=account_id,
        tier=tier,
        tam=tam,
        ae_raw=ae_raw,
        se_raw=se_raw,
        ae_share=aggressive_round(ae_raw, threshold),
        se_share=aggressive_round(se_raw, threshold),
    )


def build_worksheet(
    covered_ids: list[str],
    index: AccountIndex,
    products: ProductAssumptions,
) -> WorksheetInputs:
    """Aggregate headcount figures behind the covered-portfolio TAM worksheet."""
    total_fte = 0.0
    total_net_income = 0.0
    for account_id in covered_ids:
        account = index.accounts[account_id]
        total_fte += account.fte or 0.0
        total_net_income += account.net_income or 0.0

    developers = round_half_up(total_fte * products.developer_seat.eligibility_rate.value, 0)
    enterprise_seats = round_half_up(total_fte * products.enterprise_seat.adoption_rate.value, 0)
    agents = round_half_up(total_fte * products.per_employee_agent.agents_per_employee.value, 0)
    return WorksheetInputs(
        total_fte=total_fte,
        total_net_income=total_net_income,
        developers=int(developers),
        enterprise_seats=int(enterprise_seats),
        total_agents=int(agents),
    )


def size_team(
    covered_ids: list[str],
    index: AccountIndex,
    assumptions: TeamSizingAssumptions,
    products: ProductAssumptions,
    projections: dict[str, AccountProjection] | None = None,
) -> TeamSizingResult:
    """
    Size the AE/SE team for the covered accounts.

    Args:
        covered_ids: Account ids selected for coverage.
        index: Account index with tier and TAM per account.
        assumptions: Team sizing policy (tam/se per AE, rounding threshold).
        products: Global product assumptions, for the worksheet aggregates.
        projections: Optional revenue projections, for tier three-year totals.
    """
    projections = projections or {}
    by_account: dict[str, AccountTeamShare] = {}
    tier_totals = {
        tier: {
            "account_count": 0,
            "tam": 0.0,
            "total_assets": 0.0,
            "three_year_achievable": 0.0,
            "aes_needed": 0.0,
            "ses_needed": 0.0,
        }
        for tier in TIER_ORDER
    }

    for account_id in covered_ids:
        tier = index.tier_of(account_id)
        share = size_account(account_id, tier, index.tam_of(account_id), assumptions)
        by_account[account_id] = share

        row = tier_totals[tier]
        row["account_count"] += 1
        row["tam"] += share.tam
        row["total_assets"] += index.accounts[account_id].total_assets or 0.0
        row["aes_needed"] += share.ae_share
        row["ses_needed"] += share.se_share
        projection = projections.get(account_id)
        if projection is not None:
            row["three_year_achievable"] += projection.three_year_achievable

    by_tier = {
        tier: TierTeamSizing(
            tier=tier,
            tam_per_ae=assumptions.tam_per_ae_for(tier),
            se_per_ae=assumptions.se_per_ae_for(tier),
            total_headcount=row["aes_needed"] + row["ses_needed"],
            **row,
        )
        for tier, row in tier_totals.items()
    }
    aes = 0.0
    ses = 0.0
    for sizing in by_tier.values():
        aes += sizing.aes_needed
        ses += sizing.ses_needed

    totals = TeamTotals(
        aes=aes,
        ses=ses,
        total=aes + ses,
        se_to_ae_ratio=round_half_up(ses / aes, 2) if aes > 0 else 0.0,
    )
    logger.info("Team sizing: %.2f AEs, %.2f SEs across %d covered accounts", aes, ses, len(covered_ids))

    return TeamSizingResult(
        by_account=by_account,
        by_tier=by_tier,
        totals=totals,
        worksheet=build_worksheet(covered_ids, index, products),
    )
