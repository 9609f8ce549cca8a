"""Coverage selection: the top-N accounts by total assets are covered."""

from __future__ import annotations

import logging

from tam.index import AccountIndex
from tam.report import AccountProjection, CoverageSelection, CoverageSummary

logger = logging.getLogger(__name__)


def rank_by_assets(index: AccountIndex) -> list[str]:
    """Account ids by total assets descending, id ascending on ties."""
    return sorted(
        index.ids,
        key=lambda account_id: (-(index.accounts[account_id].total_assets or 0.0), account_id),
    )


def select_coverage(
    index: AccountIndex,
    target_count: int,
    projections: dict[str, AccountProjection] | None = None,
) -> CoverageSelection:
    if target_count < 0:
        raise ValueError(f"Coverage count must be >= 0, got {target_count}")

    ranked = rank_by_assets(index)
    covered = ranked[:target_count]
    uncovered = ranked[target_count:]
    projections = projections or {}

    def _sum_tam(ids: list[str]) -> float:
        return sum(index.tam_of(i) for i in ids)

    def _sum_assets(ids: list[str]) -> float:
        return sum(index.accounts[i].total_assets or 0.0 for i in ids)

    def _sum_three_year(ids: list[str]) -> float:
        return sum(projections[i].three_year_achievable for i in ids if i in projections)

    tam_covered = _sum_tam(covered)
    tam_uncovered = _sum_tam(uncovered)
    total_tam = tam_covered + tam_uncovered

    summary = CoverageSummary(
        target_count=target_count,
        covered_count=len(covered),
        uncovered_count=len(uncovered),
        total_count=len(ranked),
        tam_covered=tam_covered,
        tam_uncovered=tam_uncovered,
        total_tam=total_tam,
        coverage_pct=tam_covered / total_tam if total_tam > 0 else None,
        assets_covered=_sum_assets(covered),
        assets_uncovered=_sum_assets(uncovered),
        three_year_covered=_sum_three_year(covered),
        three_year_uncovered=_sum_three_year(uncovered),
    )
    if target_count > len(ranked):
        logger.info("Coverage target %d exceeds %d accounts; all accounts covered", target_count, len(ranked))

    return CoverageSelection(summary=summary, covered_ids=covered, uncovered_ids=uncovered)
