"""Single indexing pass over the account snapshot, reused by every downstream stage."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from tam.engine import compute_account_tam
from tam.models import TIER_ORDER, Account, AssumptionSet, Tier
from tam.report import AccountTam, DataQualityGap
from tam.tiers import classify_tier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountIndex:
    """Tier and TAM per account, plus account ids grouped by tier (input order kept)."""

    accounts: dict[str, Account] = field(default_factory=dict)
    tiers: dict[str, Tier] = field(default_factory=dict)
    tams: dict[str, AccountTam] = field(default_factory=dict)
    by_tier: dict[Tier, tuple[str, ...]] = field(default_factory=dict)
    gaps: tuple[DataQualityGap, ...] = ()

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(self.accounts)

    def tier_of(self, account_id: str) -> Tier:
        return self.tiers[account_id]

    def tam_of(self, account_id: str) -> float:
        return self.tams[account_id].total

    def __contains__(self, account_id: object) -> bool:
        return account_id in self.accounts

    def __len__(self) -> int:
        return len(self.accounts)


def build_account_index(accounts: tuple[Account, ...] | list[Account], assumptions: AssumptionSet) -> AccountIndex:
    """Classify and price every account once."""
    thresholds = assumptions.tier_thresholds
    tiers: dict[str, Tier] = {}
    tams: dict[str, AccountTam] = {}
    grouped: dict[Tier, list[str]] = {tier: [] for tier in TIER_ORDER}
    gaps: list[DataQualityGap] = []

    for account in accounts:
        tier = classify_tier(account.total_assets, thresholds)
        tam, gap = compute_account_tam(
            account,
            assumptions.products_for(account.id),
            tier,
            has_overrides=assumptions.has_overrides(account.id),
        )
        tiers[account.id] = tier
        tams[account.id] = tam
        grouped[tier].append(account.id)
        if gap is not None:
            gaps.append(gap)

    logger.info(
        "Indexed %d accounts (%s)",
        len(tiers),
        ", ".join(f"{t.value}={len(ids)}" for t, ids in grouped.items()),
    )
    return AccountIndex(
        accounts={a.id: a for a in accounts},
        tiers=tiers,
        tams=tams,
        by_tier={t: tuple(ids) for t, ids in grouped.items()},
        gaps=tuple(gaps),
    )
