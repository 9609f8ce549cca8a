"""Asset-size tier classification."""

from __future__ import annotations

from tam.models import Tier, TierThresholds


def classify_tier(total_assets: float | None, thresholds: TierThresholds | None = None) -> Tier:
    """
    Map total assets (actual currency units) to a tier.

    The first threshold, largest first, that the asset value meets or exceeds
    wins; anything below the Commercial threshold is SmallBusiness. Threshold
    ordering is validated when ``TierThresholds`` is constructed, so this
    function has no error path.
    """
    thresholds = thresholds or TierThresholds()
    assets = total_assets or 0.0
    for tier, floor in thresholds.ordered():
        if assets >= floor:
            return tier
    return Tier.SMALL_BUSINESS
