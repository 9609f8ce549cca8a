"""
Penetration schedules: time-phased adoption curves applied to TAM.

Resolution for (account, tier, product, quarter) walks three levels:

    account override for that exact quarter
      -> tier (segment) default
      -> global default
      -> zero, tagged ``unset``

Overrides may be sparse: an account can override a single product-quarter
and inherit everything else.
"""

from __future__ import annotations

import logging

from tam import defaults
from tam.models import (
    PRODUCTS,
    TIER_ORDER,
    PenetrationPoint,
    PenetrationSchedule,
    Product,
    ProductCurves,
    Provenance,
    Tier,
)
from tam.quarters import Horizon, Quarter
from tam.report import ResolvedPenetration

logger = logging.getLogger(__name__)


def default_segment_schedule(
    start_year: int = defaults.DEFAULT_HORIZON_START_YEAR,
) -> dict[Tier, ProductCurves]:
    """
    Build the documented default curves for every tier.

    Each tier's target is the base rate for the quarter scaled by the tier
    multiplier and capped at 1.0. Points are tagged ``default`` because no
    assumption file supplied them.
    """
    horizon = Horizon(start_year=start_year)
    schedule: dict[Tier, ProductCurves] = {}
    for tier in TIER_ORDER:
        multiplier = defaults.SEGMENT_PENETRATION_MULTIPLIERS[tier.value]
        curves: ProductCurves = {}
        for product in PRODUCTS:
            base = defaults.BASE_PENETRATION_RATES[product.value]
            curves[product] = {
                label: PenetrationPoint(
                    target=min(rate * multiplier, 1.0),
                    provenance=Provenance.DEFAULT,
                )
                for label, rate in zip(horizon.labels, base)
            }
        schedule[tier] = curves
    return schedule


class PenetrationScheduleProvider:
    """Resolves penetration targets against a ``PenetrationSchedule``."""

    def __init__(self, schedule: PenetrationSchedule) -> None:
        self._schedule = schedule

    @property
    def schedule(self) -> PenetrationSchedule:
        return self._schedule

    def resolve(
        self,
        account_id: str,
        tier: Tier,
        product: Product,
        quarter: Quarter | str,
    ) -> ResolvedPenetration:
        label = quarter.label if isinstance(quarter, Quarter) else quarter

        override = _lookup(self._schedule.account_overrides.get(account_id), product, label)
        if override is not None:
            return _resolved(override, Provenance.ACCOUNT_OVERRIDE)

        segment = _lookup(self._schedule.tier_defaults.get(tier), product, label)
        if segment is not None:
            return _resolved(segment, Provenance.SEGMENT_DEFAULT)

        fallback = _lookup(self._schedule.global_defaults, product, label)
        if fallback is not None:
            return _resolved(fallback, Provenance.GLOBAL_DEFAULT)

        return ResolvedPenetration(target=0.0, provenance=Provenance.UNSET)

    def curve(self, account_id: str, tier: Tier, product: Product, horizon: Horizon) -> list[ResolvedPenetration]:
        """Resolved targets for every quarter of ``horizon``, in order."""
        return [self.resolve(account_id, tier, product, q) for q in horizon]


def _lookup(curves: ProductCurves | None, product: Product, label: str) -> PenetrationPoint | None:
    if not curves:
        return None
    return curves.get(product, {}).get(label)


def _resolved(point: PenetrationPoint, level: Provenance) -> ResolvedPenetration:
    return ResolvedPenetration(
        target=point.target,
        actual=point.actual,
        provenance=level,
        source=point.provenance,
    )
