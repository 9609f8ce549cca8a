"""
Time-phased sales capacity: raw and ramp-adjusted headcount per quarter.

A rep hired in quarter H contributes ``ramp(q - H, ramp_quarters)`` of a full
rep in quarter q. On-staff members (no hire quarter) are fully ramped from the
start of the horizon. Ramp curves are pluggable; the registry below maps a
config key to a curve function.
"""

from __future__ import annotations

import logging
from typing import Callable

from tam import defaults
from tam.models import TIER_ORDER, Role, Roster, TeamMember
from tam.quarters import Horizon, Quarter
from tam.report import CapacityTimeline, QuarterCapacity, TierCapacity
from tam.rounding import round_half_up

logger = logging.getLogger(__name__)

RampCurve = Callable[[int, int], float]


# ---------------------------------------------------------------------------
# Ramp curves
# ---------------------------------------------------------------------------

def linear_ramp(quarters_since_hire: int, ramp_quarters: int) -> float:
    """0 in the hire quarter, then ``q / ramp_quarters``, capped at 1."""
    if quarters_since_hire < 0:
        return 0.0
    if ramp_quarters <= 0 or quarters_since_hire >= ramp_quarters:
        return 1.0
    return quarters_since_hire / ramp_quarters


def step_ramp(quarters_since_hire: int, ramp_quarters: int) -> float:
    """No capacity until fully ramped, then a full rep."""
    if quarters_since_hire < 0:
        return 0.0
    return 1.0 if quarters_since_hire >= ramp_quarters else 0.0


RAMP_CURVES: dict[str, RampCurve] = {
    "linear": linear_ramp,
    "step": step_ramp,
}


def get_ramp_curve(key: str) -> RampCurve:
    curve = RAMP_CURVES.get(key)
    if curve is None:
        raise ValueError(
            f"Unknown ramp curve: {key!r}. "
            f"Available: {list(RAMP_CURVES.keys())}"
        )
    return curve


# ---------------------------------------------------------------------------
# Timeline
# ---------------------------------------------------------------------------

def _utilization(effective: float, total: int) -> float | None:
    return round_half_up(effective / total, 2) if total > 0 else None


def member_productivity(
    member: TeamMember,
    quarter: Quarter,
    ramp_quarters: int = defaults.DEFAULT_RAMP_QUARTERS,
    curve: RampCurve = linear_ramp,
) -> float:
    """Fraction of a full rep ``member`` contributes in ``quarter``; 0 when not on staff."""
    if not member.on_staff(quarter):
        return 0.0
    start = member.start
    return 1.0 if start is None else curve(quarter.quarters_since(start), ramp_quarters)


def quarter_capacity(
    roster: Roster,
    quarter: Quarter,
    ramp_quarters: int = defaults.DEFAULT_RAMP_QUARTERS,
    curve: RampCurve = linear_ramp,
) -> QuarterCapacity:
    """Raw and effective headcount for one quarter, with a per-tier breakdown."""
    tier_totals = {
        tier: {"total_aes": 0, "total_ses": 0, "effective_aes": 0.0, "effective_ses": 0.0}
        for tier in TIER_ORDER
    }
    total_aes = total_ses = 0
    new_aes = new_ses = 0
    effective_aes = effective_ses = 0.0

    for member in roster.members:
        if not member.on_staff(quarter):
            continue
        productivity = member_productivity(member, quarter, ramp_quarters, curve)
        is_new = member.start == quarter
        tier_row = tier_totals.get(member.assigned_tier) if member.assigned_tier else None

        if member.role == Role.AE:
            total_aes += 1
            effective_aes += productivity
            new_aes += int(is_new)
            if tier_row is not None:
                tier_row["total_aes"] += 1
                tier_row["effective_aes"] += productivity
        else:
            total_ses += 1
            effective_ses += productivity
            new_ses += int(is_new)
            if tier_row is not None:
                tier_row["total_ses"] += 1
                tier_row["effective_ses"] += productivity

    for entry in roster.hiring_plan:
        start = Quarter.parse(entry.quarter)
        if start > quarter:
            continue
        productivity = curve(quarter.quarters_since(start), ramp_quarters)
        for tier, count in entry.by_tier.items():
            total_aes += count.aes
            total_ses += count.ses
            effective_aes += count.aes * productivity
            effective_ses += count.ses * productivity
            row = tier_totals[tier]
            row["total_aes"] += count.aes
            row["total_ses"] += count.ses
            row["effective_aes"] += count.aes * productivity
            row["effective_ses"] += count.ses * productivity
            if start == quarter:
                new_aes += count.aes
                new_ses += count.ses

    return QuarterCapacity(
        quarter=quarter.label,
        total_aes=total_aes,
        total_ses=total_ses,
        total_headcount=total_aes + total_ses,
        effective_aes=effective_aes,
        effective_ses=effective_ses,
        effective_headcount=effective_aes + effective_ses,
        new_hires_ae=new_aes,
        new_hires_se=new_ses,
        ae_utilization=_utilization(effective_aes, total_aes),
        se_utilization=_utilization(effective_ses, total_ses),
        by_tier={tier: TierCapacity(**row) for tier, row in tier_totals.items()},
    )


def build_capacity_timeline(
    roster: Roster,
    horizon: Horizon,
    ramp_quarters: int = defaults.DEFAULT_RAMP_QUARTERS,
    ramp_curve: str = defaults.DEFAULT_RAMP_CURVE,
) -> CapacityTimeline:
    curve = get_ramp_curve(ramp_curve)
    quarters = [quarter_capacity(roster, q, ramp_quarters, curve) for q in horizon]
    last = quarters[-1]
    logger.info(
        "Capacity timeline (%s ramp, %d quarters): %s ends at %d AEs / %d SEs",
        ramp_curve, ramp_quarters, last.quarter, last.total_aes, last.total_ses,
    )
    return CapacityTimeline(ramp_quarters=ramp_quarters, ramp_curve=ramp_curve, quarters=quarters)


def headcount_as_of(
    roster: Roster,
    quarter: Quarter | str,
    ramp_quarters: int = defaults.DEFAULT_RAMP_QUARTERS,
    ramp_curve: str = defaults.DEFAULT_RAMP_CURVE,
) -> QuarterCapacity:
    """Headcount (raw and effective, by tier) on staff as of ``quarter``."""
    if isinstance(quarter, str):
        quarter = Quarter.parse(quarter)
    return quarter_capacity(roster, quarter, ramp_quarters, get_ramp_curve(ramp_curve))
