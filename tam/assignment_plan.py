"""
Auto-assignment plan: which covered accounts each AE would carry as of a quarter.

Per tier, every AE on staff (tier-assigned members plus tier hires to date)
takes ``accounts_per_ae[tier]`` accounts, highest TAM first. Accounts beyond
the tier's total carrying capacity are reported as uncovered.
"""

from __future__ import annotations

import logging

from tam import defaults
from tam.capacity import headcount_as_of
from tam.index import AccountIndex
from tam.models import TIER_ORDER, Role, Roster
from tam.quarters import Quarter
from tam.report import AeAssignment, AssignmentPlan, CoverageSelection, TierAssignmentPlan

logger = logging.getLogger(__name__)


def build_assignment_plan(
    index: AccountIndex,
    coverage: CoverageSelection,
    roster: Roster,
    quarter: Quarter | str,
    ramp_quarters: int = defaults.DEFAULT_RAMP_QUARTERS,
    ramp_curve: str = defaults.DEFAULT_RAMP_CURVE,
) -> AssignmentPlan:
    if isinstance(quarter, str):
        quarter = Quarter.parse(quarter)
    headcount = headcount_as_of(roster, quarter, ramp_quarters, ramp_curve)

    by_tier: dict = {}
    for tier in TIER_ORDER:
        ranked = sorted(
            (i for i in coverage.covered_ids if index.tier_of(i) == tier),
            key=lambda i: (-index.tam_of(i), i),
        )
        existing = sorted(
            m.id for m in roster.members
            if m.role == Role.AE and m.assigned_tier == tier and m.on_staff(quarter)
        )
        tier_aes = headcount.by_tier[tier].total_aes
        per_ae = roster.accounts_per_ae_for(tier)
        capacity = tier_aes * per_ae

        ae_assignments = []
        for n in range(tier_aes):
            account_ids = ranked[n * per_ae:(n + 1) * per_ae]
            member_id = existing[n] if n < len(existing) else None
            ae_assignments.append(AeAssignment(
                ae_number=n + 1,
                member_id=member_id,
                is_existing_member=member_id is not None,
                account_ids=account_ids,
                total_tam=sum(index.tam_of(i) for i in account_ids),
            ))

        covered, uncovered = ranked[:capacity], ranked[capacity:]
        by_tier[tier] = TierAssignmentPlan(
            tier=tier,
            total_aes=tier_aes,
            accounts_per_ae=per_ae,
            total_accounts=len(ranked),
            covered_account_count=len(covered),
            uncovered_account_count=len(uncovered),
            covered_tam=sum(index.tam_of(i) for i in covered),
            uncovered_tam=sum(index.tam_of(i) for i in uncovered),
            ae_assignments=ae_assignments,
            uncovered_account_ids=uncovered,
        )

    logger.info(
        "Assignment plan %s: %d of %d covered accounts carried",
        quarter.label,
        sum(p.covered_account_count for p in by_tier.values()),
        len(coverage.covered_ids),
    )
    return AssignmentPlan(quarter=quarter.label, headcount=headcount, by_tier=by_tier)
