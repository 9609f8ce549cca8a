"""
Capacity allocation: who covers which covered account, quarter by quarter.

Priority within each quarter:
    1. Assigned: covered accounts with an on-staff member explicitly assigned.
       Each assigned member consumes their ramp-weighted productivity.
       Coverage ratio = min(1, assigned AEs * tam_per_ae[tier] / account TAM).
    2. Dedicated: remaining covered accounts in greedy order get full coverage
       while their rounded AE and SE shares fit in what is left.
    3. Reactive: everything else captures ``reactive_capture_rate`` of potential.
"""

from __future__ import annotations

import logging
from typing import Callable

from tam.capacity import build_capacity_timeline, get_ramp_curve, member_productivity
from tam.index import AccountIndex
from tam.models import Role, Roster, TeamMember, TeamSizingAssumptions
from tam.quarters import Horizon
from tam.report import (
    AccountProjection,
    AccountQuarterCoverage,
    AuditWarning,
    CapacityAllocationResult,
    CapacityTimeline,
    CoverageSelection,
    CoverageType,
    QuarterAllocation,
    TeamSizingResult,
)

logger = logging.getLogger(__name__)

# Absorbs float drift when remaining capacity is compared with a share.
_CAPACITY_TOLERANCE = 1e-9

GreedyKey = Callable[[str, AccountIndex, dict[str, AccountProjection]], tuple]


# ---------------------------------------------------------------------------
# Greedy orderings
# ---------------------------------------------------------------------------

def _tam_desc(account_id: str, index: AccountIndex, projections: dict[str, AccountProjection]) -> tuple:
    return (-index.tam_of(account_id), account_id)


def _assets_desc(account_id: str, index: AccountIndex, projections: dict[str, AccountProjection]) -> tuple:
    return (-(index.accounts[account_id].total_assets or 0.0), account_id)


def _three_year_desc(account_id: str, index: AccountIndex, projections: dict[str, AccountProjection]) -> tuple:
    projection = projections.get(account_id)
    return (-(projection.three_year_achievable if projection else 0.0), account_id)


GREEDY_ORDERS: dict[str, GreedyKey] = {
    "tam_desc": _tam_desc,
    "assets_desc": _assets_desc,
    "three_year_desc": _three_year_desc,
}


def get_greedy_order(key: str) -> GreedyKey:
    order = GREEDY_ORDERS.get(key)
    if order is None:
        raise ValueError(
            f"Unknown greedy order: {key!r}. "
            f"Available: {list(GREEDY_ORDERS.keys())}"
        )
    return order


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------

def collect_assignments(
    roster: Roster,
    index: AccountIndex,
    covered_ids: list[str],
) -> tuple[dict[str, list[TeamMember]], list[AuditWarning]]:
    """
    Map covered account id -> active members assigned to it.

    Assignments naming an unknown or uncovered account are dropped with a
    warning; they never consume capacity.
    """
    covered = set(covered_ids)
    assignments: dict[str, list[TeamMember]] = {}
    warnings: list[AuditWarning] = []

    for member in roster.members:
        if not member.active:
            continue
        for account_id in member.account_assignments:
            if account_id not in index:
                warnings.append(AuditWarning(
                    code="assignment_unknown_account",
                    message=f"{member.id} is assigned to unknown account {account_id}",
                    account_id=account_id,
                ))
            elif account_id not in covered:
                warnings.append(AuditWarning(
                    code="assignment_outside_coverage",
                    message=f"{member.id} is assigned to {account_id}, which is not in the covered set",
                    account_id=account_id,
                ))
            else:
                assignments.setdefault(account_id, []).append(member)

    for w in warnings:
        logger.warning(w.message)
    return assignments, warnings


def coverage_ratio(assigned_aes: int, tam_per_ae: float, account_tam: float) -> float:
    """Fraction of potential an assigned team captures; 0 when the account has no TAM."""
    if account_tam <= 0:
        return 0.0
    return min(1.0, assigned_aes * tam_per_ae / account_tam)


# ---------------------------------------------------------------------------
# Allocation
# ---------------------------------------------------------------------------

def allocate_capacity(
    index: AccountIndex,
    coverage: CoverageSelection,
    team: TeamSizingResult,
    projections: dict[str, AccountProjection],
    roster: Roster,
    assumptions: TeamSizingAssumptions,
    horizon: Horizon,
    timeline: CapacityTimeline | None = None,
) -> CapacityAllocationResult:
    """
    Allocate effective capacity across the covered accounts for every quarter.

    Args:
        index: Account index (tier and TAM per account).
        coverage: Covered / uncovered split.
        team: Team sizing result; the rounded per-account shares drive greedy fit.
        projections: Quarterly potential revenue per account.
        roster: Members, assignments and hiring plan.
        assumptions: Team sizing policy (reactive rate, ramp, greedy order).
        horizon: Planning horizon.
        timeline: Precomputed capacity timeline; built from the roster when omitted.

    Returns:
        CapacityAllocationResult with per-quarter totals, per-account coverage
        and audit warnings. Nothing here raises on data problems.
    """
    ramp_quarters = int(assumptions.ramp_quarters.value)
    if timeline is None:
        timeline = build_capacity_timeline(roster, horizon, ramp_quarters, assumptions.ramp_curve.value)
    greedy_key = get_greedy_order(assumptions.greedy_order.value)
    curve = get_ramp_curve(timeline.ramp_curve)
    reactive_rate = assumptions.reactive_capture_rate.value

    assignments, warnings = collect_assignments(roster, index, coverage.covered_ids)
    unassigned_order = sorted(
        (i for i in coverage.covered_ids if i not in assignments),
        key=lambda i: greedy_key(i, index, projections),
    )

    quarters: list[QuarterAllocation] = []
    for quarter in horizon:
        label = quarter.label
        cap = timeline.at(label)

        on_staff = {
            account_id: [m for m in members if m.on_staff(quarter)]
            for account_id, members in assignments.items()
        }
        on_staff = {k: v for k, v in on_staff.items() if v}
        # Deferred assignments fall back to greedy until the member starts.
        pending = [i for i in assignments if i not in on_staff]
        greedy_ids = sorted(unassigned_order + pending, key=lambda i: greedy_key(i, index, projections))

        busy = {m.id: m for members in on_staff.values() for m in members}
        assigned_aes = sum(1 for m in busy.values() if m.role == Role.AE)
        assigned_ses = sum(1 for m in busy.values() if m.role == Role.SE)
        assigned_ae_capacity = sum(
            member_productivity(m, quarter, timeline.ramp_quarters, curve)
            for m in busy.values() if m.role == Role.AE
        )
        assigned_se_capacity = sum(
            member_productivity(m, quarter, timeline.ramp_quarters, curve)
            for m in busy.values() if m.role == Role.SE
        )

        remaining_aes = cap.effective_aes - assigned_ae_capacity
        remaining_ses = cap.effective_ses - assigned_se_capacity
        if remaining_aes < -_CAPACITY_TOLERANCE or remaining_ses < -_CAPACITY_TOLERANCE:
            warning = AuditWarning(
                code="capacity_clamped",
                message=(
                    f"{label}: assigned reps ({assigned_ae_capacity:.2f} AE / {assigned_se_capacity:.2f} SE "
                    f"effective) exceed capacity ({cap.effective_aes:.2f} AE / {cap.effective_ses:.2f} SE); "
                    "remaining clamped to 0"
                ),
                quarter=label,
            )
            logger.warning(warning.message)
            warnings.append(warning)
        remaining_aes = max(0.0, remaining_aes)
        remaining_ses = max(0.0, remaining_ses)
        available_aes, available_ses = remaining_aes, remaining_ses

        rows: list[AccountQuarterCoverage] = []
        assigned_revenue = dedicated_revenue = reactive_revenue = 0.0

        for account_id in coverage.covered_ids:
            members = on_staff.get(account_id)
            if not members:
                continue
            tier = index.tier_of(account_id)
            potential = projections[account_id].quarter(label).total
            n_aes = sum(1 for m in members if m.role == Role.AE)
            n_ses = len(members) - n_aes
            ratio = coverage_ratio(n_aes, assumptions.tam_per_ae_for(tier), index.tam_of(account_id))
            captured = potential * ratio
            assigned_revenue += captured
            rows.append(AccountQuarterCoverage(
                account_id=account_id,
                tier=tier,
                coverage_type=CoverageType.ASSIGNED,
                coverage_ratio=ratio,
                potential=potential,
                captured=captured,
                ae_allocation=float(n_aes),
                se_allocation=float(n_ses),
                assigned_member_ids=[m.id for m in members],
            ))

        for account_id in greedy_ids:
            tier = index.tier_of(account_id)
            potential = projections[account_id].quarter(label).total
            share = team.by_account.get(account_id)
            ae_need = share.ae_share if share else 0.0
            se_need = share.se_share if share else 0.0

            fits = (
                remaining_aes + _CAPACITY_TOLERANCE >= ae_need
                and remaining_ses + _CAPACITY_TOLERANCE >= se_need
            )
            if fits:
                remaining_aes = max(0.0, remaining_aes - ae_need)
                remaining_ses = max(0.0, remaining_ses - se_need)
                dedicated_revenue += potential
                rows.append(AccountQuarterCoverage(
                    account_id=account_id,
                    tier=tier,
                    coverage_type=CoverageType.DEDICATED,
                    coverage_ratio=1.0,
                    potential=potential,
                    captured=potential,
                    ae_allocation=ae_need,
                    se_allocation=se_need,
                ))
            else:
                captured = potential * reactive_rate
                reactive_revenue += captured
                rows.append(AccountQuarterCoverage(
                    account_id=account_id,
                    tier=tier,
                    coverage_type=CoverageType.REACTIVE,
                    coverage_ratio=reactive_rate,
                    potential=potential,
                    captured=captured,
                ))

        full_potential = sum(r.potential for r in rows)
        captured_revenue = assigned_revenue + dedicated_revenue + reactive_revenue

        quarters.append(QuarterAllocation(
            quarter=label,
            total_aes=cap.total_aes,
            total_ses=cap.total_ses,
            effective_aes=cap.effective_aes,
            effective_ses=cap.effective_ses,
            assigned_aes=assigned_aes,
            assigned_ses=assigned_ses,
            assigned_ae_capacity=assigned_ae_capacity,
            assigned_se_capacity=assigned_se_capacity,
            greedy_aes_used=available_aes - remaining_aes,
            greedy_ses_used=available_ses - remaining_ses,
            remaining_aes=remaining_aes,
            remaining_ses=remaining_ses,
            assigned_count=sum(1 for r in rows if r.coverage_type == CoverageType.ASSIGNED),
            dedicated_count=sum(1 for r in rows if r.coverage_type == CoverageType.DEDICATED),
            reactive_count=sum(1 for r in rows if r.coverage_type == CoverageType.REACTIVE),
            full_potential=full_potential,
            assigned_revenue=assigned_revenue,
            dedicated_revenue=dedicated_revenue,
            reactive_revenue=reactive_revenue,
            captured_revenue=captured_revenue,
            capture_rate=captured_revenue / full_potential if full_potential > 0 else 0.0,
            accounts=rows,
        ))

    logger.info(
        "Allocated %d covered accounts over %d quarters (%d explicitly assigned)",
        len(coverage.covered_ids), len(quarters), len(assignments),
    )
    return CapacityAllocationResult(
        timeline=timeline,
        quarters=quarters,
        account_assignments={k: [m.id for m in v] for k, v in assignments.items()},
        reactive_capture_rate=reactive_rate,
        warnings=warnings,
    )
