"""
End-to-end pipeline: PlanningInputs -> TamReport.

Each stage is a pure function that takes the previous stage's typed output,
so the ordering (index before projection, sizing before allocation) is
enforced by the signatures rather than by call order:

    index_accounts -> project -> select -> size -> allocate -> build_report
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tam.allocator import allocate_capacity
from tam.assignment_plan import build_assignment_plan
from tam.coverage import select_coverage
from tam.index import AccountIndex, build_account_index
from tam.models import PlanningInputs
from tam.projection import project_revenue
from tam.quarters import Quarter
from tam.report import (
    AccountDetail,
    AccountProjection,
    AssignmentPlan,
    CapacityAllocationResult,
    CoverageSelection,
    TamReport,
    TeamSizingResult,
)
from tam.rollup import aggregate_rollups
from tam.team_sizing import size_team

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Stage outputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IndexedAccounts:
    inputs: PlanningInputs
    index: AccountIndex


@dataclass(frozen=True)
class ProjectedAccounts:
    indexed: IndexedAccounts
    projections: dict[str, AccountProjection]


@dataclass(frozen=True)
class CoveredAccounts:
    projected: ProjectedAccounts
    coverage: CoverageSelection


@dataclass(frozen=True)
class SizedTeam:
    covered: CoveredAccounts
    team: TeamSizingResult


@dataclass(frozen=True)
class AllocatedCapacity:
    sized: SizedTeam
    allocation: CapacityAllocationResult


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

def index_accounts(inputs: PlanningInputs) -> IndexedAccounts:
    return IndexedAccounts(inputs=inputs, index=build_account_index(inputs.accounts, inputs.assumptions))


def project(stage: IndexedAccounts) -> ProjectedAccounts:
    return ProjectedAccounts(
        indexed=stage,
        projections=project_revenue(stage.index, stage.inputs.assumptions),
    )


def select(stage: ProjectedAccounts) -> CoveredAccounts:
    indexed = stage.indexed
    coverage = select_coverage(indexed.index, indexed.inputs.coverage_count, stage.projections)
    return CoveredAccounts(projected=stage, coverage=coverage)


def size(stage: CoveredAccounts) -> SizedTeam:
    projected = stage.projected
    assumptions = projected.indexed.inputs.assumptions
    team = size_team(
        stage.coverage.covered_ids,
        projected.indexed.index,
        assumptions.team_sizing,
        assumptions.products,
        projected.projections,
    )
    return SizedTeam(covered=stage, team=team)


def allocate(stage: SizedTeam) -> AllocatedCapacity:
    covered = stage.covered
    indexed = covered.projected.indexed
    assumptions = indexed.inputs.assumptions
    allocation = allocate_capacity(
        indexed.index,
        covered.coverage,
        stage.team,
        covered.projected.projections,
        indexed.inputs.roster,
        assumptions.team_sizing,
        assumptions.horizon,
    )
    return AllocatedCapacity(sized=stage, allocation=allocation)


def build_report(stage: AllocatedCapacity) -> TamReport:
    team = stage.sized.team
    covered = stage.sized.covered
    projections = covered.projected.projections
    indexed = covered.projected.indexed
    index = indexed.index
    assumptions = indexed.inputs.assumptions

    rollups = aggregate_rollups(index, covered.coverage, projections, stage.allocation, assumptions.horizon)

    covered_set = set(covered.coverage.covered_ids)
    details = []
    for account_id in covered.coverage.covered_ids + covered.coverage.uncovered_ids:
        account = index.accounts[account_id]
        share = team.by_account.get(account_id)
        projection = projections[account_id]
        details.append(AccountDetail(
            account_id=account_id,
            name=account.name,
            tier=index.tier_of(account_id),
            total_assets=account.total_assets or 0.0,
            fte=account.fte or 0.0,
            covered=account_id in covered_set,
            tam=index.tams[account_id],
            three_year_achievable=projection.three_year_achievable,
            run_rate_by_year=projection.run_rate_by_year,
            ae_share=share.ae_share if share else None,
            se_share=share.se_share if share else None,
            assigned_member_ids=stage.allocation.account_assignments.get(account_id, []),
        ))

    return TamReport(
        assumptions_version=assumptions.version,
        horizon=list(assumptions.horizon.labels),
        coverage=covered.coverage.summary,
        team_by_tier=dict(team.by_tier),
        team_totals=team.totals,
        worksheet=team.worksheet,
        accounts=details,
        projections=projections,
        allocation=stage.allocation,
        rollups=rollups,
        data_quality_gaps=list(index.gaps),
        warnings=list(stage.allocation.warnings),
    )


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def run_pipeline(inputs: PlanningInputs) -> TamReport:
    """Run every stage and assemble the report. Inputs are never mutated."""
    logger.info(
        "Running TAM pipeline: %d accounts, assumptions %s, coverage target %d",
        len(inputs.accounts), inputs.assumptions.version, inputs.coverage_count,
    )
    report = build_report(allocate(size(select(project(index_accounts(inputs))))))
    if report.data_quality_gaps:
        logger.warning("%d accounts have incomplete financial inputs", len(report.data_quality_gaps))
    return report


def run_assignment_plan(inputs: PlanningInputs, quarter: Quarter | str) -> AssignmentPlan:
    covered = select(project(index_accounts(inputs)))
    team_sizing = inputs.assumptions.team_sizing
    return build_assignment_plan(
        covered.projected.indexed.index,
        covered.coverage,
        inputs.roster,
        quarter,
        ramp_quarters=int(team_sizing.ramp_quarters.value),
        ramp_curve=team_sizing.ramp_curve.value,
    )
