"""
TAM projection and sales capacity planner.

Turns an account snapshot, a versioned assumption set and a sales roster into
a structured allocation report: tier classification, four-product TAM,
penetration-phased revenue projections, AE/SE team sizing, time-phased
capacity allocation and tier/quarter/year rollups.

All stages are pure functions over immutable pydantic models; a scenario is a
new ``PlanningInputs`` (e.g. ``inputs.with_coverage_count(50)``), never a
mutation.
"""

from tam.models import (
    Account,
    AssumptionSet,
    PlanningInputs,
    Product,
    Provenance,
    Role,
    Roster,
    TeamMember,
    Tier,
)
from tam.pipeline import run_assignment_plan, run_pipeline
from tam.report import TamReport
from tam.tiers import classify_tier

__all__ = [
    "Account",
    "AssumptionSet",
    "PlanningInputs",
    "Product",
    "Provenance",
    "Role",
    "Roster",
    "TamReport",
    "TeamMember",
    "Tier",
    "classify_tier",
    "run_assignment_plan",
    "run_pipeline",
]
