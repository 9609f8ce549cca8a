"""
Tests for the end-to-end pipeline and the auto-assignment plan.

Covers: report assembly, coverage scenarios as new inputs (no mutation),
tier totals invariant, data-quality gaps surfacing in the report,
determinism, and assignment plans per tier.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tam import PlanningInputs, run_assignment_plan, run_pipeline
from tam.models import Account, AssumptionSet, Roster, Tier
from tam.report import CoverageType


@pytest.fixture
def inputs():
    accounts = [
        Account(id="852218", name="Harbor National", total_assets=3.4e12, fte=220_000, annual_revenue=160e9),
        Account(id="504713", name="Keystone Trust", total_assets=550e9, fte=70_000, latest_quarter_revenue=6.5e9),
        Account(id="E1", name="Prairie Commerce", total_assets=45e9, fte=5200, annual_revenue=2.9e9),
        Account(id="E2", name="Granite Bancorp", total_assets=35e9, fte=4000, annual_revenue=2.1e9),
        Account(id="E3", name="Riverbend Financial", total_assets=31e9, fte=3100, annual_revenue=1.7e9),
        Account(id="C1", name="Lakeshore Community", total_assets=12e9, fte=1900, annual_revenue=780e6),
        Account(id="X1", name="Old Mill Savings", total_assets=2.5e9, annual_revenue=140e6),
    ]
    roster = Roster(
        members=[
            {"id": "ae-mega", "role": "AE", "assigned_tier": "Mega", "account_assignments": ["852218"]},
            {"id": "se-mega", "role": "SE", "assigned_tier": "Mega", "account_assignments": ["852218"]},
            {"id": "ae-ent-1", "role": "AE", "assigned_tier": "Enterprise"},
            {"id": "ae-ent-2", "role": "AE", "assigned_tier": "Enterprise"},
        ],
        hiring_plan=[
            {"quarter": "2027-Q1", "by_tier": {"Enterprise": {"aes": 1, "ses": 1}}},
        ],
        accounts_per_ae={"Enterprise": 1},
    )
    return PlanningInputs(
        accounts=accounts,
        assumptions=AssumptionSet(version="test-v1", team_sizing={"target_coverage_count": 6}),
        roster=roster,
    )


class TestRunPipeline:

    def test_report_shape(self, inputs):
        report = run_pipeline(inputs)
        assert report.assumptions_version == "test-v1"
        assert report.horizon[0] == "2026-Q1"
        assert len(report.horizon) == 12
        assert report.coverage.covered_count == 6
        assert report.coverage.uncovered_count == 1
        assert [a.account_id for a in report.accounts][:2] == ["852218", "504713"]
        assert report.account("X1").covered is False
        assert report.account("X1").ae_share is None
        assert set(report.projections) == {a.id for a in inputs.accounts}

    def test_tiers_assigned(self, inputs):
        report = run_pipeline(inputs)
        assert report.account("852218").tier == Tier.MEGA
        assert report.account("504713").tier == Tier.STRATEGIC
        assert report.account("E3").tier == Tier.ENTERPRISE
        assert report.account("C1").tier == Tier.COMMERCIAL
        assert report.account("X1").tier == Tier.SMALL_BUSINESS

    def test_tier_totals_equal_sum_of_account_shares(self, inputs):
        report = run_pipeline(inputs)
        for tier, row in report.team_by_tier.items():
            shares = [a.ae_share for a in report.accounts if a.tier == tier and a.ae_share is not None]
            assert row.aes_needed == pytest.approx(sum(shares))
        assert report.team_totals.aes == pytest.approx(sum(r.aes_needed for r in report.team_by_tier.values()))

    def test_explicit_assignment_in_report(self, inputs):
        report = run_pipeline(inputs)
        assert report.account("852218").assigned_member_ids == ["ae-mega", "se-mega"]
        q1 = report.allocation.quarter("2026-Q1")
        assert q1.coverage_for("852218").coverage_type == CoverageType.ASSIGNED

    def test_data_gaps_reported(self, inputs):
        report = run_pipeline(inputs)
        gaps = {g.account_id: g.missing_fields for g in report.data_quality_gaps}
        assert gaps == {"X1": ["fte"]}

    def test_annualized_revenue_used(self, inputs):
        report = run_pipeline(inputs)
        tam = report.account("504713").tam
        assert tam.annual_revenue == pytest.approx(26e9)
        assert tam.revenue_source.value == "annualized_quarter"

    def test_captured_never_exceeds_potential(self, inputs):
        report = run_pipeline(inputs)
        for y in report.rollups.by_year:
            assert y.captured <= y.potential + 1e-6
        assert report.rollups.total.captured <= report.rollups.total.potential + 1e-6

    def test_deterministic(self, inputs):
        assert run_pipeline(inputs).model_dump_json() == run_pipeline(inputs).model_dump_json()


class TestScenarios:

    def test_with_coverage_count_is_new_object(self, inputs):
        scenario = inputs.with_coverage_count(3)
        assert scenario is not inputs
        assert inputs.coverage_count == 6
        assert scenario.coverage_count == 3

        base = run_pipeline(inputs)
        narrow = run_pipeline(scenario)
        assert narrow.coverage.covered_count == 3
        assert narrow.coverage.tam_covered < base.coverage.tam_covered
        assert narrow.coverage.total_tam == pytest.approx(base.coverage.total_tam)

    def test_negative_coverage_rejected(self, inputs):
        with pytest.raises(ValueError):
            inputs.with_coverage_count(-1)

    def test_inputs_are_frozen(self, inputs):
        with pytest.raises(Exception):
            inputs.target_coverage_count = 10

    def test_report_is_frozen(self, inputs):
        report = run_pipeline(inputs)
        with pytest.raises(ValidationError):
            report.team_totals.aes = 999.0
        with pytest.raises(ValidationError):
            report.assumptions_version = "x"
        with pytest.raises(ValidationError):
            report.team_by_tier[Tier.MEGA].aes_needed = 0.0
        with pytest.raises(ValidationError):
            report.allocation.quarters[0].remaining_aes = 5.0

    def test_duplicate_account_ids_rejected(self):
        with pytest.raises(ValueError, match="unique"):
            PlanningInputs(accounts=[Account(id="A"), Account(id="A")])


class TestAssignmentPlan:

    def test_enterprise_carrying_capacity(self, inputs):
        plan = run_assignment_plan(inputs, "2026-Q4")
        ent = plan.by_tier[Tier.ENTERPRISE]

        assert ent.total_aes == 2
        assert ent.accounts_per_ae == 1
        assert ent.total_accounts == 3
        assert ent.covered_account_count == 2
        assert ent.uncovered_account_count == 1
        assert [a.member_id for a in ent.ae_assignments] == ["ae-ent-1", "ae-ent-2"]
        # E1 has the highest TAM, E3 the lowest
        assert ent.ae_assignments[0].account_ids == ["E1"]
        assert ent.uncovered_account_ids == ["E3"]

    def test_planned_hire_extends_capacity(self, inputs):
        plan = run_assignment_plan(inputs, "2027-Q1")
        ent = plan.by_tier[Tier.ENTERPRISE]
        assert ent.total_aes == 3
        assert ent.uncovered_account_count == 0
        assert ent.ae_assignments[2].member_id is None
        assert ent.ae_assignments[2].is_existing_member is False

    def test_headcount_included(self, inputs):
        plan = run_assignment_plan(inputs, "2027-Q1")
        assert plan.quarter == "2027-Q1"
        assert plan.headcount.total_aes == 4
        assert plan.headcount.total_ses == 2
