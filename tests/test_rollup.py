"""
Tests for tier / quarter / year rollups.

Covers: sum-of-quarters vs Q4-annualized run-rate figures, tier grids,
horizon totals, product breakdown, and the operating expense check.
"""

from __future__ import annotations

import pytest

from tam.allocator import allocate_capacity
from tam.coverage import select_coverage
from tam.index import build_account_index
from tam.models import Account, AssumptionSet, Product, Roster, Tier
from tam.projection import project_revenue
from tam.rollup import aggregate_rollups, allocation_frame
from tam.team_sizing import size_team


def _rollups(accounts, count=None, assumptions=None, roster=None):
    assumptions = assumptions or AssumptionSet()
    index = build_account_index(accounts, assumptions)
    projections = project_revenue(index, assumptions)
    coverage = select_coverage(index, len(accounts) if count is None else count, projections)
    team = size_team(coverage.covered_ids, index, assumptions.team_sizing, assumptions.products, projections)
    allocation = allocate_capacity(
        index, coverage, team, projections, roster or Roster(), assumptions.team_sizing, assumptions.horizon,
    )
    return aggregate_rollups(index, coverage, projections, allocation, assumptions.horizon), projections, allocation


@pytest.fixture
def accounts():
    return [
        Account(
            id="M", total_assets=2e12, fte=100_000, annual_revenue=50e9,
            annual_operating_expense=30e9,
            operating_expense_breakdown={"salaries_and_benefits": 18e9, "premises": 4e9, "other": 8e9},
        ),
        Account(id="E", total_assets=50e9, fte=1000, annual_revenue=200e6, annual_operating_expense=150e6),
        Account(id="S", total_assets=2e9, fte=300, annual_revenue=20e6),
    ]


class TestYearRollups:

    def test_potential_is_sum_of_quarters(self, accounts):
        rollups, projections, _ = _rollups(accounts)
        for year in (2026, 2027, 2028):
            expected = sum(
                p.quarter(f"{year}-Q{n}").total for p in projections.values() for n in range(1, 5)
            )
            assert rollups.year(year).potential == pytest.approx(expected)

    def test_potential_rrr_is_q4_times_four(self, accounts):
        rollups, projections, _ = _rollups(accounts)
        for year in (2026, 2027, 2028):
            q4 = sum(p.quarter(f"{year}-Q4").total for p in projections.values())
            y = rollups.year(year)
            assert y.potential_rrr == pytest.approx(q4 * 4)
            # Rising curves: the run-rate snapshot exceeds the in-year sum
            assert y.potential_rrr > y.potential

    def test_all_reactive_captures_flat_rate(self, accounts):
        rollups, _, _ = _rollups(accounts)
        for y in rollups.by_year:
            assert y.captured == pytest.approx(0.10 * y.potential)
            assert y.adjusted_rrr == pytest.approx(0.10 * y.potential_rrr)
            assert y.capture_rate == pytest.approx(0.10)

    def test_tier_years_sum_to_year(self, accounts):
        rollups, _, _ = _rollups(accounts)
        for y in rollups.by_year:
            tier_rows = [r for r in rollups.by_tier_year if r.year == y.year]
            assert len(tier_rows) == 5
            assert sum(r.potential for r in tier_rows) == pytest.approx(y.potential)
            assert sum(r.adjusted_rrr for r in tier_rows) == pytest.approx(y.adjusted_rrr)

    def test_horizon_total(self, accounts):
        rollups, _, allocation = _rollups(accounts)
        assert rollups.total.potential == pytest.approx(sum(q.full_potential for q in allocation.quarters))
        assert rollups.total.captured == pytest.approx(sum(q.captured_revenue for q in allocation.quarters))
        assert rollups.total.potential == pytest.approx(sum(y.potential for y in rollups.by_year))


class TestTierQuarterGrid:

    def test_full_grid_zero_filled(self, accounts):
        rollups, _, _ = _rollups(accounts)
        assert len(rollups.by_tier_quarter) == 5 * 12
        strategic = [r for r in rollups.by_tier_quarter if r.tier == Tier.STRATEGIC]
        assert all(r.potential == 0.0 and r.captured == 0.0 for r in strategic)

    def test_product_breakdown_sums_to_potential(self, accounts):
        rollups, _, _ = _rollups(accounts)
        for r in rollups.by_tier_quarter:
            assert sum(r.by_product.values()) == pytest.approx(r.potential)

    def test_quarterly_potential_by_product(self, accounts):
        rollups, projections, _ = _rollups(accounts)
        q = rollups.quarterly_potential_by_product["2027-Q2"]
        expected = sum(
            p.quarter("2027-Q2").by_product[Product.DEVELOPER_SEAT].revenue for p in projections.values()
        )
        assert q[Product.DEVELOPER_SEAT] == pytest.approx(expected)

    def test_only_covered_accounts_rolled_up(self, accounts):
        rollups, projections, _ = _rollups(accounts, count=1)
        q1 = [r for r in rollups.by_tier_quarter if r.quarter == "2026-Q1"]
        assert sum(r.potential for r in q1) == pytest.approx(projections["M"].quarter("2026-Q1").total)

    def test_empty_coverage(self, accounts):
        rollups, _, allocation = _rollups(accounts, count=0)
        assert allocation_frame(allocation, {}).empty
        assert rollups.total.potential == 0.0
        assert rollups.total.capture_rate == 0.0
        assert len(rollups.by_year) == 3


class TestOperatingExpense:

    def test_covered_opex_aggregates(self, accounts):
        rollups, _, _ = _rollups(accounts)
        opex = rollups.operating_expense
        assert opex.total_covered_opex == pytest.approx(30e9 + 150e6)
        assert opex.salaries_and_benefits == pytest.approx(18e9)
        assert opex.tam_as_opex_pct == pytest.approx(opex.total_covered_tam / opex.total_covered_opex)
        y = rollups.year(2028)
        assert opex.rrr_as_opex_pct[2028] == pytest.approx(y.potential_rrr / opex.total_covered_opex)

    def test_none_without_opex(self, accounts):
        rollups, _, _ = _rollups(accounts[2:])
        assert rollups.operating_expense.tam_as_opex_pct is None
        assert rollups.operating_expense.rrr_as_opex_pct == {2026: None, 2027: None, 2028: None}
