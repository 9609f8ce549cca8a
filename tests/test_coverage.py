"""Tests for coverage selection (top-N by total assets)."""

from __future__ import annotations

import pytest

from tam.coverage import rank_by_assets, select_coverage
from tam.index import build_account_index
from tam.models import Account, AssumptionSet


@pytest.fixture
def index():
    accounts = [
        Account(id="small", total_assets=5e9, fte=500, annual_revenue=40e6),
        Account(id="mega", total_assets=2e12, fte=100_000, annual_revenue=80e9),
        Account(id="b-tie", total_assets=40e9, fte=3000, annual_revenue=300e6),
        Account(id="a-tie", total_assets=40e9, fte=2000, annual_revenue=250e6),
        Account(id="strategic", total_assets=200e9, fte=20_000, annual_revenue=9e9),
        Account(id="unknown-assets", fte=100),
    ]
    return build_account_index(accounts, AssumptionSet())


class TestRanking:

    def test_assets_desc_then_id(self, index):
        assert rank_by_assets(index) == ["mega", "strategic", "a-tie", "b-tie", "small", "unknown-assets"]


class TestSelectCoverage:

    def test_top_n(self, index):
        selection = select_coverage(index, 3)
        assert selection.covered_ids == ["mega", "strategic", "a-tie"]
        assert selection.uncovered_ids == ["b-tie", "small", "unknown-assets"]
        assert selection.summary.covered_count == 3
        assert selection.summary.uncovered_count == 3
        assert selection.summary.total_count == 6

    def test_tam_split_and_pct(self, index):
        summary = select_coverage(index, 2).summary
        expected_covered = index.tam_of("mega") + index.tam_of("strategic")
        assert summary.tam_covered == pytest.approx(expected_covered)
        assert summary.tam_covered + summary.tam_uncovered == pytest.approx(summary.total_tam)
        assert summary.coverage_pct == pytest.approx(expected_covered / summary.total_tam)

    def test_assets_split(self, index):
        summary = select_coverage(index, 1).summary
        assert summary.assets_covered == 2e12
        assert summary.assets_uncovered == pytest.approx(5e9 + 40e9 + 40e9 + 200e9)

    def test_zero_count(self, index):
        selection = select_coverage(index, 0)
        assert selection.covered_ids == []
        assert selection.summary.coverage_pct == 0.0

    def test_count_above_total_covers_all(self, index):
        selection = select_coverage(index, 100)
        assert len(selection.covered_ids) == 6
        assert selection.uncovered_ids == []
        assert selection.summary.coverage_pct == pytest.approx(1.0)

    def test_no_tam_gives_none_pct(self):
        index = build_account_index([Account(id="x", total_assets=1e9)], AssumptionSet())
        assert select_coverage(index, 1).summary.coverage_pct is None

    def test_negative_count_rejected(self, index):
        with pytest.raises(ValueError):
            select_coverage(index, -1)
