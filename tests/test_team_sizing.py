"""
Tests for team sizing and the aggressive rounding policy.

Covers: fractional shares below one rep, the 0.75 round-up threshold,
tier totals as sums of rounded per-account shares, SE:AE ratio, and the
covered-portfolio worksheet aggregates.
"""

from __future__ import annotations

import pytest

from tam.index import build_account_index
from tam.models import Account, AssumptionSet, ProductAssumptions, TeamSizingAssumptions, Tier
from tam.rounding import aggressive_round, round_half_up
from tam.team_sizing import size_account, size_team


@pytest.fixture
def enterprise_accounts():
    """Three identical Enterprise banks, each with $72.69M TAM."""
    return [
        Account(id=f"E{i}", total_assets=50e9, fte=1000, annual_revenue=200e6)
        for i in range(1, 4)
    ]


class TestAggressiveRound:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (0.2423, 0.24),
            (0.125, 0.13),
            (0.005, 0.01),
            (0.0, 0.0),
            (0.999, 1.0),
            (1.0, 1.0),
            (1.7, 1.0),
            (1.74, 1.0),
            (1.75, 2.0),
            (1.8, 2.0),
            (2.74, 2.0),
            (3.9, 4.0),
        ],
    )
    def test_default_threshold(self, raw, expected):
        assert aggressive_round(raw) == pytest.approx(expected)

    def test_custom_threshold(self):
        assert aggressive_round(1.5, threshold=0.5) == 2.0
        assert aggressive_round(1.49, threshold=0.5) == 1.0

    def test_half_up_not_bankers(self):
        assert round_half_up(0.125, 2) == 0.13
        assert round_half_up(2.5, 0) == 3.0


class TestSizeAccount:

    def test_fractional_share_below_one(self):
        share = size_account("A", Tier.ENTERPRISE, 72_690_000, TeamSizingAssumptions())
        assert share.ae_raw == pytest.approx(0.2423)
        assert share.ae_share == pytest.approx(0.24)
        assert share.se_raw == pytest.approx(0.12115)
        assert share.se_share == pytest.approx(0.12)
        assert share.total_share == pytest.approx(0.36)

    def test_rounding_threshold_floor(self):
        share = size_account("A", Tier.ENTERPRISE, 510e6, TeamSizingAssumptions())
        assert share.ae_raw == pytest.approx(1.7)
        assert share.ae_share == 1.0

    def test_rounding_threshold_ceiling(self):
        share = size_account("A", Tier.ENTERPRISE, 540e6, TeamSizingAssumptions())
        assert share.ae_raw == pytest.approx(1.8)
        assert share.ae_share == 2.0

    def test_configurable_threshold(self):
        share = size_account("A", Tier.ENTERPRISE, 510e6, TeamSizingAssumptions(rounding_up_threshold=0.6))
        assert share.ae_share == 2.0

    def test_mega_tier_ratios(self):
        share = size_account("M", Tier.MEGA, 2.5e9, TeamSizingAssumptions())
        assert share.ae_raw == pytest.approx(2.5)
        assert share.ae_share == 2.0
        assert share.se_share == 2.0


class TestSizeTeam:

    def test_tier_total_is_sum_of_rounded_shares(self, enterprise_accounts):
        assumptions = AssumptionSet()
        index = build_account_index(enterprise_accounts, assumptions)
        result = size_team(["E1", "E2", "E3"], index, assumptions.team_sizing, assumptions.products)

        row = result.by_tier[Tier.ENTERPRISE]
        # 3 x 0.24, not round(3 x 0.2423) = 0.73
        assert row.aes_needed == pytest.approx(0.72)
        assert row.ses_needed == pytest.approx(0.36)
        assert row.total_headcount == pytest.approx(1.08)
        assert row.account_count == 3
        assert row.tam == pytest.approx(3 * 72_690_000)
        assert row.aes_needed == pytest.approx(sum(s.ae_share for s in result.by_account.values()))

    def test_totals_and_ratio(self, enterprise_accounts):
        assumptions = AssumptionSet()
        index = build_account_index(enterprise_accounts, assumptions)
        result = size_team(["E1", "E2", "E3"], index, assumptions.team_sizing, assumptions.products)
        assert result.totals.aes == pytest.approx(0.72)
        assert result.totals.ses == pytest.approx(0.36)
        assert result.totals.se_to_ae_ratio == 0.5

    def test_only_covered_accounts_sized(self, enterprise_accounts):
        assumptions = AssumptionSet()
        index = build_account_index(enterprise_accounts, assumptions)
        result = size_team(["E1"], index, assumptions.team_sizing, assumptions.products)
        assert set(result.by_account) == {"E1"}
        assert result.by_tier[Tier.ENTERPRISE].account_count == 1

    def test_every_tier_present(self):
        assumptions = AssumptionSet()
        index = build_account_index([], assumptions)
        result = size_team([], index, assumptions.team_sizing, assumptions.products)
        assert set(result.by_tier) == set(Tier)
        assert result.by_tier[Tier.MEGA].tam_per_ae == 1e9
        assert result.totals.aes == 0.0
        assert result.totals.se_to_ae_ratio == 0.0

    def test_worksheet(self, enterprise_accounts):
        assumptions = AssumptionSet()
        index = build_account_index(enterprise_accounts, assumptions)
        result = size_team(["E1", "E2", "E3"], index, assumptions.team_sizing, ProductAssumptions())
        ws = result.worksheet
        assert ws.total_fte == 3000
        assert ws.developers == 450
        assert ws.enterprise_seats == 3000
        assert ws.total_agents == 15000
