"""Tests for assumption, roster and account loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from tam.loader import (
    load_accounts,
    load_assumptions,
    load_planning_inputs,
    load_roster,
    read_document,
)
from tam.models import Product, Provenance, Tier

_DATA_DIR = Path(__file__).parent.parent / "data"


class TestLoadAssumptions:

    def test_partial_file_tags_defaults(self, tmp_path):
        path = tmp_path / "assumptions.yaml"
        path.write_text(
            "version: q3-refresh\n"
            "products:\n"
            "  developer_seat:\n"
            "    price_per_seat_month: 200\n"
        )
        a = load_assumptions(path)
        assert a.version == "q3-refresh"
        dev = a.products.developer_seat
        assert dev.price_per_seat_month.value == 200
        assert dev.price_per_seat_month.provenance == Provenance.GLOBAL
        assert dev.eligibility_rate.provenance == Provenance.DEFAULT
        assert a.team_sizing.reactive_capture_rate.provenance == Provenance.DEFAULT

    def test_no_path_gives_defaults(self):
        a = load_assumptions()
        assert a.version == "default"
        assert set(a.penetration.tier_defaults) == set(Tier)

    def test_horizon_year_only_fills_gap(self, tmp_path):
        path = tmp_path / "a.yaml"
        path.write_text("horizon_start_year: 2027\n")
        assert load_assumptions(path, horizon_start_year=2030).horizon_start_year == 2027
        assert load_assumptions(None, horizon_start_year=2030).horizon_start_year == 2030

    def test_bad_thresholds_rejected(self, tmp_path):
        path = tmp_path / "a.yaml"
        path.write_text("tier_thresholds:\n  mega: 1.0e+10\n  strategic: 1.0e+11\n")
        with pytest.raises(ValidationError, match="strictly decreasing"):
            load_assumptions(path)

    def test_unknown_override_key_rejected(self, tmp_path):
        path = tmp_path / "a.json"
        path.write_text(json.dumps({"account_overrides": {"A": {"developer_seat": {"discount": 0.5}}}}))
        with pytest.raises(ValidationError):
            load_assumptions(path)

    def test_unknown_ramp_curve_rejected(self, tmp_path):
        path = tmp_path / "a.yaml"
        path.write_text("team_sizing:\n  ramp_curve: sigmoid\n")
        with pytest.raises(ValidationError, match="Unknown ramp curve"):
            load_assumptions(path)

    def test_policy_choices_carry_provenance(self, tmp_path):
        path = tmp_path / "a.yaml"
        path.write_text("team_sizing:\n  ramp_curve: step\n  rounding_up_threshold: 0.6\n")
        team = load_assumptions(path).team_sizing
        assert team.ramp_curve.value == "step"
        assert team.ramp_curve.provenance == Provenance.GLOBAL
        assert team.rounding_up_threshold.value == 0.6
        assert team.rounding_up_threshold.provenance == Provenance.GLOBAL
        assert team.greedy_order.value == "tam_desc"
        assert team.greedy_order.provenance == Provenance.DEFAULT

    def test_rounding_threshold_out_of_range(self, tmp_path):
        path = tmp_path / "a.yaml"
        path.write_text("team_sizing:\n  rounding_up_threshold: 1.5\n")
        with pytest.raises(ValidationError, match="rounding_up_threshold"):
            load_assumptions(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_assumptions(path).version == "default"

    def test_sample_file(self):
        a = load_assumptions(_DATA_DIR / "assumptions.yaml")
        assert a.version == "2026-planning-v1"
        assert a.tier_thresholds.mega.value == 1e12
        assert a.has_overrides("480228")
        assert a.products_for("480228").developer_seat.eligibility_rate.provenance == Provenance.ACCOUNT_OVERRIDE
        point = a.penetration.account_overrides["852218"][Product.DEVELOPER_SEAT]["2026-Q1"]
        assert point.actual == 0.04


class TestReadDocument:

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "a.toml"
        path.write_text("version = 'x'\n")
        with pytest.raises(ValueError, match="Unsupported file type"):
            read_document(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_document(tmp_path / "nope.yaml")

    def test_top_level_list_rejected_for_assumptions(self, tmp_path):
        path = tmp_path / "a.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError, match="mapping"):
            load_assumptions(path)


class TestLoadAccounts:

    def test_csv_missing_values_become_none(self, tmp_path):
        path = tmp_path / "banks.csv"
        path.write_text(
            "id,name,total_assets,fte,annual_revenue,opex_salaries_and_benefits,opex_premises,unused\n"
            "00123,First Bank,5.0e10,1200,,300,40,x\n"
            "456,Second Bank,,,90000000,,,y\n"
        )
        first, second = load_accounts(path)

        assert first.id == "00123"
        assert first.fte == 1200
        assert first.annual_revenue is None
        assert first.operating_expense_breakdown.salaries_and_benefits == 300
        assert first.operating_expense_breakdown.other == 0.0

        assert second.total_assets is None
        assert second.fte is None
        assert second.annual_revenue == 90_000_000
        assert second.operating_expense_breakdown is None

    def test_csv_blank_name(self, tmp_path):
        path = tmp_path / "banks.csv"
        path.write_text(
            "id,name,total_assets,fte,annual_revenue\n"
            "1,,5.0e10,1000,200000000\n"
            "2,Second Bank,1.0e10,500,90000000\n"
        )
        first, second = load_accounts(path)
        assert first.name == ""
        assert first.total_assets == 5e10
        assert second.name == "Second Bank"

    def test_json_mapping(self, tmp_path):
        path = tmp_path / "banks.json"
        path.write_text(json.dumps({"accounts": [{"id": 7, "total_assets": 1e9}]}))
        (account,) = load_accounts(path)
        assert account.id == "7"

    def test_yaml_list(self, tmp_path):
        path = tmp_path / "banks.yaml"
        path.write_text("- id: A\n  fte: 10\n- id: B\n")
        assert [a.id for a in load_accounts(path)] == ["A", "B"]

    def test_unknown_field_rejected_outside_csv(self, tmp_path):
        path = tmp_path / "banks.yaml"
        path.write_text("- id: A\n  headcount: 10\n")
        with pytest.raises(ValidationError):
            load_accounts(path)

    def test_sample_csv(self):
        accounts = load_accounts(_DATA_DIR / "accounts.csv")
        assert len(accounts) == 6
        by_id = {a.id: a for a in accounts}
        assert by_id["852218"].operating_expense_breakdown.premises == 9e9
        assert by_id["504713"].annual_revenue is None
        assert by_id["504713"].latest_quarter_revenue == 6.5e9
        assert by_id["1394676"].fte is None


class TestLoadRoster:

    def test_no_path_is_empty(self):
        roster = load_roster()
        assert roster.members == ()
        assert roster.accounts_per_ae_for(Tier.COMMERCIAL) > 0

    def test_sample_roster(self):
        roster = load_roster(_DATA_DIR / "roster.yaml")
        assert [m.id for m in roster.members] == ["ae-001", "se-001", "ae-002", "ae-003"]
        assert roster.members[0].account_assignments == ("852218",)
        assert roster.members[3].hire_quarter == "2026-Q3"
        assert roster.accounts_per_ae_for(Tier.ENTERPRISE) == 5
        assert len(roster.hiring_plan) == 2

    def test_bad_hire_quarter(self, tmp_path):
        path = tmp_path / "roster.yaml"
        path.write_text("members:\n  - {id: a, role: AE, hire_quarter: '2026-Q5'}\n")
        with pytest.raises(ValidationError):
            load_roster(path)

    def test_duplicate_member_ids(self, tmp_path):
        path = tmp_path / "roster.yaml"
        path.write_text("members:\n  - {id: a, role: AE}\n  - {id: a, role: SE}\n")
        with pytest.raises(ValidationError, match="unique"):
            load_roster(path)


class TestLoadPlanningInputs:

    def test_sample_inputs(self):
        inputs = load_planning_inputs(
            _DATA_DIR / "accounts.csv",
            assumptions_path=_DATA_DIR / "assumptions.yaml",
            roster_path=_DATA_DIR / "roster.yaml",
        )
        assert len(inputs.accounts) == 6
        assert inputs.coverage_count == 4
        assert len(inputs.roster.members) == 4

    def test_coverage_override(self):
        inputs = load_planning_inputs(_DATA_DIR / "accounts.csv", target_coverage_count=2)
        assert inputs.coverage_count == 2
        assert inputs.assumptions.version == "default"
