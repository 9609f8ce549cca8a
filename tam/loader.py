"""
Input loading: assumption sets, rosters and account snapshots.

YAML and JSON files are validated through the pydantic models, so a bad
threshold ordering or an unknown override key fails at load time with a
``pydantic.ValidationError``. Account snapshots may also be CSV, read with
pandas; the operating-expense breakdown uses ``opex_``-prefixed columns.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pandas as pd
import yaml

from tam.models import Account, AssumptionSet, OperatingExpenseBreakdown, PlanningInputs, Roster

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = {".yaml", ".yml"}
_BREAKDOWN_PREFIX = "opex_"


def read_document(path: Path) -> Any:
    """Parse a YAML or JSON file. Raises FileNotFoundError / ValueError."""
    path = Path(path)
    suffix = path.suffix.lower()
    with open(path) as f:
        if suffix in _YAML_SUFFIXES:
            return yaml.safe_load(f)
        if suffix == ".json":
            return json.load(f)
    raise ValueError(f"Unsupported file type {suffix!r} for {path} (expected .yaml, .yml or .json)")


def _read_mapping(path: Path) -> dict[str, Any]:
    data = read_document(path)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping at the top level")
    return data


def load_assumptions(path: Path | None = None, horizon_start_year: int | None = None) -> AssumptionSet:
    """Load an assumption set. Missing fields fall back to documented defaults."""
    data = _read_mapping(path) if path is not None else {}
    if horizon_start_year is not None:
        data.setdefault("horizon_start_year", horizon_start_year)
    assumptions = AssumptionSet(**data)
    logger.info("Loaded assumptions %s (%s)", assumptions.version, path or "defaults")
    return assumptions


def load_roster(path: Path | None = None) -> Roster:
    if path is None:
        return Roster()
    roster = Roster(**_read_mapping(path))
    logger.info("Loaded roster: %d members, %d hiring-plan quarters", len(roster.members), len(roster.hiring_plan))
    return roster


def _account_from_record(record: dict[str, Any]) -> Account:
    breakdown = {
        key[len(_BREAKDOWN_PREFIX):]: value
        for key, value in record.items()
        if key.startswith(_BREAKDOWN_PREFIX) and value is not None
    }
    fields = {
        key: value for key, value in record.items()
        if not key.startswith(_BREAKDOWN_PREFIX) and key in Account.model_fields and value is not None
    }
    if breakdown:
        fields["operating_expense_breakdown"] = OperatingExpenseBreakdown(**breakdown)
    return Account(**fields)


def _read_account_csv(path: Path) -> list[dict[str, Any]]:
    df = pd.read_csv(path, dtype={"id": str})
    df = df.astype(object).where(df.notna(), None)
    return df.to_dict(orient="records")


def load_accounts(path: Path) -> tuple[Account, ...]:
    """
    Load an account snapshot.

    YAML/JSON may be a list of accounts or a mapping with an ``accounts`` key.
    CSV columns are account field names plus optional ``opex_salaries_and_benefits``,
    ``opex_premises`` and ``opex_other``.
    """
    path = Path(path)
    if path.suffix.lower() == ".csv":
        accounts = tuple(_account_from_record(r) for r in _read_account_csv(path))
    else:
        data = read_document(path)
        if isinstance(data, dict):
            data = data.get("accounts", [])
        if not isinstance(data, list):
            raise ValueError(f"{path} must contain a list of accounts")
        accounts = tuple(Account(**record) for record in data)
    logger.info("Loaded %d accounts from %s", len(accounts), path.name)
    return accounts


def load_planning_inputs(
    accounts_path: Path,
    assumptions_path: Path | None = None,
    roster_path: Path | None = None,
    target_coverage_count: int | None = None,
    horizon_start_year: int | None = None,
) -> PlanningInputs:
    return PlanningInputs(
        accounts=load_accounts(accounts_path),
        assumptions=load_assumptions(assumptions_path, horizon_start_year),
        roster=load_roster(roster_path),
        target_coverage_count=target_coverage_count,
    )
