"""
Pydantic input models for the TAM engine.

Accounts, the versioned assumption set and the sales roster are immutable
value objects. Every assumption leaf carries a provenance tag; a leaf missing
from the source file is filled from ``tam.defaults`` and tagged ``default``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tam import defaults
from tam.quarters import Horizon, Quarter


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Tier(str, Enum):
    """Asset-size segment, largest first."""

    MEGA = "Mega"
    STRATEGIC = "Strategic"
    ENTERPRISE = "Enterprise"
    COMMERCIAL = "Commercial"
    SMALL_BUSINESS = "SmallBusiness"


TIER_ORDER: tuple[Tier, ...] = tuple(Tier)


class Product(str, Enum):
    DEVELOPER_SEAT = "developer_seat"
    ENTERPRISE_SEAT = "enterprise_seat"
    PER_EMPLOYEE_AGENT = "per_employee_agent"
    REVENUE_SHARE_AGENT = "revenue_share_agent"


PRODUCTS: tuple[Product, ...] = tuple(Product)


class Provenance(str, Enum):
    GLOBAL = "global"
    ACCOUNT_OVERRIDE = "account-override"
    SEGMENT_DEFAULT = "segment-default"
    GLOBAL_DEFAULT = "global-default"
    DEFAULT = "default"
    UNSET = "unset"


class Role(str, Enum):
    AE = "AE"
    SE = "SE"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

class OperatingExpenseBreakdown(_Frozen):
    salaries_and_benefits: float = 0.0
    premises: float = 0.0
    other: float = 0.0


class Account(_Frozen):
    """Financial snapshot of one bank. Currency values are actual units, not thousands."""

    id: str
    name: str = ""
    total_assets: float | None = Field(default=None, ge=0.0)
    fte: float | None = Field(default=None, ge=0.0)
    annual_revenue: float | None = Field(
        default=None, description="Most recent fiscal year-end (full-year cumulative) revenue"
    )
    latest_quarter_revenue: float | None = Field(
        default=None, description="Latest single-quarter revenue, annualized when no year-end figure"
    )
    net_income: float | None = None
    annual_operating_expense: float | None = None
    operating_expense_breakdown: OperatingExpenseBreakdown | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> str:
        if v is None or str(v).strip() == "":
            raise ValueError("account id is required")
        return str(v).strip()


# ---------------------------------------------------------------------------
# Assumption leaves
# ---------------------------------------------------------------------------

class AssumptionValue(_Frozen):
    """A numeric assumption with its provenance. Bare scalars are accepted as ``global``."""

    value: float
    provenance: Provenance = Provenance.GLOBAL

    @model_validator(mode="before")
    @classmethod
    def _wrap_scalar(cls, data: Any) -> Any:
        if isinstance(data, (int, float)) and not isinstance(data, bool):
            return {"value": data}
        return data


def _default(value: float) -> AssumptionValue:
    return AssumptionValue(value=value, provenance=Provenance.DEFAULT)


def _default_field(value: float):
    return Field(default_factory=lambda: _default(value))


class AssumptionChoice(_Frozen):
    """A named policy choice (ramp curve, greedy order) with its provenance."""

    value: str
    provenance: Provenance = Provenance.GLOBAL

    @model_validator(mode="before")
    @classmethod
    def _wrap_name(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"value": data}
        return data


def _default_choice(value: str):
    return Field(default_factory=lambda: AssumptionChoice(value=value, provenance=Provenance.DEFAULT))


def _defaults_by_tier(values: dict[str, float]) -> dict[Tier, AssumptionValue]:
    return {tier: _default(values[tier.value]) for tier in TIER_ORDER}


# ---------------------------------------------------------------------------
# Product assumptions
# ---------------------------------------------------------------------------

class DeveloperSeatAssumptions(_Frozen):
    price_per_seat_month: AssumptionValue = _default_field(defaults.DEVELOPER_SEAT_PRICE_PER_MONTH)
    eligibility_rate: AssumptionValue = _default_field(defaults.DEVELOPER_ELIGIBILITY_RATE)


class EnterpriseSeatAssumptions(_Frozen):
    price_per_seat_month: AssumptionValue = _default_field(defaults.ENTERPRISE_SEAT_PRICE_PER_MONTH)
    adoption_rate: AssumptionValue = _default_field(defaults.ENTERPRISE_ADOPTION_RATE)


class PerEmployeeAgentAssumptions(_Frozen):
    agents_per_employee: AssumptionValue = _default_field(defaults.AGENTS_PER_EMPLOYEE)
    price_per_agent_month: AssumptionValue = _default_field(defaults.AGENT_PRICE_PER_MONTH)


class RevenueShareAgentAssumptions(_Frozen):
    revenue_share_fraction: AssumptionValue = _default_field(defaults.REVENUE_SHARE_FRACTION)
    platform_share_fraction: AssumptionValue = _default_field(defaults.PLATFORM_SHARE_FRACTION)


class ProductAssumptions(_Frozen):
    """Pricing and rate assumptions for all four products."""

    developer_seat: DeveloperSeatAssumptions = Field(default_factory=DeveloperSeatAssumptions)
    enterprise_seat: EnterpriseSeatAssumptions = Field(default_factory=EnterpriseSeatAssumptions)
    per_employee_agent: PerEmployeeAgentAssumptions = Field(default_factory=PerEmployeeAgentAssumptions)
    revenue_share_agent: RevenueShareAgentAssumptions = Field(default_factory=RevenueShareAgentAssumptions)

    @model_validator(mode="after")
    def _non_negative(self) -> ProductAssumptions:
        for group in PRODUCTS:
            for name, leaf in getattr(self, group.value):
                if leaf.value < 0:
                    raise ValueError(f"{group.value}.{name} must be >= 0, got {leaf.value}")
        return self

    def with_overrides(self, overrides: dict[str, dict[str, AssumptionValue]]) -> ProductAssumptions:
        """Return a new set with the given leaves replaced and tagged ``account-override``."""
        if not overrides:
            return self
        updates = {}
        for group, fields in overrides.items():
            current = getattr(self, group)
            updates[group] = current.model_copy(update={
                name: AssumptionValue(value=leaf.value, provenance=Provenance.ACCOUNT_OVERRIDE)
                for name, leaf in fields.items()
            })
        return self.model_copy(update=updates)


_PRODUCT_GROUPS: dict[str, type[_Frozen]] = {
    Product.DEVELOPER_SEAT.value: DeveloperSeatAssumptions,
    Product.ENTERPRISE_SEAT.value: EnterpriseSeatAssumptions,
    Product.PER_EMPLOYEE_AGENT.value: PerEmployeeAgentAssumptions,
    Product.REVENUE_SHARE_AGENT.value: RevenueShareAgentAssumptions,
}


def validate_override_keys(overrides: dict[str, dict[str, Any]]) -> None:
    """Reject override groups or fields that do not exist on ProductAssumptions."""
    for group, fields in overrides.items():
        group_cls = _PRODUCT_GROUPS.get(group)
        if group_cls is None:
            raise ValueError(f"Unknown product in account override: {group!r}")
        for name in fields:
            if name not in group_cls.model_fields:
                raise ValueError(f"Unknown assumption {group}.{name!r} in account override")


# ---------------------------------------------------------------------------
# Tier thresholds and team sizing
# ---------------------------------------------------------------------------

class TierThresholds(_Frozen):
    """Minimum total assets for each tier. Must be strictly decreasing and positive."""

    mega: AssumptionValue = _default_field(defaults.MEGA_TIER_THRESHOLD)
    strategic: AssumptionValue = _default_field(defaults.STRATEGIC_TIER_THRESHOLD)
    enterprise: AssumptionValue = _default_field(defaults.ENTERPRISE_TIER_THRESHOLD)
    commercial: AssumptionValue = _default_field(defaults.COMMERCIAL_TIER_THRESHOLD)

    @model_validator(mode="after")
    def _strictly_decreasing(self) -> TierThresholds:
        ordered = self.ordered()
        for (upper_tier, upper), (lower_tier, lower) in zip(ordered, ordered[1:]):
            if not upper > lower:
                raise ValueError(
                    f"Tier thresholds must be strictly decreasing: "
                    f"{upper_tier.value}={upper:,.0f} is not above {lower_tier.value}={lower:,.0f}"
                )
        if not ordered[-1][1] > 0:
            raise ValueError("Commercial tier threshold must be positive")
        return self

    def ordered(self) -> list[tuple[Tier, float]]:
        """Thresholds as (tier, minimum assets), largest first. SmallBusiness has no floor."""
        return [
            (Tier.MEGA, self.mega.value),
            (Tier.STRATEGIC, self.strategic.value),
            (Tier.ENTERPRISE, self.enterprise.value),
            (Tier.COMMERCIAL, self.commercial.value),
        ]


class TeamSizingAssumptions(_Frozen):
    """Coverage, team sizing and capacity-allocation policy."""

    target_coverage_count: AssumptionValue = _default_field(defaults.DEFAULT_TARGET_COVERAGE_COUNT)
    tam_per_ae: dict[Tier, AssumptionValue] = Field(
        default_factory=lambda: _defaults_by_tier(defaults.DEFAULT_TAM_PER_AE),
        description="Annual TAM one AE can cover, by tier",
    )
    se_per_ae: dict[Tier, AssumptionValue] = Field(
        default_factory=lambda: _defaults_by_tier(defaults.DEFAULT_SE_PER_AE),
        description="Solutions engineers per AE, by tier",
    )
    reactive_capture_rate: AssumptionValue = _default_field(defaults.DEFAULT_REACTIVE_CAPTURE_RATE)
    ramp_quarters: AssumptionValue = _default_field(defaults.DEFAULT_RAMP_QUARTERS)
    ramp_curve: AssumptionChoice = _default_choice(defaults.DEFAULT_RAMP_CURVE)
    rounding_up_threshold: AssumptionValue = _default_field(defaults.AGGRESSIVE_ROUNDING_THRESHOLD)
    greedy_order: AssumptionChoice = _default_choice(defaults.DEFAULT_GREEDY_ORDER)

    @field_validator("ramp_curve", mode="after")
    @classmethod
    def _known_ramp_curve(cls, v: AssumptionChoice) -> AssumptionChoice:
        from tam.capacity import RAMP_CURVES

        if v.value not in RAMP_CURVES:
            raise ValueError(f"Unknown ramp curve: {v.value!r}. Available: {sorted(RAMP_CURVES)}")
        return v

    @field_validator("greedy_order", mode="after")
    @classmethod
    def _known_greedy_order(cls, v: AssumptionChoice) -> AssumptionChoice:
        from tam.allocator import GREEDY_ORDERS

        if v.value not in GREEDY_ORDERS:
            raise ValueError(f"Unknown greedy order: {v.value!r}. Available: {sorted(GREEDY_ORDERS)}")
        return v

    @field_validator("tam_per_ae", mode="after")
    @classmethod
    def _fill_tam_per_ae(cls, v: dict[Tier, AssumptionValue]) -> dict[Tier, AssumptionValue]:
        merged = {**_defaults_by_tier(defaults.DEFAULT_TAM_PER_AE), **v}
        for tier, leaf in merged.items():
            if leaf.value <= 0:
                raise ValueError(f"tam_per_ae[{tier.value}] must be > 0, got {leaf.value}")
        return merged

    @field_validator("se_per_ae", mode="after")
    @classmethod
    def _fill_se_per_ae(cls, v: dict[Tier, AssumptionValue]) -> dict[Tier, AssumptionValue]:
        merged = {**_defaults_by_tier(defaults.DEFAULT_SE_PER_AE), **v}
        for tier, leaf in merged.items():
            if leaf.value < 0:
                raise ValueError(f"se_per_ae[{tier.value}] must be >= 0, got {leaf.value}")
        return merged

    @model_validator(mode="after")
    def _check_ranges(self) -> TeamSizingAssumptions:
        if not 0.0 <= self.reactive_capture_rate.value <= 1.0:
            raise ValueError("reactive_capture_rate must be within [0, 1]")
        if self.ramp_quarters.value < 0 or self.ramp_quarters.value != int(self.ramp_quarters.value):
            raise ValueError("ramp_quarters must be a non-negative whole number")
        if self.target_coverage_count.value < 0:
            raise ValueError("target_coverage_count must be >= 0")
        if not 0.0 < self.rounding_up_threshold.value <= 1.0:
            raise ValueError("rounding_up_threshold must be within (0, 1]")
        return self

    def tam_per_ae_for(self, tier: Tier) -> float:
        return self.tam_per_ae[tier].value

    def se_per_ae_for(self, tier: Tier) -> float:
        return self.se_per_ae[tier].value


# ---------------------------------------------------------------------------
# Penetration schedules
# ---------------------------------------------------------------------------

class PenetrationPoint(_Frozen):
    """Target (and optionally observed) adoption fraction for one product-quarter."""

    target: float = Field(ge=0.0, le=1.0)
    actual: float | None = Field(default=None, ge=0.0, le=1.0)
    provenance: Provenance = Provenance.GLOBAL

    @model_validator(mode="before")
    @classmethod
    def _wrap_scalar(cls, data: Any) -> Any:
        if isinstance(data, (int, float)) and not isinstance(data, bool):
            return {"target": data}
        return data


ProductCurves = dict[Product, dict[str, PenetrationPoint]]


def _check_quarter_labels(curves: ProductCurves) -> ProductCurves:
    for points in curves.values():
        for label in points:
            Quarter.parse(label)
    return curves


class PenetrationSchedule(_Frozen):
    """Three-level penetration map: account overrides, tier defaults, global defaults.

    Keys are ``product -> quarter label -> point``. Overrides may be sparse.
    """

    tier_defaults: dict[Tier, ProductCurves] = Field(default_factory=dict)
    global_defaults: ProductCurves = Field(default_factory=dict)
    account_overrides: dict[str, ProductCurves] = Field(default_factory=dict)

    @field_validator("tier_defaults", "account_overrides", mode="after")
    @classmethod
    def _check_nested_labels(cls, v: dict) -> dict:
        for curves in v.values():
            _check_quarter_labels(curves)
        return v

    @field_validator("global_defaults", mode="after")
    @classmethod
    def _check_global_labels(cls, v: ProductCurves) -> ProductCurves:
        return _check_quarter_labels(v)


# ---------------------------------------------------------------------------
# Assumption set
# ---------------------------------------------------------------------------

class AssumptionSet(_Frozen):
    """A versioned, immutable snapshot of every assumption the engine consumes."""

    version: str = "default"
    horizon_start_year: int = defaults.DEFAULT_HORIZON_START_YEAR
    products: ProductAssumptions = Field(default_factory=ProductAssumptions)
    account_overrides: dict[str, dict[str, dict[str, AssumptionValue]]] = Field(
        default_factory=dict,
        description="account id -> product -> field -> value (partial)",
    )
    tier_thresholds: TierThresholds = Field(default_factory=TierThresholds)
    team_sizing: TeamSizingAssumptions = Field(default_factory=TeamSizingAssumptions)
    penetration: PenetrationSchedule = Field(default_factory=PenetrationSchedule)

    @model_validator(mode="before")
    @classmethod
    def _fill_segment_defaults(cls, data: Any) -> Any:
        """Tiers missing from the penetration schedule get the documented default curves."""
        from tam.penetration import default_segment_schedule

        if not isinstance(data, dict):
            return data
        data = dict(data)
        start_year = data.get("horizon_start_year", defaults.DEFAULT_HORIZON_START_YEAR)
        penetration = data.get("penetration")
        if isinstance(penetration, PenetrationSchedule):
            penetration = penetration.model_dump()
        penetration = dict(penetration or {})
        tier_defaults = dict(penetration.get("tier_defaults") or {})
        given = {Tier(t) if not isinstance(t, Tier) else t for t in tier_defaults}
        for tier, curves in default_segment_schedule(start_year).items():
            if tier not in given:
                tier_defaults[tier] = curves
        penetration["tier_defaults"] = tier_defaults
        data["penetration"] = penetration
        return data

    @field_validator("account_overrides", mode="after")
    @classmethod
    def _check_overrides(cls, v: dict) -> dict:
        for fields in v.values():
            validate_override_keys(fields)
        return v

    @property
    def horizon(self) -> Horizon:
        return Horizon(start_year=self.horizon_start_year)

    def products_for(self, account_id: str) -> ProductAssumptions:
        """Product assumptions for one account, account overrides applied."""
        return self.products.with_overrides(self.account_overrides.get(account_id, {}))

    def has_overrides(self, account_id: str) -> bool:
        return bool(self.account_overrides.get(account_id)) or bool(
            self.penetration.account_overrides.get(account_id)
        )


# ---------------------------------------------------------------------------
# Roster
# ---------------------------------------------------------------------------

class TeamMember(_Frozen):
    """An AE or SE, on staff or planned, with explicit account assignments."""

    id: str
    name: str = ""
    role: Role
    active: bool = True
    hire_quarter: str | None = Field(
        default=None, description="Start quarter for future hires; None means on staff and ramped"
    )
    assigned_tier: Tier | None = None
    account_assignments: tuple[str, ...] = ()

    @field_validator("hire_quarter", mode="after")
    @classmethod
    def _check_hire_quarter(cls, v: str | None) -> str | None:
        if v is not None:
            Quarter.parse(v)
        return v

    @field_validator("account_assignments", mode="before")
    @classmethod
    def _ids_as_str(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return tuple(str(a) for a in v)
        return v

    @property
    def start(self) -> Quarter | None:
        return Quarter.parse(self.hire_quarter) if self.hire_quarter else None

    def on_staff(self, quarter: Quarter) -> bool:
        """True if the member is active and has started by ``quarter``."""
        if not self.active:
            return False
        start = self.start
        return start is None or start <= quarter


class RoleCount(_Frozen):
    aes: int = Field(default=0, ge=0)
    ses: int = Field(default=0, ge=0)


class HiringPlanEntry(_Frozen):
    """Unassigned hires starting in one quarter, by tier."""

    quarter: str
    by_tier: dict[Tier, RoleCount] = Field(default_factory=dict)
    notes: str = ""

    @field_validator("quarter", mode="after")
    @classmethod
    def _check_quarter(cls, v: str) -> str:
        Quarter.parse(v)
        return v

    def totals(self) -> RoleCount:
        return RoleCount(
            aes=sum(c.aes for c in self.by_tier.values()),
            ses=sum(c.ses for c in self.by_tier.values()),
        )


class Roster(_Frozen):
    members: tuple[TeamMember, ...] = ()
    hiring_plan: tuple[HiringPlanEntry, ...] = ()
    accounts_per_ae: dict[Tier, int] = Field(
        default_factory=lambda: {t: defaults.DEFAULT_ACCOUNTS_PER_AE[t.value] for t in TIER_ORDER}
    )

    @model_validator(mode="after")
    def _unique_keys(self) -> Roster:
        ids = [m.id for m in self.members]
        if len(ids) != len(set(ids)):
            raise ValueError("Roster member ids must be unique")
        quarters = [e.quarter for e in self.hiring_plan]
        if len(quarters) != len(set(quarters)):
            raise ValueError("Hiring plan has more than one entry for a quarter")
        return self

    def hires_in(self, quarter: Quarter) -> dict[Tier, RoleCount]:
        for entry in self.hiring_plan:
            if entry.quarter == quarter.label:
                return entry.by_tier
        return {}

    def accounts_per_ae_for(self, tier: Tier) -> int:
        return self.accounts_per_ae.get(tier, defaults.DEFAULT_ACCOUNTS_PER_AE[tier.value])


# ---------------------------------------------------------------------------
# Engine input bundle
# ---------------------------------------------------------------------------

class PlanningInputs(_Frozen):
    """Everything one report is computed from. Copy, never mutate, for scenarios."""

    accounts: tuple[Account, ...] = ()
    assumptions: AssumptionSet = Field(default_factory=AssumptionSet)
    roster: Roster = Field(default_factory=Roster)
    target_coverage_count: int | None = Field(
        default=None, ge=0, description="Scenario override for team_sizing.target_coverage_count"
    )

    @model_validator(mode="after")
    def _unique_accounts(self) -> PlanningInputs:
        ids = [a.id for a in self.accounts]
        if len(ids) != len(set(ids)):
            raise ValueError("Account ids must be unique within a snapshot")
        return self

    @property
    def coverage_count(self) -> int:
        if self.target_coverage_count is not None:
            return self.target_coverage_count
        return int(self.assumptions.team_sizing.target_coverage_count.value)

    def with_coverage_count(self, count: int) -> PlanningInputs:
        if count < 0:
            raise ValueError(f"Coverage count must be >= 0, got {count}")
        return self.model_copy(update={"target_coverage_count": count})
