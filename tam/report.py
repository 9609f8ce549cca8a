"""Pydantic output models produced by the TAM pipeline stages."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from tam.models import Product, Provenance, Tier


class RevenueSource(str, Enum):
    """Which figure annual revenue was taken from."""

    FISCAL_YEAR_END = "fiscal_year_end"
    ANNUALIZED_QUARTER = "annualized_quarter"
    MISSING = "missing"


class CoverageType(str, Enum):
    ASSIGNED = "assigned"
    DEDICATED = "dedicated"
    REACTIVE = "reactive"


class _Result(BaseModel):
    """Stage outputs are immutable once built."""

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------

class DataQualityGap(_Result):
    """An account whose financial inputs were incomplete."""

    account_id: str
    missing_fields: list[str] = Field(default_factory=list)
    note: str = ""


class AuditWarning(_Result):
    code: str  # e.g. "capacity_clamped", "assignment_outside_coverage"
    message: str
    quarter: str | None = None
    account_id: str | None = None


# ---------------------------------------------------------------------------
# TAM and projections
# ---------------------------------------------------------------------------

class AccountTam(_Result):
    """Annual TAM for one account, by product. Components are unrounded."""

    account_id: str
    tier: Tier
    components: dict[Product, float]
    total: float
    annual_revenue: float = 0.0
    revenue_source: RevenueSource = RevenueSource.MISSING
    product_share: dict[Product, float | None] = Field(default_factory=dict)
    tam_as_opex_pct: float | None = None
    has_overrides: bool = False


class ResolvedPenetration(_Result):
    target: float
    actual: float | None = None
    provenance: Provenance  # level of the hierarchy that answered
    source: Provenance = Provenance.UNSET  # tag carried on the point itself


class ProductQuarterRevenue(_Result):
    revenue: float
    penetration: float
    provenance: Provenance


class QuarterRevenue(_Result):
    quarter: str
    by_product: dict[Product, ProductQuarterRevenue]
    total: float
    blended_penetration: float | None = None  # None when the account has no TAM


class AccountProjection(_Result):
    account_id: str
    tier: Tier
    quarters: list[QuarterRevenue] = Field(default_factory=list)
    three_year_achievable: float = 0.0
    run_rate_by_year: dict[int, float] = Field(
        default_factory=dict, description="Q4 quarterly revenue x 4, by fiscal year"
    )

    def quarter(self, label: str) -> QuarterRevenue:
        for q in self.quarters:
            if q.quarter == label:
                return q
        raise KeyError(label)


# ---------------------------------------------------------------------------
# Coverage and team sizing
# ---------------------------------------------------------------------------

class CoverageSummary(_Result):
    target_count: int
    covered_count: int = 0
    uncovered_count: int = 0
    total_count: int = 0
    tam_covered: float = 0.0
    tam_uncovered: float = 0.0
    total_tam: float = 0.0
    coverage_pct: float | None = None
    assets_covered: float = 0.0
    assets_uncovered: float = 0.0
    three_year_covered: float = 0.0
    three_year_uncovered: float = 0.0


class CoverageSelection(_Result):
    summary: CoverageSummary
    covered_ids: list[str] = Field(default_factory=list)
    uncovered_ids: list[str] = Field(default_factory=list)


class AccountTeamShare(_Result):
    """Per-account AE/SE requirement before (raw) and after rounding."""

    account_id: str
    tier: Tier
    tam: float
    ae_raw: float
    se_raw: float
    ae_share: float
    se_share: float

    @property
    def total_share(self) -> float:
        return self.ae_share + self.se_share


class TierTeamSizing(_Result):
    tier: Tier
    account_count: int = 0
    tam: float = 0.0
    total_assets: float = 0.0
    three_year_achievable: float = 0.0
    tam_per_ae: float
    se_per_ae: float
    aes_needed: float = 0.0  # sum of rounded per-account shares
    ses_needed: float = 0.0
    total_headcount: float = 0.0


class TeamTotals(_Result):
    aes: float = 0.0
    ses: float = 0.0
    total: float = 0.0
    se_to_ae_ratio: float = 0.0


class WorksheetInputs(_Result):
    """Aggregate inputs behind the covered-portfolio TAM worksheet."""

    total_fte: float = 0.0
    total_net_income: float = 0.0
    developers: int = 0
    enterprise_seats: int = 0
    total_agents: int = 0


class TeamSizingResult(_Result):
    by_account: dict[str, AccountTeamShare] = Field(default_factory=dict)
    by_tier: dict[Tier, TierTeamSizing] = Field(default_factory=dict)
    totals: TeamTotals = Field(default_factory=TeamTotals)
    worksheet: WorksheetInputs = Field(default_factory=WorksheetInputs)


# ---------------------------------------------------------------------------
# Capacity
# ---------------------------------------------------------------------------

class TierCapacity(_Result):
    total_aes: int = 0
    total_ses: int = 0
    effective_aes: float = 0.0
    effective_ses: float = 0.0


class QuarterCapacity(_Result):
    quarter: str
    total_aes: int = 0
    total_ses: int = 0
    total_headcount: int = 0
    effective_aes: float = 0.0
    effective_ses: float = 0.0
    effective_headcount: float = 0.0
    new_hires_ae: int = 0
    new_hires_se: int = 0
    ae_utilization: float | None = None  # None with no headcount
    se_utilization: float | None = None
    by_tier: dict[Tier, TierCapacity] = Field(default_factory=dict)


class CapacityTimeline(_Result):
    ramp_quarters: int
    ramp_curve: str
    quarters: list[QuarterCapacity] = Field(default_factory=list)

    def at(self, label: str) -> QuarterCapacity:
        for q in self.quarters:
            if q.quarter == label:
                return q
        raise KeyError(label)


class AccountQuarterCoverage(_Result):
    account_id: str
    tier: Tier
    coverage_type: CoverageType
    coverage_ratio: float  # fraction of potential captured
    potential: float
    captured: float
    ae_allocation: float = 0.0
    se_allocation: float = 0.0
    assigned_member_ids: list[str] = Field(default_factory=list)


class QuarterAllocation(_Result):
    quarter: str
    total_aes: int = 0
    total_ses: int = 0
    effective_aes: float = 0.0
    effective_ses: float = 0.0
    assigned_aes: int = 0
    assigned_ses: int = 0
    assigned_ae_capacity: float = 0.0  # ramp-weighted effective capacity the assigned AEs consume
    assigned_se_capacity: float = 0.0
    greedy_aes_used: float = 0.0
    greedy_ses_used: float = 0.0
    remaining_aes: float = 0.0
    remaining_ses: float = 0.0
    assigned_count: int = 0
    dedicated_count: int = 0
    reactive_count: int = 0
    full_potential: float = 0.0
    assigned_revenue: float = 0.0
    dedicated_revenue: float = 0.0
    reactive_revenue: float = 0.0
    captured_revenue: float = 0.0
    capture_rate: float = 0.0
    accounts: list[AccountQuarterCoverage] = Field(default_factory=list)

    def coverage_for(self, account_id: str) -> AccountQuarterCoverage:
        for c in self.accounts:
            if c.account_id == account_id:
                return c
        raise KeyError(account_id)


class CapacityAllocationResult(_Result):
    timeline: CapacityTimeline
    quarters: list[QuarterAllocation] = Field(default_factory=list)
    account_assignments: dict[str, list[str]] = Field(
        default_factory=dict, description="account id -> assigned member ids"
    )
    reactive_capture_rate: float = 0.0
    warnings: list[AuditWarning] = Field(default_factory=list)

    def quarter(self, label: str) -> QuarterAllocation:
        for q in self.quarters:
            if q.quarter == label:
                return q
        raise KeyError(label)


class AeAssignment(_Result):
    """Accounts one AE (on staff or a planned hire) would carry."""

    ae_number: int
    member_id: str | None = None  # None for planned hires
    is_existing_member: bool = False
    account_ids: list[str] = Field(default_factory=list)
    total_tam: float = 0.0


class TierAssignmentPlan(_Result):
    tier: Tier
    total_aes: int = 0
    accounts_per_ae: int
    total_accounts: int = 0
    covered_account_count: int = 0
    uncovered_account_count: int = 0
    covered_tam: float = 0.0
    uncovered_tam: float = 0.0
    ae_assignments: list[AeAssignment] = Field(default_factory=list)
    uncovered_account_ids: list[str] = Field(default_factory=list)


class AssignmentPlan(_Result):
    quarter: str
    headcount: QuarterCapacity
    by_tier: dict[Tier, TierAssignmentPlan] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Rollups
# ---------------------------------------------------------------------------

class TierQuarterRollup(_Result):
    tier: Tier
    quarter: str
    potential: float = 0.0
    captured: float = 0.0
    by_product: dict[Product, float] = Field(default_factory=dict)


class YearRollup(_Result):
    """Year figures. ``potential``/``captured`` sum four quarters; the RRR fields are Q4 x 4."""

    year: int
    potential: float = 0.0
    captured: float = 0.0
    capture_rate: float = 0.0
    potential_rrr: float = 0.0
    adjusted_rrr: float = 0.0


class TierYearRollup(YearRollup):
    tier: Tier


class HorizonTotal(_Result):
    potential: float = 0.0
    captured: float = 0.0
    capture_rate: float = 0.0


class OperatingExpenseCheck(_Result):
    """Covered TAM and run-rate revenue measured against the accounts' operating expense."""

    total_covered_opex: float = 0.0
    salaries_and_benefits: float = 0.0
    premises: float = 0.0
    other: float = 0.0
    total_covered_tam: float = 0.0
    tam_as_opex_pct: float | None = None
    rrr_as_opex_pct: dict[int, float | None] = Field(default_factory=dict)


class RollupResult(_Result):
    by_tier_quarter: list[TierQuarterRollup] = Field(default_factory=list)
    by_tier_year: list[TierYearRollup] = Field(default_factory=list)
    by_year: list[YearRollup] = Field(default_factory=list)
    total: HorizonTotal = Field(default_factory=HorizonTotal)
    quarterly_potential_by_product: dict[str, dict[Product, float]] = Field(default_factory=dict)
    operating_expense: OperatingExpenseCheck = Field(default_factory=OperatingExpenseCheck)

    def year(self, year: int) -> YearRollup:
        for y in self.by_year:
            if y.year == year:
                return y
        raise KeyError(year)


# ---------------------------------------------------------------------------
# Final report
# ---------------------------------------------------------------------------

class AccountDetail(_Result):
    account_id: str
    name: str = ""
    tier: Tier
    total_assets: float = 0.0
    fte: float = 0.0
    covered: bool = False
    tam: AccountTam
    three_year_achievable: float = 0.0
    run_rate_by_year: dict[int, float] = Field(default_factory=dict)
    ae_share: float | None = None
    se_share: float | None = None
    assigned_member_ids: list[str] = Field(default_factory=list)


class TamReport(_Result):
    """Structured allocation report consumed by the presentation layer."""

    assumptions_version: str
    horizon: list[str]
    coverage: CoverageSummary
    team_by_tier: dict[Tier, TierTeamSizing] = Field(default_factory=dict)
    team_totals: TeamTotals = Field(default_factory=TeamTotals)
    worksheet: WorksheetInputs = Field(default_factory=WorksheetInputs)
    accounts: list[AccountDetail] = Field(default_factory=list)
    projections: dict[str, AccountProjection] = Field(default_factory=dict)
    allocation: CapacityAllocationResult
    rollups: RollupResult = Field(default_factory=RollupResult)
    data_quality_gaps: list[DataQualityGap] = Field(default_factory=list)
    warnings: list[AuditWarning] = Field(default_factory=list)

    def account(self, account_id: str) -> AccountDetail:
        for a in self.accounts:
            if a.account_id == account_id:
                return a
        raise KeyError(account_id)
