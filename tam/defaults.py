"""
Documented defaults for every assumption the engine reads.

Nothing downstream hardcodes a number: a missing field in an assumption file
is filled from here and tagged with ``Provenance.DEFAULT`` so reports can show
which values were never set explicitly.
"""

from __future__ import annotations

# --- Planning horizon ---
DEFAULT_HORIZON_START_YEAR = 2026
HORIZON_YEARS = 3
QUARTERS_PER_YEAR = 4

# --- Product pricing (actual currency units) ---
DEVELOPER_SEAT_PRICE_PER_MONTH = 150.0
DEVELOPER_ELIGIBILITY_RATE = 0.15          # share of FTE who are developers
ENTERPRISE_SEAT_PRICE_PER_MONTH = 35.0
ENTERPRISE_ADOPTION_RATE = 1.0
AGENTS_PER_EMPLOYEE = 5.0
AGENT_PRICE_PER_MONTH = 1000.0
REVENUE_SHARE_FRACTION = 0.30              # revenue influenced by agents
PLATFORM_SHARE_FRACTION = 0.20             # our share of that revenue

# --- Tier thresholds on total assets (actual currency units) ---
MEGA_TIER_THRESHOLD = 1_000_000_000_000.0        # $1T
STRATEGIC_TIER_THRESHOLD = 100_000_000_000.0     # $100B
ENTERPRISE_TIER_THRESHOLD = 30_000_000_000.0     # $30B
COMMERCIAL_TIER_THRESHOLD = 10_000_000_000.0     # $10B

# --- Team sizing ---
DEFAULT_TARGET_COVERAGE_COUNT = 100

DEFAULT_TAM_PER_AE: dict[str, float] = {
    "Mega": 1_000_000_000.0,
    "Strategic": 500_000_000.0,
    "Enterprise": 300_000_000.0,
    "Commercial": 200_000_000.0,
    "SmallBusiness": 200_000_000.0,
}

DEFAULT_SE_PER_AE: dict[str, float] = {
    "Mega": 1.0,
    "Strategic": 1.0,
    "Enterprise": 0.5,
    "Commercial": 0.25,
    "SmallBusiness": 0.25,
}

# Fractional part at or above which a share >= 1 rounds up instead of down.
AGGRESSIVE_ROUNDING_THRESHOLD = 0.75

# --- Capacity ---
DEFAULT_REACTIVE_CAPTURE_RATE = 0.10
DEFAULT_RAMP_QUARTERS = 2
DEFAULT_RAMP_CURVE = "linear"
# Order in which unassigned covered accounts compete for remaining capacity.
DEFAULT_GREEDY_ORDER = "tam_desc"

DEFAULT_ACCOUNTS_PER_AE: dict[str, int] = {
    "Mega": 1,
    "Strategic": 2,
    "Enterprise": 5,
    "Commercial": 10,
    "SmallBusiness": 25,
}

# --- Penetration curves ---
# Base quarterly targets (Enterprise tier) for a 12-quarter horizon.
BASE_PENETRATION_RATES: dict[str, tuple[float, ...]] = {
    "developer_seat": (0.02, 0.04, 0.06, 0.08, 0.10, 0.12, 0.14, 0.16, 0.18, 0.20, 0.22, 0.25),
    "enterprise_seat": (0.01, 0.02, 0.04, 0.06, 0.08, 0.10, 0.12, 0.14, 0.16, 0.17, 0.18, 0.20),
    "per_employee_agent": (0, 0, 0, 0, 0.01, 0.02, 0.03, 0.04, 0.05, 0.06, 0.08, 0.10),
    "revenue_share_agent": (0, 0, 0, 0, 0, 0, 0, 0, 0.005, 0.01, 0.02, 0.05),
}

# Tier multipliers applied to the base rates (result capped at 1.0).
SEGMENT_PENETRATION_MULTIPLIERS: dict[str, float] = {
    "Mega": 1.5,
    "Strategic": 1.25,
    "Enterprise": 1.0,
    "Commercial": 0.75,
    "SmallBusiness": 0.5,
}
