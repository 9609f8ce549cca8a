"""Fiscal quarters and the 12-quarter planning horizon."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import cached_property

from tam.defaults import DEFAULT_HORIZON_START_YEAR, HORIZON_YEARS, QUARTERS_PER_YEAR

_LABEL_RE = re.compile(r"^(\d{4})-Q([1-4])$")


@dataclass(frozen=True, order=True)
class Quarter:
    """A fiscal quarter, ordered by (year, number). Label form: ``2026-Q1``."""

    year: int
    number: int

    def __post_init__(self) -> None:
        if not 1 <= self.number <= QUARTERS_PER_YEAR:
            raise ValueError(f"Quarter number must be 1-4, got {self.number}")

    @classmethod
    def parse(cls, label: str) -> Quarter:
        match = _LABEL_RE.match(label.strip())
        if not match:
            raise ValueError(f"Invalid quarter label: {label!r} (expected e.g. '2026-Q1')")
        return cls(int(match.group(1)), int(match.group(2)))

    @property
    def label(self) -> str:
        return f"{self.year}-Q{self.number}"

    @property
    def is_year_end(self) -> bool:
        return self.number == QUARTERS_PER_YEAR

    def quarters_since(self, other: Quarter) -> int:
        """Number of quarters from ``other`` to ``self`` (negative if other is later)."""
        return (self.year - other.year) * QUARTERS_PER_YEAR + (self.number - other.number)

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class Horizon:
    """Contiguous planning horizon of whole fiscal years starting at Q1."""

    start_year: int = DEFAULT_HORIZON_START_YEAR
    years: int = HORIZON_YEARS

    @cached_property
    def quarters(self) -> tuple[Quarter, ...]:
        return tuple(
            Quarter(self.start_year + y, n)
            for y in range(self.years)
            for n in range(1, QUARTERS_PER_YEAR + 1)
        )

    @cached_property
    def labels(self) -> tuple[str, ...]:
        return tuple(q.label for q in self.quarters)

    @property
    def fiscal_years(self) -> tuple[int, ...]:
        return tuple(range(self.start_year, self.start_year + self.years))

    @property
    def first(self) -> Quarter:
        return self.quarters[0]

    def quarters_in_year(self, year: int) -> tuple[Quarter, ...]:
        return tuple(q for q in self.quarters if q.year == year)

    def year_end(self, year: int) -> Quarter:
        if year not in self.fiscal_years:
            raise ValueError(f"Year {year} is outside the horizon {self.labels[0]}..{self.labels[-1]}")
        return Quarter(year, QUARTERS_PER_YEAR)

    def contains(self, quarter: Quarter) -> bool:
        return self.quarters[0] <= quarter <= self.quarters[-1]

    def __len__(self) -> int:
        return len(self.quarters)

    def __iter__(self):
        return iter(self.quarters)
