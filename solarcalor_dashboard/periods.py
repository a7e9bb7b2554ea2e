"""
Period selection and membership.

A PeriodSelector holds one value per granularity (``YYYY-MM``, ``YYYY-Qn``,
``YYYY``) and a flag naming the active one. Switching granularity keeps
the other two values so the user can toggle back. Quarters are numbered
Q1 = January-March throughout.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Any

import pandas as pd

from .loaders.utils import parse_date

logger = logging.getLogger(__name__)

GRANULARITIES = ("month", "quarter", "year")

_KEY_PREFIX = {"month": "M", "quarter": "Q", "year": "Y"}


def quarter_of(ts: pd.Timestamp | date) -> int:
    """Quarter number (1-4) for a calendar date."""
    return (ts.month - 1) // 3 + 1


def month_label(ts: pd.Timestamp | date) -> str:
    return f"{ts.year:04d}-{ts.month:02d}"


def quarter_label(ts: pd.Timestamp | date) -> str:
    return f"{ts.year:04d}-Q{quarter_of(ts)}"


def year_label(ts: pd.Timestamp | date) -> str:
    return f"{ts.year:04d}"


@dataclass(frozen=True)
class PeriodSelector:
    """Active granularity plus the stored value for each granularity."""

    granularity: str
    month: str
    quarter: str
    year: str

    def __post_init__(self) -> None:
        if self.granularity not in GRANULARITIES:
            raise ValueError(
                f"granularity must be one of {GRANULARITIES}, got {self.granularity!r}"
            )

    @classmethod
    def for_date(cls, today: date | None = None, granularity: str = "month") -> "PeriodSelector":
        """Selector pointing at the month, quarter and year containing ``today``."""
        today = today or date.today()
        return cls(
            granularity=granularity,
            month=month_label(today),
            quarter=quarter_label(today),
            year=year_label(today),
        )

    @classmethod
    def from_dict(cls, data: dict, today: date | None = None) -> "PeriodSelector":
        """Build from persisted values; anything missing defaults to ``today``."""
        base = cls.for_date(today)
        granularity = data.get("granularity") or base.granularity
        if granularity not in GRANULARITIES:
            logger.warning("Ignoring unknown period granularity %r", granularity)
            granularity = base.granularity
        return cls(
            granularity=granularity,
            month=str(data.get("month") or base.month),
            quarter=str(data.get("quarter") or base.quarter),
            year=str(data.get("year") or base.year),
        )

    def to_dict(self) -> dict:
        return {
            "granularity": self.granularity,
            "month": self.month,
            "quarter": self.quarter,
            "year": self.year,
        }

    @property
    def value(self) -> str:
        """The value of the active granularity."""
        return getattr(self, self.granularity)

    @property
    def key(self) -> str:
        """Compact period key, e.g. ``M-2025-07``, ``Q-2025-Q3``, ``Y-2025``."""
        return f"{_KEY_PREFIX[self.granularity]}-{self.value}"

    def with_granularity(self, granularity: str) -> "PeriodSelector":
        return replace(self, granularity=granularity)

    def with_value(self, value: str) -> "PeriodSelector":
        """Replace the value of the active granularity only."""
        return replace(self, **{self.granularity: value})


def _matches(ts: pd.Timestamp, selector: PeriodSelector) -> bool:
    if selector.granularity == "month":
        year, month = selector.month.split("-")
        return ts.year == int(year) and ts.month == int(month)
    if selector.granularity == "quarter":
        year, quarter = selector.quarter.split("-Q")
        return ts.year == int(year) and quarter_of(ts) == int(quarter)
    return ts.year == int(selector.year)


def in_period(date_value: Any, selector: PeriodSelector) -> bool:
    """True when ``date_value`` falls inside the selector's active period.

    Unparseable dates, and selector values that cannot be read, are
    excluded rather than raised.
    """
    ts = parse_date(date_value)
    if ts is None:
        return False
    try:
        return _matches(ts, selector)
    except ValueError:
        logger.warning("Malformed %s selector value: %r", selector.granularity, selector.value)
        return False
