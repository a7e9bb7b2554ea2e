"""
Tests for solarcalor_dashboard/periods.py
=========================================
Covers quarter numbering, selector toggling and period membership,
including unparseable dates and malformed selector values.
"""

from datetime import date

import pandas as pd
import pytest

from solarcalor_dashboard.periods import PeriodSelector, in_period, quarter_of


def _selector(granularity: str, **values) -> PeriodSelector:
    base = {"month": "2025-07", "quarter": "2025-Q3", "year": "2025"}
    base.update(values)
    return PeriodSelector(granularity=granularity, **base)


@pytest.mark.parametrize(
    "month, quarter",
    [(1, 1), (3, 1), (4, 2), (6, 2), (7, 3), (9, 3), (10, 4), (12, 4)],
)
def test_quarter_of_uses_q1_january_to_march(month, quarter):
    assert quarter_of(date(2025, month, 1)) == quarter


def test_quarter_selector_matches_july_in_q3():
    assert in_period("2025-07-15", _selector("quarter", quarter="2025-Q3")) is True


def test_quarter_selector_rejects_july_in_q2():
    assert in_period("2025-07-15", _selector("quarter", quarter="2025-Q2")) is False


def test_month_selector_matches_exact_year_and_month():
    sel = _selector("month", month="2025-07")
    assert in_period("2025-07-01", sel)
    assert in_period("2025-07-31", sel)
    assert not in_period("2025-08-01", sel)
    assert not in_period("2024-07-15", sel)


def test_year_selector_matches_calendar_year():
    sel = _selector("year", year="2025")
    assert in_period("2025-01-01", sel)
    assert in_period("2025-12-31", sel)
    assert not in_period("2026-01-01", sel)


def test_quarter_selector_checks_year_too():
    assert not in_period("2024-07-15", _selector("quarter", quarter="2025-Q3"))


@pytest.mark.parametrize(
    "value", ["", None, "not a date", "2025-13-45", float("nan"), "today", "now", " Today "]
)
def test_unparseable_dates_are_excluded(value):
    assert in_period(value, _selector("month")) is False


def test_timestamps_and_datetimes_are_accepted():
    sel = _selector("month")
    assert in_period(pd.Timestamp("2025-07-04"), sel)
    assert in_period(date(2025, 7, 4), sel)


@pytest.mark.parametrize(
    "granularity, values",
    [
        ("month", {"month": "July"}),
        ("quarter", {"quarter": "2025-Qx"}),
        ("quarter", {"quarter": "2025"}),
        ("year", {"year": "twenty"}),
    ],
)
def test_malformed_selector_values_exclude_rather_than_raise(granularity, values):
    assert in_period("2025-07-15", _selector(granularity, **values)) is False


def test_switching_granularity_keeps_other_values():
    sel = _selector("month", month="2025-02", quarter="2024-Q4", year="2023")
    toggled = sel.with_granularity("year").with_granularity("quarter")
    assert toggled.granularity == "quarter"
    assert (toggled.month, toggled.quarter, toggled.year) == ("2025-02", "2024-Q4", "2023")
    assert toggled.value == "2024-Q4"


def test_with_value_only_touches_active_granularity():
    sel = _selector("quarter").with_value("2025-Q1")
    assert sel.quarter == "2025-Q1"
    assert sel.month == "2025-07"


def test_period_keys():
    assert _selector("month").key == "M-2025-07"
    assert _selector("quarter").key == "Q-2025-Q3"
    assert _selector("year").key == "Y-2025"


def test_for_date_points_at_containing_periods():
    sel = PeriodSelector.for_date(date(2025, 11, 3))
    assert sel.granularity == "month"
    assert (sel.month, sel.quarter, sel.year) == ("2025-11", "2025-Q4", "2025")


def test_from_dict_fills_missing_values_from_today():
    sel = PeriodSelector.from_dict({"granularity": "year", "year": "2024"}, today=date(2025, 7, 15))
    assert sel.value == "2024"
    assert sel.month == "2025-07"
    assert sel.quarter == "2025-Q3"


def test_from_dict_ignores_unknown_granularity():
    sel = PeriodSelector.from_dict({"granularity": "week"}, today=date(2025, 7, 15))
    assert sel.granularity == "month"


def test_invalid_granularity_raises():
    with pytest.raises(ValueError):
        PeriodSelector(granularity="week", month="2025-07", quarter="2025-Q3", year="2025")


@pytest.mark.parametrize("granularity", ["month", "quarter", "year"])
def test_relative_date_words_never_match_current_period(granularity):
    current = PeriodSelector.for_date(granularity=granularity)
    for word in ("today", "now", "yesterday", "tomorrow"):
        assert in_period(word, current) is False
