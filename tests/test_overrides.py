"""
Tests for solarcalor_dashboard/overrides.py
===========================================
Covers:
  - the two-step override rule, including the manual-zero fall-through
  - manual override coercion
  - uploaded totals row matching
  - marketing and business KPI resolution with labels and source tiers
"""

import math

import pytest

from solarcalor_dashboard.config import BUSINESS_KPI_FIELDS, PRODUCTS
from solarcalor_dashboard.kpis import compute_crm, compute_paid, compute_web
from solarcalor_dashboard.overrides import (
    coerce_override,
    marketing_computed,
    match_totals_row,
    resolve,
    resolve_business_kpis,
    resolve_marketing_kpis,
    resolve_with_source,
)
from solarcalor_dashboard.sample_data import SAMPLE_CRM, SAMPLE_PAID, SAMPLE_WEB
from solarcalor_dashboard.store import DashboardConfig

HEATING, DESCALER = PRODUCTS


def _heating(rows):
    return [r for r in rows if r["product"] == HEATING]


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "manual, uploaded, computed, expected",
    [
        (None, 80, 100, 80),
        (0, 80, 100, 100),     # manual 0 beats uploaded, then falls through
        (25, 80, 100, 25),
        (None, 0, 100, 100),
        (None, 0, 0, 0),
        (-5, 80, 100, -5),
    ],
)
def test_resolve(manual, uploaded, computed, expected):
    assert resolve(manual, uploaded, computed) == expected


def test_resolve_nan_falls_through_to_computed():
    assert resolve(float("nan"), 80, 100) == 100
    assert resolve(None, float("nan"), 100) == 100


def test_resolve_with_source_reports_tier():
    assert resolve_with_source(25, 80, 100) == (25, "manual")
    assert resolve_with_source(None, 80, 100) == (80, "uploaded")
    assert resolve_with_source(0, 80, 100) == (100, "computed")


# ---------------------------------------------------------------------------
# coerce_override
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, None),
        ("", None),
        ("  ", None),
        ("abc", None),
        (True, None),
        ("inf", None),
        ("42", 42.0),
        (" 7.5 ", 7.5),
        (0, 0.0),
        (12, 12.0),
    ],
)
def test_coerce_override(raw, expected):
    assert coerce_override(raw) == expected


# ---------------------------------------------------------------------------
# match_totals_row
# ---------------------------------------------------------------------------

def test_match_totals_row_case_insensitive_type(july):
    rows = [{"product": HEATING, "period_type": " Month ", "period_value": "2025-07", "leads": "80"}]
    assert match_totals_row(rows, HEATING, july) is rows[0]


def test_match_totals_row_first_match_wins(july):
    rows = [
        {"product": HEATING, "period_type": "month", "period_value": "2025-07", "leads": "80"},
        {"product": HEATING, "period_type": "month", "period_value": "2025-07", "leads": "95"},
    ]
    assert match_totals_row(rows, HEATING, july)["leads"] == "80"


def test_match_totals_row_requires_product_and_period(july):
    rows = [
        {"product": DESCALER, "period_type": "month", "period_value": "2025-07"},
        {"product": HEATING, "period_type": "quarter", "period_value": "2025-07"},
        {"product": HEATING, "period_type": "month", "period_value": "2025-06"},
    ]
    assert match_totals_row(rows, HEATING, july) is None


def test_match_totals_row_follows_active_granularity(july):
    rows = [{"product": HEATING, "period_type": "quarter", "period_value": "2025-Q3"}]
    assert match_totals_row(rows, HEATING, july) is None
    assert match_totals_row(rows, HEATING, july.with_granularity("quarter")) is rows[0]


# ---------------------------------------------------------------------------
# Marketing KPIs
# ---------------------------------------------------------------------------

def _marketing_computed():
    crm_rows = _heating(SAMPLE_CRM)
    return marketing_computed(compute_crm(crm_rows), crm_rows)


def test_marketing_computed_from_sample():
    assert _marketing_computed() == {"leads": 2, "mql": 2, "sql3": 1, "customers": 2}


def test_marketing_sql3_falls_back_to_sql_count():
    rows = [{"sql_date": "2025-07-05", "call_duration_min": 1}]
    assert marketing_computed(compute_crm(rows), rows)["sql3"] == 1


def test_marketing_kpis_computed_without_overrides(config):
    kpis = resolve_marketing_kpis(config, None, _marketing_computed())
    assert list(kpis) == ["leads", "mql", "sql3", "customers"]
    assert kpis["leads"].value == 2
    assert kpis["leads"].source == "computed"
    assert kpis["sql3"].label == "SQL ≥3m"
    assert not kpis["leads"].overridden


def test_marketing_kpis_uploaded_totals_and_manual(config):
    totals = {"leads": "80", "mql": "", "sql_3min": "12", "customers": "0"}
    config = config.with_override("marketing", "sql3", "5").with_label("marketing", "leads", "Contatti")
    kpis = resolve_marketing_kpis(config, totals, _marketing_computed())
    assert (kpis["leads"].value, kpis["leads"].source) == (80, "uploaded")
    assert kpis["leads"].label == "Contatti"
    assert (kpis["mql"].value, kpis["mql"].source) == (2, "computed")
    assert (kpis["sql3"].value, kpis["sql3"].source) == (5, "manual")
    assert (kpis["customers"].value, kpis["customers"].source) == (2, "computed")


def test_marketing_manual_zero_falls_through_to_computed(config):
    config = config.with_override("marketing", "leads", "0")
    kpis = resolve_marketing_kpis(config, {"leads": "80"}, _marketing_computed())
    assert kpis["leads"].value == 2
    assert kpis["leads"].source == "computed"


# ---------------------------------------------------------------------------
# Business KPIs
# ---------------------------------------------------------------------------

def _business(config, totals=None, paid_rows=None, web_rows=None, crm_rows=None):
    return resolve_business_kpis(
        config,
        totals,
        compute_paid(_heating(SAMPLE_PAID) if paid_rows is None else paid_rows),
        compute_web(_heating(SAMPLE_WEB) if web_rows is None else web_rows),
        compute_crm(_heating(SAMPLE_CRM) if crm_rows is None else crm_rows),
    )


def test_business_kpis_from_sample(config):
    kpis = _business(config)
    assert list(kpis) == list(BUSINESS_KPI_FIELDS)
    assert kpis["revenue"].value == 75900
    assert kpis["spend"].value == 1470
    assert kpis["customers"].value == 68
    assert kpis["profit"].value == 74430
    assert kpis["roas"].value == pytest.approx(75900 / 1470)
    assert kpis["margin"].value == pytest.approx(74430 / 75900)
    assert all(k.source == "computed" for k in kpis.values())


def test_business_falls_back_to_crm_without_web_data(config):
    kpis = _business(config, web_rows=[])
    assert kpis["revenue"].value == 2400
    assert kpis["customers"].value == 2
    assert kpis["profit"].value == 930


def test_business_profit_never_negative(config):
    kpis = _business(config, web_rows=[], crm_rows=[])
    assert kpis["revenue"].value == 0
    assert kpis["profit"].value == 0
    assert kpis["margin"].value == 0
    assert all(math.isfinite(k.value) for k in kpis.values())


def test_business_derived_values_use_resolved_inputs(config):
    totals = {"revenue": "10000", "spend": "2000", "margin_pct": "0.5"}
    kpis = _business(config, totals)
    assert kpis["revenue"].source == "uploaded"
    assert kpis["profit"].value == 8000
    assert kpis["roas"].value == 5
    assert (kpis["margin"].value, kpis["margin"].source) == (0.5, "uploaded")


def test_business_manual_override(config):
    kpis = _business(config.with_override("business", "spend", 1000))
    assert (kpis["spend"].value, kpis["spend"].source) == (1000, "manual")
    assert kpis["profit"].value == 74900
