"""
Tests for solarcalor_dashboard/sample_data.py
=============================================
Covers the shape of the built-in demo rows and of the seeded generators,
and that generated rows flow through the calculators cleanly.
"""

import math

from solarcalor_dashboard.config import CANONICAL_FIELDS, DATASETS, PRODUCTS
from solarcalor_dashboard.kpis import compute_crm, compute_paid, count_sql3
from solarcalor_dashboard.sample_data import (
    SAMPLE_DATASETS,
    generate_crm_leads,
    generate_paid_rows,
)

HEATING = PRODUCTS[0]


def test_sample_datasets_cover_every_category():
    assert set(SAMPLE_DATASETS) == set(DATASETS)


def test_sample_rows_use_canonical_fields():
    for dataset in ("paid", "lp", "web", "crm"):
        for row in SAMPLE_DATASETS[dataset]:
            assert set(row) <= set(CANONICAL_FIELDS[dataset])


def test_generate_paid_rows_shape():
    rows = generate_paid_rows("2025-07-07", 4, HEATING)
    assert len(rows) == 8  # two channels per week
    assert {r["channel"] for r in rows} == {"Google", "Meta"}
    assert all(r["product"] == HEATING for r in rows)
    assert rows[0]["date"] == "2025-07-07"
    assert all(r["customers"] <= r["leads"] <= r["clicks"] for r in rows)

    metrics = compute_paid(rows)
    assert metrics["spend"] > 0
    assert all(math.isfinite(v) for v in metrics.values())


def test_generate_crm_leads_stage_order():
    rows = generate_crm_leads("2025-07-01", 30, 4.0, HEATING)
    assert rows
    for r in rows:
        if r["sql_date"]:
            assert r["mql_date"] and r["mql_date"] <= r["sql_date"]
        if r["closed_won_date"]:
            assert r["sql_date"] <= r["closed_won_date"]
            assert r["revenue"] != ""

    metrics = compute_crm(rows)
    assert metrics["total_leads"] == len(rows)
    assert metrics["customers"] <= metrics["sqls"] <= metrics["mqls"]
    assert count_sql3(rows) <= metrics["sqls"]
