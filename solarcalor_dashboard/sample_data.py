"""
Sample and simulated data for the client dashboard.

The SAMPLE_* rows are the built-in demo dataset shown before the client
uploads anything. The generate_* functions produce larger synthetic row
sets shaped like real uploads. All values are synthetic.
"""

import numpy as np
import pandas as pd

from .config import PRODUCTS

# Seed for reproducibility
_RNG = np.random.default_rng(42)

_HEATING, _DESCALER = PRODUCTS

SAMPLE_PAID = [
    {"date": "2025-07-01", "product": _HEATING, "channel": "Google", "campaign": "Heat_BOFU_Italy",
     "spend": 420, "impressions": 12000, "clicks": 820, "leads": 30, "customers": 6, "revenue": 5400},
    {"date": "2025-07-01", "product": _DESCALER, "channel": "Meta", "campaign": "Anti_BOFU_IT",
     "spend": 260, "impressions": 18000, "clicks": 900, "leads": 40, "customers": 5, "revenue": 3500},
    {"date": "2025-07-08", "product": _HEATING, "channel": "Google", "campaign": "Heat_BOFU_Italy",
     "spend": 500, "impressions": 13000, "clicks": 870, "leads": 32, "customers": 7, "revenue": 6200},
    {"date": "2025-07-08", "product": _DESCALER, "channel": "Meta", "campaign": "Anti_BOFU_IT",
     "spend": 300, "impressions": 17000, "clicks": 860, "leads": 37, "customers": 4, "revenue": 3000},
    {"date": "2025-07-15", "product": _HEATING, "channel": "Google", "campaign": "Heat_BOFU_Italy",
     "spend": 550, "impressions": 15000, "clicks": 950, "leads": 34, "customers": 8, "revenue": 6900},
    {"date": "2025-07-15", "product": _DESCALER, "channel": "Google", "campaign": "Anti_Search_IT",
     "spend": 280, "impressions": 9000, "clicks": 420, "leads": 18, "customers": 3, "revenue": 2100},
]

SAMPLE_LP = [
    {"date": "2025-07-01", "product": _HEATING, "page": "/riscaldamento-consulenza", "sessions": 1200,
     "bounces": 420, "avg_time_sec": 94, "cta_clicks": 260, "scroll_50": 760, "leads": 30},
    {"date": "2025-07-01", "product": _DESCALER, "page": "/anticalcare-prezzo", "sessions": 950,
     "bounces": 500, "avg_time_sec": 60, "cta_clicks": 210, "scroll_50": 540, "leads": 40},
    {"date": "2025-07-08", "product": _HEATING, "page": "/riscaldamento-consulenza", "sessions": 1300,
     "bounces": 380, "avg_time_sec": 102, "cta_clicks": 290, "scroll_50": 820, "leads": 32},
    {"date": "2025-07-08", "product": _DESCALER, "page": "/anticalcare-prezzo", "sessions": 910,
     "bounces": 480, "avg_time_sec": 63, "cta_clicks": 200, "scroll_50": 520, "leads": 37},
]

SAMPLE_WEB = [
    {"date": "2025-07-01", "product": _HEATING, "sessions": 4800, "orders": 32, "revenue": 35800},
    {"date": "2025-07-01", "product": _DESCALER, "sessions": 2100, "orders": 18, "revenue": 12200},
    {"date": "2025-07-08", "product": _HEATING, "sessions": 5200, "orders": 36, "revenue": 40100},
    {"date": "2025-07-08", "product": _DESCALER, "sessions": 2000, "orders": 15, "revenue": 9900},
]

SAMPLE_CRM = [
    {"lead_id": "L-1001", "product": _HEATING, "first_contact_date": "2025-07-02",
     "mql_date": "2025-07-03", "sql_date": "2025-07-05", "call_duration_min": 4,
     "closed_won_date": "2025-07-20", "revenue": 1100},
    {"lead_id": "L-1002", "product": _HEATING, "first_contact_date": "2025-07-03",
     "mql_date": "2025-07-06", "sql_date": "2025-07-10", "call_duration_min": 2,
     "closed_won_date": "2025-07-28", "revenue": 1300},
    {"lead_id": "L-2001", "product": _DESCALER, "first_contact_date": "2025-07-02",
     "mql_date": "2025-07-04", "sql_date": "2025-07-06", "call_duration_min": 6,
     "closed_won_date": "2025-07-22", "revenue": 700},
]

SAMPLE_DATASETS = {
    "paid": SAMPLE_PAID,
    "lp": SAMPLE_LP,
    "web": SAMPLE_WEB,
    "crm": SAMPLE_CRM,
    "biz": [],
    "mktTotals": [],
    "mktDetail": [],
}

# ---------------------------------------------------------------------------
# Typical account parameters (weekly, per channel)
# ---------------------------------------------------------------------------
_CHANNEL_PARAMS = {
    "Google": {"spend": 480, "ctr": 0.065, "cpc": 0.55, "click_to_lead": 0.036, "close": 0.2, "aov": 860},
    "Meta": {"spend": 290, "ctr": 0.05, "cpc": 0.33, "click_to_lead": 0.045, "close": 0.12, "aov": 700},
}


def generate_paid_rows(
    start_week: str = "2025-07-07",
    n_weeks: int = 12,
    product: str = _HEATING,
) -> list[dict]:
    """Generate weekly paid-ads rows per channel with realistic noise."""
    weeks = pd.date_range(start_week, periods=n_weeks, freq="W-MON")
    rows = []

    for week in weeks:
        for channel, params in _CHANNEL_PARAMS.items():
            spend = max(params["spend"] * _RNG.normal(1.0, 0.12), 50)
            clicks = int(spend / params["cpc"])
            impressions = int(clicks / params["ctr"])
            leads = int(_RNG.binomial(clicks, params["click_to_lead"]))
            customers = int(_RNG.binomial(leads, params["close"]))
            revenue = round(customers * params["aov"] * _RNG.uniform(0.85, 1.15), 2)

            rows.append({
                "date": week.strftime("%Y-%m-%d"),
                "product": product,
                "channel": channel,
                "campaign": f"{channel}_{product[:4]}_IT",
                "spend": round(spend, 2),
                "impressions": impressions,
                "clicks": clicks,
                "leads": leads,
                "customers": customers,
                "revenue": revenue,
            })

    return rows


def generate_crm_leads(
    start_date: str = "2025-07-01",
    n_days: int = 90,
    leads_per_day: float = 3.0,
    product: str = _HEATING,
) -> list[dict]:
    """Generate CRM lead rows moving through MQL, SQL and closed-won stages.

    Each stage is reached with a fixed probability and its date follows the
    previous stage by a few days. Call durations are drawn so that roughly
    two thirds of SQLs pass the three-minute qualification.
    """
    days = pd.date_range(start_date, periods=n_days, freq="D")
    rows = []
    counter = 1000

    for day in days:
        for _ in range(int(_RNG.poisson(leads_per_day))):
            counter += 1
            row = {
                "lead_id": f"L-{counter}",
                "product": product,
                "first_contact_date": day.strftime("%Y-%m-%d"),
                "mql_date": "",
                "sql_date": "",
                "call_duration_min": "",
                "closed_won_date": "",
                "revenue": "",
            }
            stage_date = day
            if _RNG.random() < 0.6:
                stage_date += pd.Timedelta(days=int(_RNG.integers(1, 4)))
                row["mql_date"] = stage_date.strftime("%Y-%m-%d")
                if _RNG.random() < 0.5:
                    stage_date += pd.Timedelta(days=int(_RNG.integers(1, 6)))
                    row["sql_date"] = stage_date.strftime("%Y-%m-%d")
                    row["call_duration_min"] = round(float(_RNG.gamma(2.5, 1.8)), 1)
                    if _RNG.random() < 0.35:
                        stage_date += pd.Timedelta(days=int(_RNG.integers(5, 25)))
                        row["closed_won_date"] = stage_date.strftime("%Y-%m-%d")
                        row["revenue"] = round(float(_RNG.normal(1100, 250)), 2)
            rows.append(row)

    return rows
