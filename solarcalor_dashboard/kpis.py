"""
KPI computation functions — pure reductions with no side effects.

Each calculator receives rows that are already mapped and filtered to the
selected product and period, and returns a flat dict of metric name to
number. Every ratio is zero when its denominator is zero.
"""

import logging
from typing import Iterable

import pandas as pd

from .config import (
    CALL_DURATION_FIELDS,
    DEFAULT_CLV_MULTIPLIER,
    DEFAULT_WEIGHTS,
    SQL_QUALIFYING_MINUTES,
)
from .loaders.utils import has_value, parse_date, to_num

logger = logging.getLogger(__name__)


def safe_div(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0.0 when the denominator is zero."""
    if not denominator:
        return 0.0
    return numerator / denominator


def _total(rows: list[dict], field: str) -> float:
    return sum(to_num(r.get(field)) for r in rows)


def compute_paid(rows: Iterable[dict]) -> dict:
    """Paid-ads totals and efficiency ratios."""
    rows = list(rows)
    spend = _total(rows, "spend")
    clicks = _total(rows, "clicks")
    impressions = _total(rows, "impressions")
    leads = _total(rows, "leads")
    customers = _total(rows, "customers")
    revenue = _total(rows, "revenue")

    return {
        "spend": spend,
        "clicks": clicks,
        "impressions": impressions,
        "leads": leads,
        "customers": customers,
        "revenue": revenue,
        "cpl": safe_div(spend, leads),
        "cpa": safe_div(spend, customers),
        "roas": safe_div(revenue, spend),
        "ctr": safe_div(clicks, impressions),
        "click_to_lead": safe_div(leads, clicks),
        "lead_to_cust": safe_div(customers, leads),
    }


def engagement_score(
    bounce_rate: float,
    cta_ctr: float,
    scroll_rate: float,
    weights: dict[str, float],
) -> float:
    """Composite engagement index.

    (1 - bounce_rate) * W_time + cta_ctr * W_cta + scroll_rate * W_scroll.
    The weights are applied as given, without normalisation.
    """
    return (
        (1 - bounce_rate) * weights["time"]
        + cta_ctr * weights["cta"]
        + scroll_rate * weights["scroll"]
    )


def compute_lp(rows: Iterable[dict], weights: dict[str, float] | None = None) -> list[dict]:
    """Per-page landing-page metrics, best engagement first.

    Pages are accumulated in order of first appearance and the final sort
    is stable, so equal scores keep that order.

    Returns
    -------
    List of dicts with keys:
        page, sessions, bounces, time, cta, scroll50, leads, bounce_rate,
        time_avg, cta_ctr, scroll_rate, engagement, lp_cvr
    """
    w = {**DEFAULT_WEIGHTS, **(weights or {})}
    w = {k: to_num(v) for k, v in w.items()}

    by_page: dict = {}
    for r in rows:
        key = r.get("page")
        if key not in by_page:
            by_page[key] = {
                "page": key,
                "sessions": 0.0,
                "bounces": 0.0,
                "time": 0.0,
                "cta": 0.0,
                "scroll50": 0.0,
                "leads": 0.0,
            }
        page = by_page[key]
        sessions = to_num(r.get("sessions"))
        page["sessions"] += sessions
        page["bounces"] += to_num(r.get("bounces"))
        page["time"] += to_num(r.get("avg_time_sec")) * sessions
        page["cta"] += to_num(r.get("cta_clicks"))
        page["scroll50"] += to_num(r.get("scroll_50"))
        page["leads"] += to_num(r.get("leads"))

    pages = []
    for p in by_page.values():
        sessions = p["sessions"]
        bounce_rate = safe_div(p["bounces"], sessions)
        cta_ctr = safe_div(p["cta"], sessions)
        scroll_rate = safe_div(p["scroll50"], sessions)
        pages.append({
            **p,
            "bounce_rate": bounce_rate,
            "time_avg": safe_div(p["time"], sessions),
            "cta_ctr": cta_ctr,
            "scroll_rate": scroll_rate,
            "engagement": engagement_score(bounce_rate, cta_ctr, scroll_rate, w),
            "lp_cvr": safe_div(p["leads"], sessions),
        })

    return sorted(pages, key=lambda p: p["engagement"], reverse=True)


def compute_web(rows: Iterable[dict]) -> dict:
    """Website / e-commerce totals, conversion rate and AOV."""
    rows = list(rows)
    sessions = _total(rows, "sessions")
    orders = _total(rows, "orders")
    revenue = _total(rows, "revenue")
    return {
        "sessions": sessions,
        "orders": orders,
        "revenue": revenue,
        "site_cr": safe_div(orders, sessions),
        "aov": safe_div(revenue, orders),
    }


def call_duration(row: dict) -> float:
    """Call length in minutes from the first non-blank duration alias."""
    for field in CALL_DURATION_FIELDS:
        val = row.get(field)
        if has_value(val):
            return to_num(val)
    return 0.0


def is_sql3(row: dict) -> bool:
    """A sales-qualified lead whose call lasted at least three minutes."""
    return has_value(row.get("sql_date")) and call_duration(row) >= SQL_QUALIFYING_MINUTES


def _cycle_days(row: dict) -> int | None:
    won = parse_date(row.get("closed_won_date"))
    first = parse_date(row.get("first_contact_date"))
    if won is None or first is None:
        return None
    # Whole days, truncated toward zero
    return int((won - first) / pd.Timedelta(days=1))


def compute_crm(rows: Iterable[dict], clv_multiplier: float = DEFAULT_CLV_MULTIPLIER) -> dict:
    """Lead funnel counts, stage conversion, revenue, CLV and sales cycle.

    Stage counts are taken independently from their own date fields, so
    the funnel is not forced to be monotonic.
    """
    rows = list(rows)
    won_rows = [r for r in rows if has_value(r.get("closed_won_date"))]

    total_leads = len(rows)
    mqls = sum(1 for r in rows if has_value(r.get("mql_date")))
    sqls = sum(1 for r in rows if has_value(r.get("sql_date")))
    customers = len(won_rows)

    revenue_total = _total(won_rows, "revenue")
    aov = safe_div(revenue_total, customers)

    cycles = [
        days for days in (
            _cycle_days(r) for r in won_rows if has_value(r.get("first_contact_date"))
        )
        if days is not None
    ]
    sales_cycle_days = sum(cycles) / len(cycles) if cycles else 0.0

    return {
        "total_leads": total_leads,
        "mqls": mqls,
        "sqls": sqls,
        "customers": customers,
        "lead_to_mql": safe_div(mqls, total_leads),
        "mql_to_sql": safe_div(sqls, mqls),
        "sql_to_cust": safe_div(customers, sqls),
        "revenue_total": revenue_total,
        "aov": aov,
        "clv": aov * to_num(clv_multiplier),
        "sales_cycle_days": sales_cycle_days,
    }


def count_sql3(rows: Iterable[dict]) -> int:
    return sum(1 for r in rows if is_sql3(r))
