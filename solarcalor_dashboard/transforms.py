"""
Data transforms: field mapping, product/period filtering, grouped series
and the funnel detail table built from mapped, filtered rows.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

import pandas as pd

from .config import ALL_CHANNELS, CANONICAL_FIELDS, DATE_FIELDS
from .kpis import is_sql3, safe_div
from .loaders.utils import has_value, parse_date, to_num
from .periods import PeriodSelector, in_period

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Field mapping
# ---------------------------------------------------------------------------

def map_rows(rows: list[dict], mapping: dict[str, str] | None) -> list[dict]:
    """Rewrite rows onto canonical field names.

    For each canonical name in ``mapping`` whose source column exists on a
    row, the source value is copied onto the canonical name. Every other
    field of the row is kept as-is. Blank mapping entries mean "use the
    canonical name verbatim", i.e. nothing is copied. Input rows are never
    modified.
    """
    if not mapping:
        return rows

    mapped = []
    for row in rows:
        out = dict(row)
        for canonical, source in mapping.items():
            if source and source in row:
                out[canonical] = row[source]
        mapped.append(out)
    return mapped


def mapping_sources(dataset: str, mapping: dict[str, str] | None) -> dict[str, str]:
    """Source column read for each canonical field of a dataset."""
    mapping = mapping or {}
    return {name: mapping.get(name) or name for name in CANONICAL_FIELDS[dataset]}


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------

def filter_rows(
    rows: Iterable[dict],
    product: str,
    selector: PeriodSelector,
    date_field: str = "date",
    channel: str | None = None,
) -> list[dict]:
    """Rows for one product whose ``date_field`` falls in the selected period.

    ``channel`` restricts to one channel unless it is None or ALL_CHANNELS.
    """
    result = []
    for r in rows:
        if r.get("product") != product:
            continue
        if not in_period(r.get(date_field), selector):
            continue
        if channel not in (None, ALL_CHANNELS) and r.get("channel") != channel:
            continue
        result.append(r)
    return result


def filter_dataset(
    rows: Iterable[dict],
    dataset: str,
    product: str,
    selector: PeriodSelector,
    channel: str | None = None,
) -> list[dict]:
    """filter_rows using the dataset's own date column."""
    return filter_rows(rows, product, selector, DATE_FIELDS.get(dataset, "date"), channel)


def available_channels(rows: Iterable[dict]) -> list[str]:
    """Distinct channels in first-seen order."""
    seen: dict = {}
    for r in rows:
        seen.setdefault(r.get("channel"), None)
    return list(seen)


# ---------------------------------------------------------------------------
# Paid-ads series
# ---------------------------------------------------------------------------

_SERIES_COLS = ["date", "spend", "leads", "customers", "revenue", "clicks", "cpl", "cpa", "roas"]


def build_paid_series(paid_rows: list[dict]) -> pd.DataFrame:
    """Daily paid totals with CPL, CPA and ROAS, ascending by date.

    Returns
    -------
    DataFrame with columns:
        date, spend, leads, customers, revenue, clicks, cpl, cpa, roas
    """
    records = []
    for r in paid_rows:
        ts = parse_date(r.get("date"))
        if ts is None:
            continue
        records.append({
            "date": ts.strftime("%Y-%m-%d"),
            "spend": to_num(r.get("spend")),
            "leads": to_num(r.get("leads")),
            "customers": to_num(r.get("customers")),
            "revenue": to_num(r.get("revenue")),
            "clicks": to_num(r.get("clicks")),
        })

    if not records:
        return pd.DataFrame(columns=_SERIES_COLS)

    df = pd.DataFrame(records).groupby("date", as_index=False).sum()
    df = df.sort_values("date").reset_index(drop=True)
    df["cpl"] = [safe_div(s, n) for s, n in zip(df["spend"], df["leads"])]
    df["cpa"] = [safe_div(s, n) for s, n in zip(df["spend"], df["customers"])]
    df["roas"] = [safe_div(v, s) for v, s in zip(df["revenue"], df["spend"])]

    logger.info("Built paid series with %d days", len(df))
    return df[_SERIES_COLS]


def build_channel_sources(paid_rows: list[dict]) -> pd.DataFrame:
    """Leads, clicks and click-to-lead CVR per channel, first-seen order.

    Returns
    -------
    DataFrame with columns: channel, leads, clicks, cvr
    """
    if not paid_rows:
        return pd.DataFrame(columns=["channel", "leads", "clicks", "cvr"])

    df = pd.DataFrame({
        "channel": [r.get("channel") for r in paid_rows],
        "leads": [to_num(r.get("leads")) for r in paid_rows],
        "clicks": [to_num(r.get("clicks")) for r in paid_rows],
    })
    grouped = df.groupby("channel", sort=False, dropna=False, as_index=False).sum()
    grouped["cvr"] = [safe_div(n, c) for n, c in zip(grouped["leads"], grouped["clicks"])]
    return grouped


def build_channel_share(paid_rows: list[dict], product: str) -> pd.DataFrame:
    """Lead totals per channel for a product across every uploaded date.

    Returns
    -------
    DataFrame with columns: name, value
    """
    product_rows = [r for r in paid_rows if r.get("product") == product]
    if not product_rows:
        return pd.DataFrame(columns=["name", "value"])

    df = pd.DataFrame({
        "name": [r.get("channel") for r in product_rows],
        "value": [to_num(r.get("leads")) for r in product_rows],
    })
    return df.groupby("name", sort=False, dropna=False, as_index=False).sum()


# ---------------------------------------------------------------------------
# Funnel detail table
# ---------------------------------------------------------------------------

FUNNEL_COLS = ["bucket", "leads", "mql", "sql3", "customers", "l2m", "m2s", "s2c"]


def bucket_key(date_value, granularity: str) -> str | None:
    """Day bucket (YYYY-MM-DD) for month views, month bucket (YYYY-MM) otherwise."""
    ts = parse_date(date_value)
    if ts is None:
        return None
    if granularity == "month":
        return ts.strftime("%Y-%m-%d")
    return ts.strftime("%Y-%m")


def build_funnel_buckets(crm_rows: list[dict], granularity: str) -> list[dict]:
    """Time-bucketed lead funnel counts with stage-to-stage ratios.

    Rows are bucketed by ``first_contact_date``. Buckets come back sorted
    ascending by key, which is chronological for both key formats.
    """
    buckets: dict[str, dict] = {}
    for r in crm_rows:
        key = bucket_key(r.get("first_contact_date"), granularity)
        if key is None:
            continue
        if key not in buckets:
            buckets[key] = {"bucket": key, "leads": 0, "mql": 0, "sql3": 0, "customers": 0}
        b = buckets[key]
        b["leads"] += 1
        if has_value(r.get("mql_date")):
            b["mql"] += 1
        if is_sql3(r):
            b["sql3"] += 1
        if has_value(r.get("closed_won_date")):
            b["customers"] += 1

    return [
        {
            **b,
            "l2m": safe_div(b["mql"], b["leads"]),
            "m2s": safe_div(b["sql3"], b["mql"]),
            "s2c": safe_div(b["customers"], b["sql3"]),
        }
        for _, b in sorted(buckets.items())
    ]


@dataclass(frozen=True)
class FunnelDetail:
    """Funnel detail table: either computed buckets or an uploaded table.

    kind is "computed" or "overridden". An uploaded table replaces the
    computed buckets entirely; rows are never merged.
    """

    kind: str
    rows: list[dict] = field(default_factory=list)

    @property
    def is_override(self) -> bool:
        return self.kind == "overridden"

    def to_frame(self) -> pd.DataFrame:
        if not self.rows:
            return pd.DataFrame(columns=FUNNEL_COLS if not self.is_override else [])
        if self.is_override:
            # Uploaded tables keep the header of their first row
            return pd.DataFrame.from_records(self.rows, columns=list(self.rows[0]))
        return pd.DataFrame.from_records(self.rows)


def build_funnel_detail(
    crm_rows: list[dict],
    granularity: str,
    detail_override: list[dict] | None = None,
) -> FunnelDetail:
    """Choose between the uploaded detail table and computed buckets."""
    if detail_override:
        logger.info("Using uploaded funnel detail table (%d rows)", len(detail_override))
        return FunnelDetail(kind="overridden", rows=list(detail_override))

    buckets = build_funnel_buckets(crm_rows, granularity)
    logger.info("Built funnel detail with %d buckets", len(buckets))
    return FunnelDetail(kind="computed", rows=buckets)
