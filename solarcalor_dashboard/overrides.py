"""
Overview KPI resolution: manual override, uploaded totals, computed value.

Every overview KPI is resolved in two steps::

    step1 = manual if manual is not None else uploaded
    value = step1 or computed

The first step is plain null-coalescing, so a manual 0 beats the uploaded
total. The second step is a truthiness test, so any falsy step1 (0, a
manual 0 included) falls through to the computed value. A manual override
of 0 therefore cannot be told apart from "no override"; existing configs
rely on this, keep it.
"""

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable

from .config import BUSINESS_KPI_FIELDS, DEFAULT_KPI_LABELS, MARKETING_KPI_FIELDS
from .kpis import count_sql3, safe_div
from .loaders.utils import safe_float, to_num
from .periods import PeriodSelector

if TYPE_CHECKING:
    from .store import DashboardConfig

logger = logging.getLogger(__name__)


def coerce_override(val: Any) -> float | None:
    """Manual override input as a number, or None for blank/non-numeric input."""
    if val is None or isinstance(val, bool):
        return None
    result = safe_float(val)
    if result is None or math.isinf(result):
        if isinstance(val, str) and val.strip():
            logger.warning("Ignoring non-numeric manual override %r", val)
        return None
    return result


def _is_truthy(val: float | None) -> bool:
    return val is not None and not math.isnan(val) and val != 0


def resolve_with_source(
    manual: float | None,
    uploaded: float,
    computed: float,
) -> tuple[float, str]:
    """Resolved value and the tier that supplied it: manual, uploaded or computed."""
    step1 = manual if manual is not None else uploaded
    if _is_truthy(step1):
        return step1, ("manual" if manual is not None else "uploaded")
    return computed, "computed"


def resolve(manual: float | None, uploaded: float, computed: float) -> float:
    """Displayed KPI value: (manual ?? uploaded) || computed."""
    return resolve_with_source(manual, uploaded, computed)[0]


def match_totals_row(
    rows: Iterable[dict],
    product: str,
    selector: PeriodSelector,
) -> dict | None:
    """First pre-aggregated row for the product and the active period.

    ``period_type`` is compared case-insensitively against the active
    granularity and ``period_value`` as text against its value. When
    several rows match, the first in upload order wins.
    """
    for r in rows:
        if r.get("product") != product:
            continue
        if str(r.get("period_type") or "").strip().lower() != selector.granularity:
            continue
        if str(r.get("period_value") or "").strip() != selector.value:
            continue
        return r
    return None


@dataclass(frozen=True)
class ResolvedKpi:
    """One overview tile: label, displayed value and the tier behind it."""

    key: str
    label: str
    value: float
    source: str

    @property
    def overridden(self) -> bool:
        return self.source != "computed"


def resolve_kpi(
    config: "DashboardConfig",
    scope: str,
    key: str,
    totals_match: dict | None,
    computed: float,
) -> ResolvedKpi:
    """Resolve one KPI of a scope against config overrides and uploaded totals."""
    fields = BUSINESS_KPI_FIELDS if scope == "business" else MARKETING_KPI_FIELDS
    manual = coerce_override(config.override(scope, key))
    uploaded = to_num((totals_match or {}).get(fields[key]))
    value, source = resolve_with_source(manual, uploaded, computed)
    label = config.label(scope, key) or DEFAULT_KPI_LABELS[scope][key]
    return ResolvedKpi(key=key, label=label, value=value, source=source)


def marketing_computed(crm_metrics: dict, crm_rows: list[dict]) -> dict[str, float]:
    """Computed marketing overview values from CRM metrics.

    The SQL stage counts qualified calls (>= 3 minutes); when none
    qualify it falls back to the plain SQL count.
    """
    return {
        "leads": crm_metrics["total_leads"],
        "mql": crm_metrics["mqls"],
        "sql3": count_sql3(crm_rows) or crm_metrics["sqls"],
        "customers": crm_metrics["customers"],
    }


def resolve_marketing_kpis(
    config: "DashboardConfig",
    totals_match: dict | None,
    computed: dict[str, float],
) -> dict[str, ResolvedKpi]:
    """Resolve leads, mql, sql3 and customers in funnel order."""
    return {
        key: resolve_kpi(config, "marketing", key, totals_match, computed[key])
        for key in MARKETING_KPI_FIELDS
    }


def resolve_business_kpis(
    config: "DashboardConfig",
    totals_match: dict | None,
    paid: dict,
    web: dict,
    crm: dict,
) -> dict[str, ResolvedKpi]:
    """Resolve the business overview KPIs.

    Revenue prefers website revenue, falling back to CRM closed-won
    revenue; customers prefer website orders, falling back to CRM
    customers. Profit, ROAS and margin are derived from the already
    resolved revenue and spend.
    """
    def one(key: str, computed: float) -> ResolvedKpi:
        return resolve_kpi(config, "business", key, totals_match, computed)

    revenue = one("revenue", web["revenue"] if web["revenue"] > 0 else crm["revenue_total"])
    spend = one("spend", paid["spend"])
    customers = one("customers", web["orders"] if web["orders"] > 0 else crm["customers"])
    profit = one("profit", max(0.0, revenue.value - spend.value))
    roas = one("roas", safe_div(revenue.value, spend.value))
    margin = one("margin", safe_div(profit.value, revenue.value))

    resolved = {k.key: k for k in (revenue, spend, profit, roas, margin, customers)}
    return {key: resolved[key] for key in BUSINESS_KPI_FIELDS}
