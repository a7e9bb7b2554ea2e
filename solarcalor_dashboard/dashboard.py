"""
Dashboard-ready output functions.

These are the entry points for a rendering front end. Each call maps the
raw uploads through the configured field mappings, filters them to the
selected product and period, and recomputes everything from scratch.
Results are plain dicts, dataclasses and DataFrames.
"""

import logging
from dataclasses import dataclass, field

import pandas as pd

from .config import (
    ALL_CHANNELS,
    CATEGORIES,
    DEFAULT_CLV_MULTIPLIER,
    DEFAULT_WEIGHTS,
    MODES,
)
from .kpis import compute_crm, compute_lp, compute_paid, compute_web, count_sql3
from .overrides import (
    ResolvedKpi,
    marketing_computed,
    match_totals_row,
    resolve_business_kpis,
    resolve_marketing_kpis,
)
from .periods import PeriodSelector
from .store import DashboardConfig
from .transforms import (
    FunnelDetail,
    available_channels,
    build_channel_share,
    build_channel_sources,
    build_funnel_detail,
    build_paid_series,
    filter_dataset,
    map_rows,
)

logger = logging.getLogger(__name__)

# Raw uploaded rows per dataset category
Datasets = dict[str, list[dict]]


@dataclass(frozen=True)
class DashboardState:
    """What the user is looking at: product, period, view and tuning knobs."""

    product: str
    selector: PeriodSelector
    mode: str = "marketing"
    category: str = "__overview__"
    channel: str = ALL_CHANNELS
    weights: dict = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    clv_multiplier: float = DEFAULT_CLV_MULTIPLIER

    def __post_init__(self) -> None:
        if self.mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}, got {self.mode!r}")
        if self.category not in CATEGORIES:
            raise ValueError(f"category must be one of {CATEGORIES}, got {self.category!r}")


def mapped_rows(datasets: Datasets, config: DashboardConfig, dataset: str) -> list[dict]:
    return map_rows(datasets.get(dataset) or [], config.mapping(dataset))


def filtered_rows(
    datasets: Datasets,
    config: DashboardConfig,
    state: DashboardState,
    dataset: str,
) -> list[dict]:
    """Mapped rows for the state's product and period.

    The channel filter only applies to paid rows in marketing mode.
    """
    channel = state.channel if dataset == "paid" and state.mode == "marketing" else None
    return filter_dataset(
        mapped_rows(datasets, config, dataset),
        dataset,
        state.product,
        state.selector,
        channel,
    )


def get_available_channels(datasets: Datasets, config: DashboardConfig) -> list[str]:
    """Channel choices for the paid view, ALL_CHANNELS first."""
    return [ALL_CHANNELS, *available_channels(mapped_rows(datasets, config, "paid"))]


def get_paid_view(datasets: Datasets, config: DashboardConfig, state: DashboardState) -> dict:
    """Paid-ads metrics, daily trend, channel sources and channel lead share."""
    rows = filtered_rows(datasets, config, state, "paid")
    return {
        "metrics": compute_paid(rows),
        "series": build_paid_series(rows),
        "sources": build_channel_sources(rows),
        "channel_share": build_channel_share(mapped_rows(datasets, config, "paid"), state.product),
    }


def get_landing_page_view(
    datasets: Datasets,
    config: DashboardConfig,
    state: DashboardState,
) -> pd.DataFrame:
    """Landing pages ranked by engagement score.

    Returns
    -------
    DataFrame with columns:
        page, sessions, bounce_rate, time_avg, cta_ctr, scroll_rate,
        engagement, leads, lp_cvr
    """
    pages = compute_lp(filtered_rows(datasets, config, state, "lp"), state.weights)
    cols = [
        "page", "sessions", "bounce_rate", "time_avg", "cta_ctr",
        "scroll_rate", "engagement", "leads", "lp_cvr",
    ]
    if not pages:
        return pd.DataFrame(columns=cols)
    return pd.DataFrame(pages)[cols]


def get_web_view(datasets: Datasets, config: DashboardConfig, state: DashboardState) -> dict:
    return compute_web(filtered_rows(datasets, config, state, "web"))


def get_crm_view(datasets: Datasets, config: DashboardConfig, state: DashboardState) -> dict:
    """CRM funnel metrics plus the count of three-minute qualified SQLs."""
    rows = filtered_rows(datasets, config, state, "crm")
    return {**compute_crm(rows, state.clv_multiplier), "sql3": count_sql3(rows)}


def get_funnel_detail(
    datasets: Datasets,
    config: DashboardConfig,
    state: DashboardState,
) -> FunnelDetail:
    """Uploaded marketing detail table if present, else computed buckets."""
    return build_funnel_detail(
        filtered_rows(datasets, config, state, "crm"),
        state.selector.granularity,
        mapped_rows(datasets, config, "mktDetail"),
    )


def get_marketing_overview(
    datasets: Datasets,
    config: DashboardConfig,
    state: DashboardState,
) -> dict:
    """Marketing overview: resolved funnel KPIs, funnel chart data, detail table.

    Returns
    -------
    Dict with structure:
    {
        "period": "M-2025-07",
        "product": "...",
        "kpis": {"leads": ResolvedKpi, "mql": ..., "sql3": ..., "customers": ...},
        "funnel": [{"name": "Leads", "value": 96.0}, ...],
        "detail": FunnelDetail,
        "totals_matched": True,
    }
    """
    crm_rows = filtered_rows(datasets, config, state, "crm")
    crm = compute_crm(crm_rows, state.clv_multiplier)
    totals_match = match_totals_row(
        mapped_rows(datasets, config, "mktTotals"), state.product, state.selector
    )
    kpis = resolve_marketing_kpis(config, totals_match, marketing_computed(crm, crm_rows))

    return {
        "period": state.selector.key,
        "product": state.product,
        "kpis": kpis,
        "funnel": [{"name": k.label, "value": k.value} for k in kpis.values()],
        "detail": build_funnel_detail(
            crm_rows,
            state.selector.granularity,
            mapped_rows(datasets, config, "mktDetail"),
        ),
        "totals_matched": totals_match is not None,
    }


def get_business_overview(
    datasets: Datasets,
    config: DashboardConfig,
    state: DashboardState,
) -> dict:
    """Business overview: revenue, spend, profit, ROAS, margin, customers.

    Paid spend here ignores the channel filter.
    """
    business_state = DashboardState(
        product=state.product,
        selector=state.selector,
        mode="business",
        weights=state.weights,
        clv_multiplier=state.clv_multiplier,
    )
    paid = compute_paid(filtered_rows(datasets, config, business_state, "paid"))
    web = compute_web(filtered_rows(datasets, config, business_state, "web"))
    crm = compute_crm(filtered_rows(datasets, config, business_state, "crm"), state.clv_multiplier)
    totals_match = match_totals_row(
        mapped_rows(datasets, config, "biz"), state.product, state.selector
    )

    return {
        "period": state.selector.key,
        "product": state.product,
        "kpis": resolve_business_kpis(config, totals_match, paid, web, crm),
        "totals_matched": totals_match is not None,
    }


def kpis_to_frame(kpis: dict[str, ResolvedKpi]) -> pd.DataFrame:
    """One row per resolved KPI: key, label, value, source, overridden."""
    return pd.DataFrame(
        [
            {
                "key": k.key,
                "label": k.label,
                "value": k.value,
                "source": k.source,
                "overridden": k.overridden,
            }
            for k in kpis.values()
        ],
        columns=["key", "label", "value", "source", "overridden"],
    )
