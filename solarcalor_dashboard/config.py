"""
Configuration: products, dataset schemas, KPI defaults, constants.

CANONICAL_FIELDS lists, per dataset category, the field names the engine
reads. Uploaded headers are mapped onto these names by the field mapper;
any canonical name left unmapped is read from the identically-named column.
"""

from pathlib import Path

# ---------------------------------------------------------------------------
# File paths
# ---------------------------------------------------------------------------
DATA_DIR = Path(__file__).resolve().parent.parent / "data"

# ---------------------------------------------------------------------------
# Client identity
# ---------------------------------------------------------------------------
CLIENT_NAME = "Solar Calor"

PRODUCTS = ["Riscaldamento a pavimento", "Anticalcare"]

# ---------------------------------------------------------------------------
# Dataset categories
# ---------------------------------------------------------------------------
# paid/lp/web/crm: raw rows feeding the calculators
# biz/mktTotals: pre-aggregated totals matched by product and period
# mktDetail: freeform table replacing the computed funnel detail
DATASETS = ["paid", "lp", "web", "crm", "biz", "mktTotals", "mktDetail"]

CATEGORIES = ["__overview__", "paid", "lp", "web", "crm"]
MODES = ["marketing", "business"]
ALL_CHANNELS = "__ALL__"

CANONICAL_FIELDS: dict[str, list[str]] = {
    "paid": [
        "date", "product", "channel", "campaign", "spend",
        "impressions", "clicks", "leads", "customers", "revenue",
    ],
    "lp": [
        "date", "product", "page", "sessions", "bounces",
        "avg_time_sec", "cta_clicks", "scroll_50", "leads",
    ],
    "web": ["date", "product", "sessions", "orders", "revenue"],
    "crm": [
        "lead_id", "product", "first_contact_date", "mql_date", "sql_date",
        "call_duration_min", "closed_won_date", "revenue",
    ],
    "biz": [
        "period_type", "period_value", "product", "revenue", "spend",
        "customers", "profit", "roas", "margin_pct", "objectives",
    ],
    "mktTotals": [
        "period_type", "period_value", "product", "leads", "mql",
        "sql_3min", "customers",
    ],
    # Detail table columns are rendered verbatim, nothing is read by name
    "mktDetail": [],
}

# Date column used for period membership, per dataset
DATE_FIELDS: dict[str, str] = {
    "paid": "date",
    "lp": "date",
    "web": "date",
    "crm": "first_contact_date",
}

# ---------------------------------------------------------------------------
# Calculator defaults
# ---------------------------------------------------------------------------
# Engagement weights are not normalised; they need not sum to 1.
DEFAULT_WEIGHTS: dict[str, float] = {"time": 0.4, "cta": 0.3, "scroll": 0.3}
DEFAULT_CLV_MULTIPLIER = 1.0

# Call-duration aliases, consulted in order; first non-blank wins
CALL_DURATION_FIELDS = (
    "call_duration_min",
    "talk_time_min",
    "duration_min",
    "call_minutes",
)
SQL_QUALIFYING_MINUTES = 3.0

# ---------------------------------------------------------------------------
# KPI registry
# ---------------------------------------------------------------------------
# Each overview KPI maps to the uploaded-totals column that can supply it.
MARKETING_KPI_FIELDS: dict[str, str] = {
    "leads": "leads",
    "mql": "mql",
    "sql3": "sql_3min",
    "customers": "customers",
}

BUSINESS_KPI_FIELDS: dict[str, str] = {
    "revenue": "revenue",
    "spend": "spend",
    "profit": "profit",
    "roas": "roas",
    "margin": "margin_pct",
    "customers": "customers",
}

KPI_SCOPES = ["business", "marketing"]

DEFAULT_KPI_LABELS: dict[str, dict[str, str]] = {
    "business": {
        "revenue": "Revenue",
        "spend": "Spend",
        "profit": "Profit",
        "roas": "ROAS",
        "margin": "Margin",
        "customers": "Customers",
    },
    "marketing": {
        "leads": "Leads",
        "mql": "MQL",
        "sql3": "SQL ≥3m",
        "customers": "Total Customers",
    },
}

# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------
DEFAULT_LAYOUT: dict[str, list[str]] = {
    "paid": ["kpis", "paidChart", "sources", "notes", "change"],
    "lp": ["kpis", "lpTable", "notes", "change"],
    "web": ["kpis", "webCard", "notes", "change"],
    "crm": ["kpis", "crmFunnel", "notes", "change"],
}

# ---------------------------------------------------------------------------
# Persistence keys
# ---------------------------------------------------------------------------
CONFIG_KEY = "dashboardConfig"
HEADERS_KEY = "lastHeaders"
PERIOD_KEYS = {
    "granularity": "periodType",
    "month": "periodMonth",
    "quarter": "periodQuarter",
    "year": "periodYear",
}
ROWS_KEYS: dict[str, str] = {
    "paid": "paidRows",
    "lp": "lpRows",
    "web": "webRows",
    "crm": "crmRows",
    "biz": "bizOverride",
    "mktTotals": "mktTotals",
    "mktDetail": "mktDetailTable",
}
OBJECTIVES_KEYS = {"business": "bizObjectives", "marketing": "mktObjectives"}
CHANGE_REQUESTS_KEY = "changeRequests"
WEIGHTS_KEY = "engWeights"
CLV_KEY = "clvMultiplier"
