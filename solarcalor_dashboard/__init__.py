"""
Solar Calor — Client Performance Dashboard

KPI aggregation backend turning client CSV/Excel uploads (paid ads, landing
pages, website, CRM, plus pre-aggregated business and marketing totals)
into dashboard-ready metrics, funnels and trend tables.

To feed a front end:
    Build a DashboardState (product, PeriodSelector, view) and call
    dashboard.get_marketing_overview / get_business_overview or one of the
    per-category views. Every call recomputes from the current uploads and
    DashboardConfig; nothing is cached.

To adapt to a client's export format:
    Add field mappings (canonical name -> client column) with
    DashboardConfig.with_mapping; unmapped fields are read from the
    identically-named column.

To add an overview KPI:
    Add it to config.MARKETING_KPI_FIELDS or BUSINESS_KPI_FIELDS with its
    uploaded-totals column, give it a default label in DEFAULT_KPI_LABELS,
    and supply its computed value in overrides.py.
"""
