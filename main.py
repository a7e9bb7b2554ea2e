"""
Solar Calor — End-to-end KPI pipeline.

Loads uploads (CSV/Excel files named after their dataset in data/, or the
built-in sample rows when none are present), runs every dashboard view
and prints smoke-test summaries.

Usage:
    python main.py
"""

import logging
import sys
from pathlib import Path

import pandas as pd

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from solarcalor_dashboard.config import CLIENT_NAME, DATA_DIR, DATASETS, PRODUCTS
from solarcalor_dashboard.dashboard import (
    DashboardState,
    get_available_channels,
    get_business_overview,
    get_crm_view,
    get_funnel_detail,
    get_landing_page_view,
    get_marketing_overview,
    get_paid_view,
    get_web_view,
    kpis_to_frame,
)
from solarcalor_dashboard.loaders import load_upload
from solarcalor_dashboard.overrides import resolve
from solarcalor_dashboard.periods import PeriodSelector
from solarcalor_dashboard.sample_data import SAMPLE_DATASETS, generate_crm_leads, generate_paid_rows
from solarcalor_dashboard.store import ConfigStore, InMemoryStore
from solarcalor_dashboard.transforms import mapping_sources

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def load_datasets(store: ConfigStore) -> dict[str, list[dict]]:
    """Store any uploads found in DATA_DIR, then read every dataset back."""
    for dataset in DATASETS:
        for suffix in (".csv", ".xlsx"):
            path = DATA_DIR / f"{dataset}{suffix}"
            if not path.exists():
                continue
            try:
                store.save_upload(load_upload(path, dataset))
            except Exception as e:
                logger.warning("Could not load %s: %s", path, e)
            break

    return {ds: store.load_rows(ds, SAMPLE_DATASETS[ds]) for ds in DATASETS}


def main() -> None:
    """Run the full KPI pipeline and print smoke-test outputs."""

    print("=" * 70)
    print(f"  {CLIENT_NAME.upper()} — Client Performance Dashboard")
    print("  KPI Pipeline Smoke Test")
    print("=" * 70)
    print()

    store = ConfigStore(InMemoryStore())
    config = store.load()

    # ------------------------------------------------------------------
    # 1. Load source data
    # ------------------------------------------------------------------
    print("[ 1 ] LOADING SOURCE DATA")
    print("-" * 40)

    datasets = load_datasets(store)
    for dataset, rows in datasets.items():
        print(f"  {dataset:10s} | {len(rows)} rows")

    print("\nPaid field sources:")
    for canonical, source in mapping_sources("paid", config.mapping("paid")).items():
        print(f"  {canonical:12s} <- {source}")

    # ------------------------------------------------------------------
    # 2. Marketing views
    # ------------------------------------------------------------------
    print("\n")
    print("[ 2 ] MARKETING VIEWS")
    print("-" * 40)

    selector = PeriodSelector(granularity="month", month="2025-07", quarter="2025-Q3", year="2025")
    state = DashboardState(product=PRODUCTS[0], selector=selector)

    print(f"\nChannels: {get_available_channels(datasets, config)}")

    paid = get_paid_view(datasets, config, state)
    print(f"\nPaid metrics — {state.product} ({selector.key}):")
    for name, value in paid["metrics"].items():
        print(f"  {name:14s} {value:,.4f}")
    print("\nPaid series:")
    print(paid["series"].to_string(index=False))
    print("\nSources:")
    print(paid["sources"].to_string(index=False))

    print("\nLanding pages:")
    lp = get_landing_page_view(datasets, config, state)
    if not lp.empty:
        print(lp.to_string(index=False))

    print(f"\nWeb: {get_web_view(datasets, config, state)}")
    print(f"\nCRM: {get_crm_view(datasets, config, state)}")

    overview = get_marketing_overview(datasets, config, state)
    print(f"\nMarketing overview — {overview['period']}:")
    print(kpis_to_frame(overview["kpis"]).to_string(index=False))
    print(f"\nFunnel detail ({overview['detail'].kind}):")
    print(overview["detail"].to_frame().to_string(index=False))

    # Quarter view of the same data
    quarter_state = DashboardState(product=PRODUCTS[0], selector=selector.with_granularity("quarter"))
    quarter_detail = get_marketing_overview(datasets, config, quarter_state)["detail"]
    print(f"\nFunnel detail by month — {quarter_state.selector.key}:")
    print(quarter_detail.to_frame().to_string(index=False))

    # ------------------------------------------------------------------
    # 3. Business overview
    # ------------------------------------------------------------------
    print("\n")
    print("[ 3 ] BUSINESS OVERVIEW")
    print("-" * 40)

    business = get_business_overview(datasets, config, state)
    print(kpis_to_frame(business["kpis"]).to_string(index=False))

    # ------------------------------------------------------------------
    # 4. Simulated quarter
    # ------------------------------------------------------------------
    print("\n")
    print("[ 4 ] SIMULATED QUARTER")
    print("-" * 40)

    simulated = {ds: [] for ds in DATASETS}
    simulated["paid"] = generate_paid_rows("2025-07-07", 12, PRODUCTS[0])
    simulated["crm"] = generate_crm_leads("2025-07-01", 92, 3.0, PRODUCTS[0])
    sim_state = DashboardState(product=PRODUCTS[0], selector=selector.with_granularity("quarter"))
    sim_paid = get_paid_view(simulated, config, sim_state)["metrics"]
    sim_crm = get_crm_view(simulated, config, sim_state)
    print(f"  Paid rows: {len(simulated['paid'])} | CRM leads: {len(simulated['crm'])}")
    print(f"  CPL {sim_paid['cpl']:.2f} | ROAS {sim_paid['roas']:.2f}")
    print(f"  Leads {sim_crm['total_leads']} | MQL {sim_crm['mqls']} | "
          f"SQL>=3m {sim_crm['sql3']} | Customers {sim_crm['customers']}")
    print("\nSimulated funnel by month:")
    print(get_funnel_detail(simulated, config, sim_state).to_frame().to_string(index=False))

    # ------------------------------------------------------------------
    # 5. Acceptance criteria verification
    # ------------------------------------------------------------------
    print("\n")
    print("[ 5 ] ACCEPTANCE CRITERIA CHECKS")
    print("-" * 40)

    cpl = paid["metrics"]["cpl"]
    check1 = abs(cpl - 1470 / 96) < 1e-9
    print(f"\n  [{'PASS' if check1 else 'FAIL'}] July CPL = {cpl:.2f} (expect ~ 15.31)")

    for manual, expected in ((None, 80), (0, 100), (25, 25)):
        got = resolve(manual, 80, 100)
        print(f"  [{'PASS' if got == expected else 'FAIL'}] resolve({manual}, 80, 100) = {got}")

    check3 = all(pd.notna(v) for v in paid["metrics"].values())
    print(f"  [{'PASS' if check3 else 'FAIL'}] Paid metrics contain no NaN")

    print("\n" + "=" * 70)
    print("  Pipeline complete.")
    print("=" * 70)


if __name__ == "__main__":
    main()
