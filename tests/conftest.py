"""Shared fixtures for the dashboard engine tests."""

import sys
from pathlib import Path

import pytest

# Adjust path so that `solarcalor_dashboard` resolves without installation
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from solarcalor_dashboard.config import PRODUCTS
from solarcalor_dashboard.periods import PeriodSelector
from solarcalor_dashboard.sample_data import SAMPLE_DATASETS
from solarcalor_dashboard.store import DashboardConfig

HEATING, DESCALER = PRODUCTS


@pytest.fixture
def july() -> PeriodSelector:
    return PeriodSelector(granularity="month", month="2025-07", quarter="2025-Q3", year="2025")


@pytest.fixture
def datasets() -> dict:
    return {ds: [dict(r) for r in rows] for ds, rows in SAMPLE_DATASETS.items()}


@pytest.fixture
def config() -> DashboardConfig:
    return DashboardConfig()
