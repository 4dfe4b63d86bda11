"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

from pef_sim.main import app
from pef_sim.calculations.allocation import (
    DistributionBand,
    GlobalDistribution,
    InvestmentConfig,
    RangeDistribution,
    Tranche,
)

# 100 (hundred-million units) base, type2 = 14% of base, type3 = 1% of base
BASE_CAPITAL = 10_000_000_000
TYPE2_CAPITAL = 1_400_000_000
TYPE3_CAPITAL = 100_000_000
TOTAL_CAPITAL = BASE_CAPITAL + TYPE2_CAPITAL + TYPE3_CAPITAL

DEFAULT_SHARES = {"type1": 15, "type2": 70, "type3": 15}

DEFAULT_BANDS = (
    DistributionBand(
        id="range1",
        min_return=0,
        max_return=30,
        shares={"type1": 60, "type2": 30, "type3": 10},
    ),
    DistributionBand(
        id="range2",
        min_return=30,
        max_return=None,
        shares={"type1": 40, "type2": 50, "type3": 10},
    ),
)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")


@pytest.fixture
def tranches():
    """Default three-type capital structure."""
    return (
        Tranche(id="type1", name="Type 1", capital=BASE_CAPITAL, is_base=True),
        Tranche(id="type2", name="Type 2", capital=TYPE2_CAPITAL),
        Tranche(id="type3", name="Type 3", capital=TYPE3_CAPITAL),
    )


@pytest.fixture
def global_config(tranches):
    """7% annual hurdle over 2 years with a global 15/70/15 split."""
    return InvestmentConfig(
        tranches=tranches,
        threshold_return=7.0,
        investment_period=2.0,
        distribution=GlobalDistribution(shares=DEFAULT_SHARES),
    )


@pytest.fixture
def range_config(tranches):
    """Same structure with range-based distribution bands."""
    return InvestmentConfig(
        tranches=tranches,
        threshold_return=7.0,
        investment_period=2.0,
        distribution=RangeDistribution(bands=DEFAULT_BANDS),
    )


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def form_payload():
    """Form-shaped input matching the default simulator values."""
    return {
        "investment_types": [
            {"id": "type1", "name": "Type 1", "investment": 100.0,
             "input_mode": "amount", "is_base_type": True},
            {"id": "type2", "name": "Type 2", "investment": 14,
             "investment_amount": 14.0, "input_mode": "percentage"},
            {"id": "type3", "name": "Type 3", "investment": 1,
             "investment_amount": 1.0, "input_mode": "percentage"},
        ],
        "use_range_based_distribution": False,
        "distribution_ranges": [
            {"id": "range1", "min_return": 0, "max_return": 30,
             "distributions": {"type1": 60, "type2": 30, "type3": 10}},
            {"id": "range2", "min_return": 30, "max_return": None,
             "distributions": {"type1": 40, "type2": 50, "type3": 10}},
        ],
        "global_distribution": dict(DEFAULT_SHARES),
        "threshold_return": 7,
        "investment_period": 2,
    }
