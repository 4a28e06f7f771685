"""Pytest configuration and shared fixtures for the ARPP simulator tests.

This module provides:
- Pytest markers for test categorization
- Shared parameter, pool and reference price fixtures
"""

import numpy as np
import pytest

from arpp_sim.core.params import Parameters
from arpp_sim.core.pool import LiquidityPool, PoolState
from arpp_sim.core.trade import ReferencePrice
from tests.fixtures.simulation_fixtures import make_parameters, make_reference


# ============================================================================
# Pytest Hooks
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "edge_case: Edge case and stress tests with extreme inputs"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests spanning multiple components"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that spawn worker processes or run large batches"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on location and name."""
    for item in items:
        if "edge_case" in item.nodeid or "edge_case" in item.name:
            item.add_marker(pytest.mark.edge_case)

        if any(keyword in item.nodeid for keyword in ["engine", "simulation_run", "cli"]):
            item.add_marker(pytest.mark.integration)


# ============================================================================
# Standard Fixtures
# ============================================================================


@pytest.fixture
def parameters() -> Parameters:
    """Balanced 1000/1000 pool, alpha 0.1, beta 1, 30 bps fee."""
    return make_parameters()


@pytest.fixture
def zero_fee_parameters() -> Parameters:
    return make_parameters(fee=0.0)


@pytest.fixture
def pool(parameters: Parameters) -> LiquidityPool:
    return LiquidityPool(parameters)


@pytest.fixture
def balanced_state(pool: LiquidityPool, reference: ReferencePrice) -> PoolState:
    """Freshly opened pool, priced at the reference."""
    return pool.reprice(pool.open(), reference)


@pytest.fixture
def reference() -> ReferencePrice:
    return make_reference(1.0)


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)
