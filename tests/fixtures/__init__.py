"""Test fixtures for ARPP simulation testing."""

from tests.fixtures.simulation_fixtures import (
    AlternatingStrategy,
    FixedBuyStrategy,
    PoolProfile,
    TruncatedPricePath,
    make_failed_report,
    make_parameters,
    make_record,
    make_reference,
    make_report,
    make_state,
    random_reports,
)

__all__ = [
    "AlternatingStrategy",
    "FixedBuyStrategy",
    "PoolProfile",
    "TruncatedPricePath",
    "make_failed_report",
    "make_parameters",
    "make_record",
    "make_reference",
    "make_report",
    "make_state",
    "random_reports",
]
