"""Monte Carlo simulation: runs, engine and metrics aggregation."""

from arpp_sim.simulation.result import (
    AggregateReport,
    BatchResult,
    RunReport,
    RunSummary,
    StepRecord,
    SummaryStatistics,
)
from arpp_sim.simulation.metrics import MetricsAccumulator, MetricsAggregator, RunningStats
from arpp_sim.simulation.run import SimulationRun
from arpp_sim.simulation.engine import MonteCarloEngine

__all__ = [
    "AggregateReport",
    "BatchResult",
    "RunReport",
    "RunSummary",
    "StepRecord",
    "SummaryStatistics",
    "MetricsAccumulator",
    "MetricsAggregator",
    "RunningStats",
    "SimulationRun",
    "MonteCarloEngine",
]
