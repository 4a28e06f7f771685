"""ARPP pricing formula and Monte Carlo AMM simulator."""

from arpp_sim.core.errors import (
    InsufficientLiquidity,
    InvalidParameter,
    NumericOverflow,
    RunAborted,
)
from arpp_sim.core.formula import arpp_price
from arpp_sim.core.params import Parameters
from arpp_sim.core.pool import LiquidityPool, PoolState
from arpp_sim.core.trade import ReferencePrice, TradeEvent, TradeSide
from arpp_sim.simulation.engine import MonteCarloEngine
from arpp_sim.simulation.result import AggregateReport, RunReport

__all__ = [
    "InsufficientLiquidity",
    "InvalidParameter",
    "NumericOverflow",
    "RunAborted",
    "arpp_price",
    "Parameters",
    "LiquidityPool",
    "PoolState",
    "ReferencePrice",
    "TradeEvent",
    "TradeSide",
    "MonteCarloEngine",
    "AggregateReport",
    "RunReport",
]
