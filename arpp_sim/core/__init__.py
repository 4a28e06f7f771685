"""Core pricing and pool components."""

from arpp_sim.core.errors import (
    ArppError,
    InsufficientLiquidity,
    InvalidParameter,
    NumericOverflow,
    RunAborted,
    StepBudgetExceeded,
)
from arpp_sim.core.formula import arpp_price, max_deviation, token_ratio
from arpp_sim.core.interfaces import TradingStrategy
from arpp_sim.core.params import Parameters
from arpp_sim.core.pool import LiquidityPool, PoolState, Quote, apply_trade
from arpp_sim.core.trade import ReferencePrice, TradeEvent, TradeSide

__all__ = [
    "ArppError",
    "InsufficientLiquidity",
    "InvalidParameter",
    "NumericOverflow",
    "RunAborted",
    "StepBudgetExceeded",
    "arpp_price",
    "max_deviation",
    "token_ratio",
    "TradingStrategy",
    "Parameters",
    "LiquidityPool",
    "PoolState",
    "Quote",
    "apply_trade",
    "ReferencePrice",
    "TradeEvent",
    "TradeSide",
]
