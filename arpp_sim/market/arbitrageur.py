"""Arbitrageur closing the gap between pool and reference price."""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from arpp_sim.core.errors import InvalidParameter
from arpp_sim.core.interfaces import TradingStrategy
from arpp_sim.core.pool import PoolState
from arpp_sim.core.trade import ReferencePrice, TradeEvent


@dataclass(frozen=True)
class Arbitrageur(TradingStrategy):
    """Trades the pool price back onto the reference price.

    The ARPP price equals the reference exactly at R = 1, so the target is
    balanced reserves. With pool price p (A per B), reserves (a, b) and
    gamma = 1 - fee:
    - p > reference (A-heavy): buy x = (a - b) * p / (p + 1) of A
    - p < reference (A-light): sell x = (b - a) * p / (p + 1) / gamma of A
    Sizes are capped at `max_trade_size`. Gaps no larger than
    max(min_gap, fee) are not worth trading.
    """
    max_trade_size: float = 100.0
    min_gap: float = 1e-9
    fee: float = 0.0

    def __post_init__(self) -> None:
        if self.max_trade_size <= 0:
            raise InvalidParameter(f"max_trade_size must be > 0, got {self.max_trade_size}")
        if self.min_gap < 0:
            raise InvalidParameter(f"min_gap must be >= 0, got {self.min_gap}")
        if not 0 <= self.fee < 1:
            raise InvalidParameter(f"fee must be in [0, 1), got {self.fee}")

    def decide(
        self, state: PoolState, reference: ReferencePrice, rng: np.random.Generator
    ) -> Optional[TradeEvent]:
        p = state.price
        if p is None or p <= 0:
            return None

        gap = (p - reference.value) / reference.value
        if abs(gap) <= max(self.min_gap, self.fee):
            return None

        a, b = state.reserve_a, state.reserve_b
        if gap > 0:
            amount = (a - b) * p / (p + 1.0)
            side = TradeEvent.buy
        else:
            amount = (b - a) * p / (p + 1.0) / (1.0 - self.fee)
            side = TradeEvent.sell

        amount = min(amount, self.max_trade_size)
        if amount <= 0:
            return None
        return side(amount, reference.step_index)
