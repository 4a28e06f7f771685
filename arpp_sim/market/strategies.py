"""Deterministic trading strategies: the no-op control and mean reversion."""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from arpp_sim.core.errors import InvalidParameter
from arpp_sim.core.interfaces import TradingStrategy
from arpp_sim.core.pool import PoolState
from arpp_sim.core.trade import ReferencePrice, TradeEvent


@dataclass(frozen=True)
class NoOpStrategy(TradingStrategy):
    """Never trades. Control baseline: the pool only follows the reference."""

    def decide(
        self, state: PoolState, reference: ReferencePrice, rng: np.random.Generator
    ) -> Optional[TradeEvent]:
        return None


@dataclass(frozen=True)
class MeanReversionStrategy(TradingStrategy):
    """Pushes the pool back toward balanced reserves (R = 1).

    When |R - 1| exceeds `threshold`, trades
        intensity * reserve_b * |R - 1|  (= intensity * |reserve_a - reserve_b|)
    of token A: buying A out of an A-heavy pool, selling A into an
    A-light one. Consumes no randomness.
    """
    threshold: float = 0.05
    intensity: float = 0.5
    max_amount: Optional[float] = None

    def __post_init__(self) -> None:
        if self.threshold < 0:
            raise InvalidParameter(f"threshold must be >= 0, got {self.threshold}")
        if self.intensity <= 0:
            raise InvalidParameter(f"intensity must be > 0, got {self.intensity}")
        if self.max_amount is not None and self.max_amount <= 0:
            raise InvalidParameter(f"max_amount must be > 0, got {self.max_amount}")

    def decide(
        self, state: PoolState, reference: ReferencePrice, rng: np.random.Generator
    ) -> Optional[TradeEvent]:
        imbalance = state.ratio - 1.0
        if abs(imbalance) <= self.threshold:
            return None

        amount = self.intensity * state.reserve_b * abs(imbalance)
        if self.max_amount is not None:
            amount = min(amount, self.max_amount)
        if amount <= 0:
            return None

        if imbalance > 0:
            return TradeEvent.buy(amount, reference.step_index)
        return TradeEvent.sell(amount, reference.step_index)
