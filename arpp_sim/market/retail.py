"""Random retail trading flow."""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from arpp_sim.core.errors import InvalidParameter
from arpp_sim.core.interfaces import TradingStrategy
from arpp_sim.core.pool import PoolState
from arpp_sim.core.trade import ReferencePrice, TradeEvent


@dataclass(frozen=True)
class RandomWalkStrategy(TradingStrategy):
    """Uninformed trader submitting random orders.

    Each step trades with probability `trade_probability`. Sizes are
    lognormally distributed with mean `mean_size` (token A); the side is
    BUY_A with probability `buy_prob`. Every draw comes from the run's
    strategy stream.
    """
    trade_probability: float = 0.5
    mean_size: float = 10.0
    size_sigma: float = 1.2
    buy_prob: float = 0.5

    def __post_init__(self) -> None:
        if not 0 <= self.trade_probability <= 1:
            raise InvalidParameter(f"trade_probability must be in [0, 1], got {self.trade_probability}")
        if self.mean_size <= 0:
            raise InvalidParameter(f"mean_size must be > 0, got {self.mean_size}")
        if self.size_sigma < 0:
            raise InvalidParameter(f"size_sigma must be >= 0, got {self.size_sigma}")
        if not 0 <= self.buy_prob <= 1:
            raise InvalidParameter(f"buy_prob must be in [0, 1], got {self.buy_prob}")

    def decide(
        self, state: PoolState, reference: ReferencePrice, rng: np.random.Generator
    ) -> Optional[TradeEvent]:
        if rng.random() >= self.trade_probability:
            return None

        # Lognormally distributed sizes with mean = mean_size
        sigma = max(self.size_sigma, 0.01)
        mu = math.log(self.mean_size) - 0.5 * sigma * sigma
        size = float(rng.lognormal(mu, sigma))
        if size <= 0:
            return None

        if rng.random() < self.buy_prob:
            return TradeEvent.buy(size, reference.step_index)
        return TradeEvent.sell(size, reference.step_index)
