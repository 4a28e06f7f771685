"""Trading strategy interface."""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from arpp_sim.core.pool import PoolState
from arpp_sim.core.trade import ReferencePrice, TradeEvent


class TradingStrategy(ABC):
    """Abstract base class for trading policies driving a pool.

    Strategies are stateless across steps. The only randomness a strategy
    may use is the generator passed to decide(), which belongs to the run,
    so a run's trajectory is fixed by its seed, parameters and reference
    path.
    """

    @abstractmethod
    def decide(
        self,
        state: PoolState,
        reference: ReferencePrice,
        rng: np.random.Generator,
    ) -> Optional[TradeEvent]:
        """Propose a trade for the current step.

        Args:
            state: Pool state, already priced at this step's reference
            reference: This step's reference price
            rng: The run's strategy RNG stream

        Returns:
            A TradeEvent, or None to skip the step
        """
        pass

    def get_name(self) -> str:
        """Return the strategy name for display purposes."""
        return self.__class__.__name__
