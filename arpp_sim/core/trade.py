"""Trade and reference price data classes."""

import math
from dataclasses import dataclass
from enum import Enum

from arpp_sim.core.errors import InvalidParameter, NumericOverflow


class TradeSide(Enum):
    """Side of a trade from the trader's perspective, in terms of token A."""
    BUY_A = "buy_a"    # Trader takes A out of the pool, pays B
    SELL_A = "sell_a"  # Trader puts A into the pool, receives B


@dataclass(frozen=True)
class ReferencePrice:
    """External "fair" price (token A per token B) for one step."""
    step_index: int
    value: float

    def __post_init__(self) -> None:
        if not math.isfinite(self.value):
            raise NumericOverflow(f"reference price at step {self.step_index} is {self.value}")
        if self.value <= 0:
            raise InvalidParameter(
                f"reference price must be > 0, got {self.value} at step {self.step_index}"
            )


@dataclass(frozen=True)
class TradeEvent:
    """A trade intent produced by a strategy and consumed by the pool.

    Amounts are always denominated in token A.
    """
    side: TradeSide
    amount: float
    step_index: int

    def __post_init__(self) -> None:
        if not math.isfinite(self.amount):
            raise NumericOverflow(f"trade amount is {self.amount}")
        if self.amount <= 0:
            raise InvalidParameter(f"trade amount must be > 0, got {self.amount}")

    @classmethod
    def buy(cls, amount: float, step_index: int) -> "TradeEvent":
        return cls(side=TradeSide.BUY_A, amount=amount, step_index=step_index)

    @classmethod
    def sell(cls, amount: float, step_index: int) -> "TradeEvent":
        return cls(side=TradeSide.SELL_A, amount=amount, step_index=step_index)
