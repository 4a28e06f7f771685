"""ARPP liquidity pool with immutable state transitions."""

import logging
import math
from dataclasses import dataclass, replace
from typing import Optional

from arpp_sim.core.errors import InsufficientLiquidity, InvalidParameter, NumericOverflow
from arpp_sim.core.formula import arpp_price, token_ratio
from arpp_sim.core.params import Parameters
from arpp_sim.core.trade import ReferencePrice, TradeEvent, TradeSide

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolState:
    """Reserves and last computed price of a pool.

    Fees are collected into separate buckets rather than being added to
    the reserves, so the reserves only move by the net traded amounts.
    """
    reserve_a: float
    reserve_b: float
    price: Optional[float] = None  # None until first priced
    accumulated_fee_a: float = 0.0
    accumulated_fee_b: float = 0.0

    @property
    def ratio(self) -> float:
        """Reserve ratio R = reserve_a / reserve_b."""
        return token_ratio(self.reserve_a, self.reserve_b)

    @property
    def liquidity_depth(self) -> float:
        """Geometric mean of the reserves."""
        return math.sqrt(self.reserve_a * self.reserve_b)

    @property
    def total_liquidity(self) -> float:
        return self.reserve_a + self.reserve_b


@dataclass(frozen=True)
class Quote:
    """A quote for a potential trade."""
    side: TradeSide
    amount_in: float        # Gross input (A for SELL_A, B for BUY_A)
    amount_out: float       # Output to the trader (B for SELL_A, A for BUY_A)
    fee_amount: float       # Fee in the input token
    execution_price: float  # Pool price (A per B) the trade executes at
    new_reserve_a: float
    new_reserve_b: float


class LiquidityPool:
    """Prices trades with the ARPP formula and derives successor states.

    A trade executes at the pool price computed from the pre-trade ratio
    and the current reference price. The fee is taken on the input side:
    - SELL_A x: net_a = x * (1 - fee) enters the pool, net_a / p of B leaves
    - BUY_A x: x of A leaves the pool, x / p of B enters, the trader pays
      x / p / (1 - fee) of B in total

    Every method returns a new PoolState; the input state is never mutated.
    """

    def __init__(self, parameters: Parameters):
        self.parameters = parameters

    def open(self) -> PoolState:
        """Fresh pool state from the initial reserves."""
        return PoolState(
            reserve_a=float(self.parameters.initial_reserve_a),
            reserve_b=float(self.parameters.initial_reserve_b),
        )

    def price_at(self, state: PoolState, reference: ReferencePrice) -> float:
        """Pool price for the state's current ratio at a reference price.

        Raises:
            NumericOverflow: If the price is not strictly positive, which happens
                for alpha > 2/pi on a strongly A-light pool
        """
        price = arpp_price(
            reference.value, state.ratio, self.parameters.alpha, self.parameters.beta
        )
        if price <= 0:
            raise NumericOverflow(
                f"pool price {price:.6g} is not positive at ratio {state.ratio:.6g} "
                f"(step {reference.step_index})"
            )
        return price

    def reprice(self, state: PoolState, reference: ReferencePrice) -> PoolState:
        """Recompute the pool price for a new reference price."""
        return replace(state, price=self.price_at(state, reference))

    def quote(self, state: PoolState, trade: TradeEvent, reference: ReferencePrice) -> Quote:
        """Quote a trade without applying it.

        Raises:
            InsufficientLiquidity: If either resulting reserve would be <= 0
            NumericOverflow: If the pool price is not positive or any
                intermediate value is not finite
        """
        price = self.price_at(state, reference)
        gamma = self.parameters.gamma
        x = trade.amount

        if trade.side is TradeSide.SELL_A:
            net_a = x * gamma
            amount_out = net_a / price
            new_reserve_a = state.reserve_a + net_a
            new_reserve_b = state.reserve_b - amount_out
            amount_in = x
            fee_amount = x - net_a
        else:
            net_b = x / price
            amount_in = net_b / gamma
            new_reserve_a = state.reserve_a - x
            new_reserve_b = state.reserve_b + net_b
            amount_out = x
            fee_amount = amount_in - net_b

        for value in (amount_in, amount_out, fee_amount, new_reserve_a, new_reserve_b):
            if not math.isfinite(value):
                raise NumericOverflow(
                    f"non-finite value while quoting {trade.side.value} {x} at step {trade.step_index}"
                )

        if new_reserve_a <= 0 or new_reserve_b <= 0:
            raise InsufficientLiquidity(
                f"{trade.side.value} of {x} at step {trade.step_index} would leave reserves "
                f"({new_reserve_a}, {new_reserve_b})"
            )

        return Quote(
            side=trade.side,
            amount_in=amount_in,
            amount_out=amount_out,
            fee_amount=fee_amount,
            execution_price=price,
            new_reserve_a=new_reserve_a,
            new_reserve_b=new_reserve_b,
        )

    def apply_trade(
        self, state: PoolState, trade: TradeEvent, reference: ReferencePrice
    ) -> tuple[PoolState, float]:
        """Apply a trade and return the successor state and its slippage.

        Slippage is the relative change of the pool price caused by the
        trade, with both prices taken at the same reference price.
        """
        q = self.quote(state, trade, reference)
        price_before = q.execution_price

        if trade.side is TradeSide.SELL_A:
            fee_a, fee_b = q.fee_amount, 0.0
        else:
            fee_a, fee_b = 0.0, q.fee_amount

        new_state = PoolState(
            reserve_a=q.new_reserve_a,
            reserve_b=q.new_reserve_b,
            accumulated_fee_a=state.accumulated_fee_a + fee_a,
            accumulated_fee_b=state.accumulated_fee_b + fee_b,
        )
        new_state = self.reprice(new_state, reference)
        slippage = (new_state.price - price_before) / price_before
        if not math.isfinite(slippage):
            raise NumericOverflow(f"slippage overflowed at step {trade.step_index}")

        logger.debug(
            f"step {trade.step_index}: {trade.side.value} {trade.amount:.6g} "
            f"price {price_before:.6g} -> {new_state.price:.6g}"
        )
        return new_state, slippage

    def add_liquidity(self, state: PoolState, amount_a: float, amount_b: float) -> PoolState:
        """Deposit liquidity. Either amount may be zero, not both."""
        if amount_a < 0 or amount_b < 0 or (amount_a == 0 and amount_b == 0):
            raise InvalidParameter(
                f"liquidity amounts must be non-negative and not both zero, got ({amount_a}, {amount_b})"
            )
        return replace(
            state,
            reserve_a=state.reserve_a + amount_a,
            reserve_b=state.reserve_b + amount_b,
        )

    def replenish(self, state: PoolState) -> tuple[PoolState, float, float]:
        """Top up a reserve that fell below half of the other one.

        Returns the new state and the amounts of A and B deposited (both
        0.0 when the pool needs nothing).
        """
        a, b = state.reserve_a, state.reserve_b
        added_a = b / 2 - a if a < b / 2 else 0.0
        added_b = a / 2 - b if b < a / 2 else 0.0
        if added_a == 0.0 and added_b == 0.0:
            return state, 0.0, 0.0

        logger.debug(f"replenishing pool with ({added_a:.6g}, {added_b:.6g})")
        return self.add_liquidity(state, added_a, added_b), added_a, added_b


def apply_trade(
    state: PoolState,
    trade: TradeEvent,
    parameters: Parameters,
    reference: ReferencePrice,
) -> tuple[PoolState, float]:
    """Functional form of LiquidityPool.apply_trade."""
    return LiquidityPool(parameters).apply_trade(state, trade, reference)
