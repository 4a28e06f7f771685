"""A single independent simulation trajectory."""

import logging
from typing import Iterator, Optional

import numpy as np

from arpp_sim.core.errors import (
    InsufficientLiquidity,
    InvalidParameter,
    NumericOverflow,
    RunAborted,
    StepBudgetExceeded,
)
from arpp_sim.core.interfaces import TradingStrategy
from arpp_sim.core.params import Parameters
from arpp_sim.core.pool import LiquidityPool, PoolState
from arpp_sim.core.rng import STRATEGY_STREAM, stream_rng
from arpp_sim.core.trade import ReferencePrice
from arpp_sim.market.price_process import PricePathGenerator
from arpp_sim.simulation.metrics import impermanent_loss
from arpp_sim.simulation.result import RunReport, StepRecord

logger = logging.getLogger(__name__)

# Errors that end a single run without affecting the batch
RECOVERABLE_ERRORS = (InsufficientLiquidity, NumericOverflow, StepBudgetExceeded)


class SimulationRun:
    """Drives one run: reference path -> strategy -> pool, step by step.

    The run owns its pool state, its RNG streams and its records; nothing
    is shared with other runs.
    """

    def __init__(
        self,
        run_id: int,
        seed: int,
        parameters: Parameters,
        strategy: TradingStrategy,
        path_generator: PricePathGenerator,
    ):
        self.run_id = run_id
        self.seed = seed
        self.parameters = parameters
        self.strategy = strategy
        self.path_generator = path_generator
        self.pool = LiquidityPool(parameters)
        self._initial_state: PoolState = self.pool.open()
        self._state: PoolState = self._initial_state
        self._records: list[StepRecord] = []

    def execute(self) -> RunReport:
        """Run every step and return the finalized report.

        Liquidity, numeric and budget failures abort this run only; the
        report is marked failed and keeps the records produced so far.
        """
        try:
            self._simulate()
        except RunAborted as aborted:
            logger.warning(str(aborted))
            return RunReport(
                run_id=self.run_id,
                seed=self.seed,
                records=aborted.records,
                initial_state=self._initial_state,
                terminal_state=self._state,
                failed=True,
                failure_reason=str(aborted.cause),
                failure_kind=type(aborted.cause).__name__,
            )

        return RunReport(
            run_id=self.run_id,
            seed=self.seed,
            records=tuple(self._records),
            initial_state=self._initial_state,
            terminal_state=self._state,
        )

    def _simulate(self) -> None:
        self._state = self._initial_state
        self._records = []
        rng = stream_rng(self.seed, STRATEGY_STREAM)
        allowance = self.parameters.step_allowance(self.run_id)

        try:
            prices = self.path_generator.generate(self.parameters, self.seed)
            for step in range(self.parameters.num_steps):
                if allowance is not None and step >= allowance:
                    raise StepBudgetExceeded(
                        f"batch step budget of {self.parameters.step_budget} exhausted "
                        f"before step {step} of run {self.run_id}"
                    )
                reference = self._next_reference(prices, step)
                self._step(reference, rng)
        except RECOVERABLE_ERRORS as exc:
            raise RunAborted(self.run_id, exc, tuple(self._records)) from exc

    @staticmethod
    def _next_reference(prices: Iterator[ReferencePrice], step: int) -> ReferencePrice:
        reference: Optional[ReferencePrice] = next(prices, None)
        if reference is None:
            raise InvalidParameter(f"reference path ended after {step} prices")
        return reference

    def _step(self, reference: ReferencePrice, rng: np.random.Generator) -> None:
        state = self._state
        added_a = added_b = 0.0
        if self.parameters.replenish_liquidity:
            state, added_a, added_b = self.pool.replenish(state)
        state = self.pool.reprice(state, reference)
        trade = self.strategy.decide(state, reference, rng)

        slippage = 0.0
        traded = 0.0
        if trade is not None:
            state, slippage = self.pool.apply_trade(state, trade, reference)
            traded = trade.amount

        self._state = state
        self._records.append(StepRecord(
            step_index=reference.step_index,
            reference_price=reference.value,
            pool_price=state.price,
            deviation=state.price - reference.value,
            slippage=slippage,
            impermanent_loss=impermanent_loss(
                state.reserve_a,
                state.reserve_b,
                self.parameters.initial_reserve_a,
                self.parameters.initial_reserve_b,
                reference.value,
            ),
            reserve_a=state.reserve_a,
            reserve_b=state.reserve_b,
            traded_amount=traded,
            replenished_a=added_a,
            replenished_b=added_b,
        ))


def execute_run(
    run_id: int,
    seed: int,
    parameters: Parameters,
    strategy: TradingStrategy,
    path_generator: PricePathGenerator,
) -> RunReport:
    """Build and execute one run. Module-level so worker processes can call it."""
    return SimulationRun(run_id, seed, parameters, strategy, path_generator).execute()
