"""Tests for a single simulation run.

Test coverage:
- Step records: indices, deviation, impermanent loss
- Reproducibility from the run seed
- Liquidity, numeric and step budget failures abort only the run
- Optional replenishment of a depleted reserve
- A broken reference source is a configuration error
"""

import pytest

from arpp_sim.core.errors import InvalidParameter, RunAborted
from arpp_sim.market.price_process import GBMPricePath, ReplayPricePath
from arpp_sim.market.retail import RandomWalkStrategy
from arpp_sim.market.strategies import NoOpStrategy
from arpp_sim.simulation.run import SimulationRun, execute_run
from tests.fixtures.simulation_fixtures import (
    AlternatingStrategy,
    FixedBuyStrategy,
    TruncatedPricePath,
    make_parameters,
)


class TestStepRecords:

    def test_noop_tracks_reference(self):
        parameters = make_parameters(num_steps=3)
        report = execute_run(0, 123, parameters, NoOpStrategy(), ReplayPricePath([1.0, 1.1, 0.9]))

        assert not report.failed
        assert report.steps_completed == 3
        assert [r.step_index for r in report.records] == [0, 1, 2]
        assert [r.reference_price for r in report.records] == [1.0, 1.1, 0.9]
        for record in report.records:
            assert record.pool_price == record.reference_price
            assert record.deviation == 0.0
            assert record.slippage == 0.0
            assert record.impermanent_loss == 0.0
            assert record.traded_amount == 0.0
        assert report.terminal_state.reserve_a == 1000.0
        assert report.terminal_state.reserve_b == 1000.0

    def test_deviation_is_pool_minus_reference(self):
        parameters = make_parameters(num_steps=6)
        report = execute_run(0, 5, parameters, AlternatingStrategy(), ReplayPricePath([1.0] * 6))
        for record in report.records:
            assert record.deviation == pytest.approx(record.pool_price - record.reference_price)

    def test_trades_recorded(self):
        parameters = make_parameters(num_steps=4)
        report = execute_run(0, 5, parameters, AlternatingStrategy(amount=50.0), ReplayPricePath([1.0] * 4))
        assert [r.traded_amount for r in report.records] == [50.0] * 4
        assert report.records[0].slippage > 0
        assert report.records[1].slippage < 0
        assert report.records[0].reserve_a == pytest.approx(1000.0 + 50.0 * 0.997)

    def test_deviation_bound_holds(self):
        parameters = make_parameters(num_steps=200, alpha=0.2, volatility=0.05)
        strategy = RandomWalkStrategy(trade_probability=0.8, mean_size=50.0)
        report = execute_run(0, 77, parameters, strategy, GBMPricePath())
        for record in report.records:
            assert abs(record.deviation) < record.reference_price * parameters.alpha * 1.5707963267948966

    def test_initial_state_kept(self):
        parameters = make_parameters(num_steps=4)
        report = execute_run(0, 5, parameters, FixedBuyStrategy(10.0), ReplayPricePath([1.0] * 4))
        assert report.initial_state.reserve_a == 1000.0
        assert report.terminal_state.reserve_a == pytest.approx(960.0)


class TestReproducibility:

    def test_same_seed_same_report(self):
        parameters = make_parameters(num_steps=100)
        strategy = RandomWalkStrategy(trade_probability=0.7)
        first = execute_run(3, 2024, parameters, strategy, GBMPricePath())
        second = execute_run(3, 2024, parameters, strategy, GBMPricePath())
        assert first == second

    def test_different_seed_different_report(self):
        parameters = make_parameters(num_steps=100)
        strategy = RandomWalkStrategy(trade_probability=0.7)
        first = execute_run(0, 1, parameters, strategy, GBMPricePath())
        second = execute_run(0, 2, parameters, strategy, GBMPricePath())
        assert first.records != second.records

    def test_execute_is_repeatable_on_same_instance(self):
        run = SimulationRun(0, 9, make_parameters(num_steps=20), RandomWalkStrategy(), GBMPricePath())
        assert run.execute() == run.execute()


class TestRunFailures:
    """Failures end the run, keep its partial records and never raise."""

    def test_insufficient_liquidity(self):
        parameters = make_parameters(num_steps=5)
        report = execute_run(4, 1, parameters, FixedBuyStrategy(400.0), ReplayPricePath([1.0] * 5))

        assert report.failed
        assert report.failure_kind == "InsufficientLiquidity"
        assert report.steps_completed == 2
        assert report.terminal_state.reserve_a == pytest.approx(200.0)
        assert report.run_id == 4

    def test_step_budget_exceeded(self):
        parameters = make_parameters(num_steps=5, step_budget=2)
        report = execute_run(0, 1, parameters, NoOpStrategy(), GBMPricePath())

        assert report.failed
        assert report.failure_kind == "StepBudgetExceeded"
        assert report.steps_completed == 2

    def test_budget_equal_to_steps_succeeds(self):
        parameters = make_parameters(num_steps=5, step_budget=5)
        assert not execute_run(0, 1, parameters, NoOpStrategy(), GBMPricePath()).failed

    def test_budget_shared_across_runs(self):
        """Run 1 may only use what run 0 left of the batch budget."""
        parameters = make_parameters(num_steps=10, step_budget=12)
        report = execute_run(1, 1, parameters, NoOpStrategy(), GBMPricePath())

        assert report.failure_kind == "StepBudgetExceeded"
        assert report.steps_completed == 2

    def test_edge_case_non_positive_price(self):
        parameters = make_parameters(num_steps=5, alpha=1.0, beta=10.0, initial_reserve_a=500.0)
        report = execute_run(0, 1, parameters, NoOpStrategy(), ReplayPricePath([1.0] * 5))

        assert report.failed
        assert report.failure_kind == "NumericOverflow"
        assert report.steps_completed == 0

    def test_edge_case_numeric_overflow(self):
        parameters = make_parameters(num_steps=5, volatility=0.0, drift=1000.0)
        report = execute_run(0, 1, parameters, NoOpStrategy(), GBMPricePath())

        assert report.failed
        assert report.failure_kind == "NumericOverflow"
        assert report.steps_completed == 1

    def test_truncated_reference_source_raises(self):
        parameters = make_parameters(num_steps=5)
        with pytest.raises(InvalidParameter):
            execute_run(0, 1, parameters, NoOpStrategy(), TruncatedPricePath(3))

    def test_run_aborted_keeps_cause(self):
        cause = ValueError("boom")
        aborted = RunAborted(7, cause, ())
        assert aborted.run_id == 7
        assert aborted.cause is cause
        assert "run 7" in str(aborted)


class TestReplenishment:

    def test_depleted_reserve_topped_up(self):
        parameters = make_parameters(num_steps=5, replenish_liquidity=True)
        report = execute_run(0, 1, parameters, FixedBuyStrategy(200.0), ReplayPricePath([1.0] * 5))

        assert not report.failed
        assert sum(r.replenished_a for r in report.records) > 0
        assert all(r.replenished_b == 0.0 for r in report.records)
        assert report.records[0].replenished_a == 0.0

    def test_without_replenishment_pool_drains(self):
        parameters = make_parameters(num_steps=5)
        report = execute_run(0, 1, parameters, FixedBuyStrategy(200.0), ReplayPricePath([1.0] * 5))

        assert report.failure_kind == "InsufficientLiquidity"
        assert all(r.replenished_a == 0.0 for r in report.records)
