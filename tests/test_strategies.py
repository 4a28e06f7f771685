"""Tests for the built-in trading strategies.

Test coverage:
- NoOp never trades
- Random walk: reproducible from the RNG, respects its probabilities
- Mean reversion: trade direction and size from the reserve imbalance
- Arbitrageur: closes the price gap, respects fee and size cap
"""

import numpy as np
import pytest

from arpp_sim.core.errors import InvalidParameter
from arpp_sim.core.pool import LiquidityPool, PoolState
from arpp_sim.core.trade import TradeSide
from arpp_sim.market.arbitrageur import Arbitrageur
from arpp_sim.market.retail import RandomWalkStrategy
from arpp_sim.market.strategies import MeanReversionStrategy, NoOpStrategy
from tests.fixtures.simulation_fixtures import PoolProfile, make_parameters, make_reference, make_state


def _decisions(strategy, seed, steps=50):
    rng = np.random.default_rng(seed)
    state = make_state(price=1.0)
    return [strategy.decide(state, make_reference(1.0, i), rng) for i in range(steps)]


class TestNoOpStrategy:

    def test_never_trades(self, balanced_state, reference, rng):
        strategy = NoOpStrategy()
        assert strategy.decide(balanced_state, reference, rng) is None
        assert strategy.decide(make_state(PoolProfile.A_HEAVY, 1.5), reference, rng) is None

    def test_name(self):
        assert NoOpStrategy().get_name() == "NoOpStrategy"


class TestRandomWalkStrategy:

    def test_same_seed_same_decisions(self):
        strategy = RandomWalkStrategy()
        assert _decisions(strategy, 99) == _decisions(strategy, 99)

    def test_different_seed_different_decisions(self):
        strategy = RandomWalkStrategy()
        assert _decisions(strategy, 1) != _decisions(strategy, 2)

    def test_zero_probability_never_trades(self):
        assert all(d is None for d in _decisions(RandomWalkStrategy(trade_probability=0.0), 5))

    def test_always_buys(self):
        decisions = _decisions(RandomWalkStrategy(trade_probability=1.0, buy_prob=1.0), 5)
        assert all(d is not None and d.side is TradeSide.BUY_A for d in decisions)
        assert all(d.amount > 0 for d in decisions)

    def test_always_sells(self):
        decisions = _decisions(RandomWalkStrategy(trade_probability=1.0, buy_prob=0.0), 5)
        assert all(d.side is TradeSide.SELL_A for d in decisions)

    def test_step_index_propagates(self):
        decisions = _decisions(RandomWalkStrategy(trade_probability=1.0), 3, steps=5)
        assert [d.step_index for d in decisions] == [0, 1, 2, 3, 4]

    def test_mean_size(self):
        decisions = _decisions(RandomWalkStrategy(trade_probability=1.0, mean_size=10.0, size_sigma=0.5), 11, steps=4000)
        sizes = np.array([d.amount for d in decisions])
        assert sizes.mean() == pytest.approx(10.0, rel=0.05)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"trade_probability": 1.5},
            {"trade_probability": -0.1},
            {"mean_size": 0.0},
            {"size_sigma": -1.0},
            {"buy_prob": 2.0},
        ],
    )
    def test_invalid_configuration(self, kwargs):
        with pytest.raises(InvalidParameter):
            RandomWalkStrategy(**kwargs)


class TestMeanReversionStrategy:

    def test_balanced_pool_no_trade(self, balanced_state, reference, rng):
        assert MeanReversionStrategy().decide(balanced_state, reference, rng) is None

    def test_within_threshold_no_trade(self, reference, rng):
        state = make_state(PoolProfile.A_HEAVY, 1.0)
        assert MeanReversionStrategy(threshold=0.25).decide(state, reference, rng) is None

    def test_a_heavy_pool_buys_a(self, reference, rng):
        """intensity * reserve_b * |R - 1| = 0.5 * 1000 * 0.2."""
        trade = MeanReversionStrategy().decide(make_state(PoolProfile.A_HEAVY, 1.0), reference, rng)
        assert trade.side is TradeSide.BUY_A
        assert trade.amount == pytest.approx(100.0)

    def test_a_light_pool_sells_a(self, reference, rng):
        trade = MeanReversionStrategy().decide(make_state(PoolProfile.A_LIGHT, 1.0), reference, rng)
        assert trade.side is TradeSide.SELL_A
        assert trade.amount == pytest.approx(100.0)

    def test_max_amount_cap(self, reference, rng):
        strategy = MeanReversionStrategy(max_amount=25.0)
        trade = strategy.decide(make_state(PoolProfile.A_LIGHT, 1.0), reference, rng)
        assert trade.amount == 25.0

    def test_consumes_no_randomness(self, reference):
        rng = np.random.default_rng(8)
        MeanReversionStrategy().decide(make_state(PoolProfile.A_HEAVY, 1.0), reference, rng)
        assert rng.random() == np.random.default_rng(8).random()

    def test_reduces_imbalance(self, pool, reference, rng):
        state = pool.reprice(make_state(PoolProfile.A_HEAVY), reference)
        trade = MeanReversionStrategy().decide(state, reference, rng)
        new_state, _ = pool.apply_trade(state, trade, reference)
        assert abs(new_state.ratio - 1.0) < abs(state.ratio - 1.0)

    def test_invalid_intensity(self):
        with pytest.raises(InvalidParameter):
            MeanReversionStrategy(intensity=0.0)


class TestArbitrageur:
    """Arbitrage trades bring the pool price back onto the reference."""

    def test_no_gap_no_trade(self, balanced_state, reference, rng):
        assert Arbitrageur().decide(balanced_state, reference, rng) is None

    def test_unpriced_state_no_trade(self, reference, rng):
        assert Arbitrageur().decide(make_state(PoolProfile.A_HEAVY), reference, rng) is None

    def test_non_positive_price_no_trade(self, reference, rng):
        state = PoolState(reserve_a=500.0, reserve_b=1000.0, price=-0.37)
        assert Arbitrageur().decide(state, reference, rng) is None

    def test_a_heavy_pool_closes_gap(self, reference, rng):
        pool = LiquidityPool(make_parameters(fee=0.0))
        state = pool.reprice(make_state(PoolProfile.A_HEAVY), reference)
        assert state.price > reference.value

        trade = Arbitrageur(max_trade_size=1000.0).decide(state, reference, rng)
        assert trade.side is TradeSide.BUY_A

        new_state, _ = pool.apply_trade(state, trade, reference)
        assert new_state.ratio == pytest.approx(1.0)
        assert new_state.price == pytest.approx(reference.value, abs=1e-9)

    def test_a_light_pool_closes_gap_with_fee(self, reference, rng):
        pool = LiquidityPool(make_parameters(fee=0.003))
        state = pool.reprice(make_state(PoolProfile.A_LIGHT), reference)
        arbitrageur = Arbitrageur(max_trade_size=1000.0, fee=0.003)

        trade = arbitrageur.decide(state, reference, rng)
        assert trade.side is TradeSide.SELL_A

        new_state, _ = pool.apply_trade(state, trade, reference)
        assert new_state.price == pytest.approx(reference.value, abs=1e-9)
        assert arbitrageur.decide(new_state, reference, rng) is None

    def test_gap_below_fee_not_traded(self, reference, rng):
        pool = LiquidityPool(make_parameters())
        state = pool.reprice(make_state(), reference)
        state = pool.add_liquidity(state, 1.0, 0.0)
        state = pool.reprice(state, reference)
        assert state.price != reference.value
        assert Arbitrageur(fee=0.003).decide(state, reference, rng) is None

    def test_trade_size_cap(self, reference, rng):
        pool = LiquidityPool(make_parameters(fee=0.0))
        state = pool.reprice(make_state(PoolProfile.A_HEAVY), reference)
        trade = Arbitrageur(max_trade_size=10.0).decide(state, reference, rng)
        assert trade.amount == 10.0

    @pytest.mark.parametrize(
        "kwargs", [{"max_trade_size": 0.0}, {"min_gap": -1.0}, {"fee": 1.0}]
    )
    def test_invalid_configuration(self, kwargs):
        with pytest.raises(InvalidParameter):
            Arbitrageur(**kwargs)
