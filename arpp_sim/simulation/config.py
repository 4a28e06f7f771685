"""Shared default settings, worker resolution and strategy lookup."""

from dataclasses import asdict, dataclass
import multiprocessing
import os
from typing import Any, Optional

from arpp_sim.core.errors import InvalidParameter
from arpp_sim.core.interfaces import TradingStrategy
from arpp_sim.core.params import Parameters
from arpp_sim.market.arbitrageur import Arbitrageur
from arpp_sim.market.retail import RandomWalkStrategy
from arpp_sim.market.strategies import MeanReversionStrategy, NoOpStrategy


@dataclass(frozen=True)
class SimulationSettings:
    num_runs: int
    num_steps: int
    alpha: float
    beta: float
    fee: float
    initial_reserve_a: float
    initial_reserve_b: float
    initial_price: float
    drift: float
    volatility: float
    volatility_of_volatility: float
    dt: float
    base_seed: int
    replenish_liquidity: bool = False


DEFAULT_SETTINGS = SimulationSettings(
    num_runs=1000,
    num_steps=100,
    alpha=0.5,
    beta=1.0,
    fee=0.003,
    initial_reserve_a=1000.0,
    initial_reserve_b=1000.0,
    initial_price=1.0,
    drift=0.0,
    volatility=0.01,
    volatility_of_volatility=0.0,
    dt=1.0,
    base_seed=0,
)


STRATEGIES: dict[str, type[TradingStrategy]] = {
    "noop": NoOpStrategy,
    "random": RandomWalkStrategy,
    "mean-reversion": MeanReversionStrategy,
    "arbitrage": Arbitrageur,
}


def resolve_n_workers() -> int:
    """Resolve worker count from environment or CPU count."""
    raw = os.environ.get("N_WORKERS", str(min(8, multiprocessing.cpu_count())))
    try:
        return int(raw)
    except ValueError:
        raise InvalidParameter(f"N_WORKERS must be an integer, got {raw!r}") from None


def build_parameters(
    settings: SimulationSettings = DEFAULT_SETTINGS,
    *,
    step_budget: Optional[int] = None,
    **overrides: Any,
) -> Parameters:
    """Build validated Parameters from settings with explicit overrides."""
    values = asdict(settings)
    unknown = set(overrides) - set(values)
    if unknown:
        raise InvalidParameter(f"unknown simulation settings: {', '.join(sorted(unknown))}")
    values.update({k: v for k, v in overrides.items() if v is not None})
    return Parameters(step_budget=step_budget, **values)


def build_strategy(
    name: str, parameters: Optional[Parameters] = None, **kwargs: Any
) -> TradingStrategy:
    """Instantiate a strategy by its CLI name.

    The arbitrageur inherits the pool fee from `parameters` unless given.
    """
    try:
        strategy_cls = STRATEGIES[name]
    except KeyError:
        raise InvalidParameter(
            f"unknown strategy '{name}', expected one of: {', '.join(STRATEGIES)}"
        ) from None
    if strategy_cls is Arbitrageur and parameters is not None:
        kwargs.setdefault("fee", parameters.fee)
    return strategy_cls(**{k: v for k, v in kwargs.items() if v is not None})
