"""Immutable simulation parameters."""

import math
from dataclasses import dataclass
from typing import Optional

from arpp_sim.core.errors import InvalidParameter


@dataclass(frozen=True)
class Parameters:
    """Validated parameters for a Monte Carlo batch.

    Pricing and pool:
    - alpha: deviation amplitude of the ARPP formula (>= 0)
    - beta: ratio sensitivity of the ARPP formula (> 0)
    - fee: trade fee fraction taken on the input side (0 <= fee < 1)
    - initial_reserve_a / initial_reserve_b: starting reserves (> 0)
    - replenish_liquidity: before each strategy step, top up a reserve that
      fell below half of the other one

    Batch:
    - num_runs, num_steps: batch shape (> 0)
    - base_seed: root of every run's seed
    - step_budget: optional cap on the total steps of the batch, charged
      in run-index order (run i is allowed step_budget - i * num_steps)

    Synthetic reference path (ignored when paths are replayed):
    - initial_price, drift, volatility, volatility_of_volatility, dt
    """
    alpha: float
    beta: float
    fee: float
    initial_reserve_a: float
    initial_reserve_b: float
    num_runs: int
    num_steps: int
    base_seed: int
    initial_price: float = 1.0
    drift: float = 0.0
    volatility: float = 0.01
    volatility_of_volatility: float = 0.0
    dt: float = 1.0
    step_budget: Optional[int] = None
    replenish_liquidity: bool = False

    def __post_init__(self) -> None:
        for name in (
            "alpha", "beta", "fee", "initial_reserve_a", "initial_reserve_b",
            "initial_price", "drift", "volatility", "volatility_of_volatility", "dt",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidParameter(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise InvalidParameter(f"{name} must be finite, got {value}")

        for name in ("num_runs", "num_steps", "base_seed"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidParameter(f"{name} must be an integer, got {value!r}")

        if self.alpha < 0:
            raise InvalidParameter(f"alpha must be >= 0, got {self.alpha}")
        if self.beta <= 0:
            raise InvalidParameter(f"beta must be > 0, got {self.beta}")
        if not 0 <= self.fee < 1:
            raise InvalidParameter(f"fee must be in [0, 1), got {self.fee}")
        if self.initial_reserve_a <= 0:
            raise InvalidParameter(f"initial_reserve_a must be > 0, got {self.initial_reserve_a}")
        if self.initial_reserve_b <= 0:
            raise InvalidParameter(f"initial_reserve_b must be > 0, got {self.initial_reserve_b}")
        if self.num_runs <= 0:
            raise InvalidParameter(f"num_runs must be > 0, got {self.num_runs}")
        if self.num_steps <= 0:
            raise InvalidParameter(f"num_steps must be > 0, got {self.num_steps}")
        if self.initial_price <= 0:
            raise InvalidParameter(f"initial_price must be > 0, got {self.initial_price}")
        if self.volatility < 0:
            raise InvalidParameter(f"volatility must be >= 0, got {self.volatility}")
        if self.volatility_of_volatility < 0:
            raise InvalidParameter(
                f"volatility_of_volatility must be >= 0, got {self.volatility_of_volatility}"
            )
        if self.dt <= 0:
            raise InvalidParameter(f"dt must be > 0, got {self.dt}")
        if self.step_budget is not None:
            if isinstance(self.step_budget, bool) or not isinstance(self.step_budget, int):
                raise InvalidParameter(f"step_budget must be an integer, got {self.step_budget!r}")
            if self.step_budget <= 0:
                raise InvalidParameter(f"step_budget must be > 0, got {self.step_budget}")
        if not isinstance(self.replenish_liquidity, bool):
            raise InvalidParameter(
                f"replenish_liquidity must be a bool, got {self.replenish_liquidity!r}"
            )

    @property
    def gamma(self) -> float:
        """Fraction of a trade's input that reaches the reserves."""
        return 1.0 - self.fee

    def step_allowance(self, run_index: int) -> Optional[int]:
        """Steps run `run_index` may execute under the batch step budget.

        Runs are charged num_steps each in run-index order, so the run that
        crosses the budget gets the remainder and every later run gets 0.
        None when there is no budget.
        """
        if self.step_budget is None:
            return None
        return max(0, self.step_budget - run_index * self.num_steps)
