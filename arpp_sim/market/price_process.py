"""Reference price path generators."""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np

from arpp_sim.core.errors import InvalidParameter, NumericOverflow
from arpp_sim.core.params import Parameters
from arpp_sim.core.rng import PATH_STREAM, stream_rng
from arpp_sim.core.trade import ReferencePrice


class PricePathGenerator(ABC):
    """Produces the reference price sequence of one run.

    generate() returns a lazy, single-use iterator of exactly
    parameters.num_steps prices, in step order.
    """

    def validate(self, parameters: Parameters) -> None:
        """Check the generator can serve `parameters`. Raises InvalidParameter."""

    @abstractmethod
    def generate(self, parameters: Parameters, run_seed: int) -> Iterator[ReferencePrice]:
        pass


class ReplayPricePath(PricePathGenerator):
    """Replays a pre-fetched reference sequence verbatim."""

    def __init__(self, prices: Sequence[float]):
        self.prices = tuple(float(p) for p in prices)

    def validate(self, parameters: Parameters) -> None:
        if len(self.prices) < parameters.num_steps:
            raise InvalidParameter(
                f"replayed path has {len(self.prices)} prices, need {parameters.num_steps}"
            )
        for i, price in enumerate(self.prices[: parameters.num_steps]):
            if not math.isfinite(price) or price <= 0:
                raise InvalidParameter(f"replayed price at step {i} must be finite and > 0, got {price}")

    def generate(self, parameters: Parameters, run_seed: int) -> Iterator[ReferencePrice]:
        self.validate(parameters)
        for i in range(parameters.num_steps):
            yield ReferencePrice(step_index=i, value=self.prices[i])


@dataclass(frozen=True)
class GBMPricePath(PricePathGenerator):
    """Generates reference prices using Geometric Brownian Motion.

    The GBM model: dS = mu * S * dt + sigma * S * dW, discretized as
        S(t+dt) = S(t) * exp((mu - 0.5*sigma_t^2)*dt + sigma_t*sqrt(dt)*Z)

    With volatility_of_volatility > 0 the per-step volatility is itself
    random: sigma_t = |N(volatility, volatility_of_volatility)|.
    All model inputs come from Parameters; the path RNG is the run's
    PATH_STREAM.
    """

    def generate(self, parameters: Parameters, run_seed: int) -> Iterator[ReferencePrice]:
        rng = stream_rng(run_seed, PATH_STREAM)
        return self._walk(parameters, rng)

    @staticmethod
    def _walk(parameters: Parameters, rng: np.random.Generator) -> Iterator[ReferencePrice]:
        price = float(parameters.initial_price)
        sqrt_dt = math.sqrt(parameters.dt)
        yield ReferencePrice(step_index=0, value=price)

        for i in range(1, parameters.num_steps):
            if parameters.volatility_of_volatility > 0:
                sigma = abs(float(rng.normal(parameters.volatility, parameters.volatility_of_volatility)))
            else:
                sigma = parameters.volatility
            z = float(rng.standard_normal())
            drift = (parameters.drift - 0.5 * sigma ** 2) * parameters.dt
            diffusion = sigma * sqrt_dt * z
            try:
                price = price * math.exp(drift + diffusion)
            except OverflowError as exc:
                raise NumericOverflow(f"reference price overflowed at step {i}") from exc
            if not math.isfinite(price) or price <= 0:
                raise NumericOverflow(f"reference price degenerated to {price} at step {i}")
            yield ReferencePrice(step_index=i, value=price)
