"""Market simulation components: reference paths and trading strategies."""

from arpp_sim.market.price_process import GBMPricePath, PricePathGenerator, ReplayPricePath
from arpp_sim.market.arbitrageur import Arbitrageur
from arpp_sim.market.retail import RandomWalkStrategy
from arpp_sim.market.strategies import MeanReversionStrategy, NoOpStrategy

__all__ = [
    "GBMPricePath",
    "PricePathGenerator",
    "ReplayPricePath",
    "Arbitrageur",
    "RandomWalkStrategy",
    "MeanReversionStrategy",
    "NoOpStrategy",
]
