"""Anchored ratio pricing formula (ARPP).

    price = p_ref * (1 + alpha * atan(beta * (R - 1)))

where R = reserve_a / reserve_b. Prices are quoted in token A per token B,
so an abundance of A (R > 1) makes B dearer. Since atan is bounded in
(-pi/2, pi/2), the pool price never strays further than
p_ref * alpha * pi/2 from the reference.
"""

import math

from arpp_sim.core.errors import InvalidParameter, NumericOverflow


def arpp_price(reference_price: float, ratio: float, alpha: float, beta: float) -> float:
    """Compute the pool price anchored to a reference price.

    Args:
        reference_price: External fair price, must be > 0
        ratio: Reserve ratio reserve_a / reserve_b, must be >= 0
        alpha: Deviation amplitude, must be >= 0
        beta: Ratio sensitivity, must be > 0

    Returns:
        The adjusted pool price

    Raises:
        InvalidParameter: If any input is out of its domain
        NumericOverflow: If the result is not finite
    """
    for name, value in (
        ("reference_price", reference_price),
        ("ratio", ratio),
        ("alpha", alpha),
        ("beta", beta),
    ):
        if not math.isfinite(value):
            raise InvalidParameter(f"{name} must be finite, got {value}")
    if reference_price <= 0:
        raise InvalidParameter(f"reference_price must be > 0, got {reference_price}")
    if ratio < 0:
        raise InvalidParameter(f"ratio must be >= 0, got {ratio}")
    if alpha < 0:
        raise InvalidParameter(f"alpha must be >= 0, got {alpha}")
    if beta <= 0:
        raise InvalidParameter(f"beta must be > 0, got {beta}")

    price = reference_price * (1.0 + alpha * math.atan(beta * (ratio - 1.0)))
    if not math.isfinite(price):
        raise NumericOverflow(f"ARPP price overflowed for reference {reference_price}, ratio {ratio}")
    return price


def token_ratio(reserve_a: float, reserve_b: float) -> float:
    """Reserve ratio R = reserve_a / reserve_b."""
    if reserve_b <= 0:
        raise InvalidParameter(f"reserve_b must be > 0, got {reserve_b}")
    ratio = reserve_a / reserve_b
    if not math.isfinite(ratio):
        raise NumericOverflow(f"ratio overflowed for reserves ({reserve_a}, {reserve_b})")
    return ratio


def max_deviation(reference_price: float, alpha: float) -> float:
    """Supremum of |price - reference_price| over all finite ratios."""
    return reference_price * alpha * math.pi / 2
