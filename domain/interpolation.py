"""
Price Interpolation

Linear interpolation and extrapolation of prices between anchor points,
plus markup composition and rounding.

Base price and markup percent are interpolated as two independent linear
curves and composed once at the end. Applying the markup first and
interpolating the marked-up prices gives different results for every
non-anchor quantity.
"""

from dataclasses import dataclass
import math
from typing import Sequence

ROUNDING_UNITS = (1, 5, 10)


@dataclass(frozen=True)
class AnchorPoint:
    """A fixed (price, markup) pair at a quantity."""
    quantity: int
    price: float
    markup: float = 0.0


def apply_markup(price: float, markup_percent: float) -> float:
    return price * (1 + markup_percent / 100)


def _lerp(a: float, b: float, t: float) -> float:
    return a + t * (b - a)


def _extrapolate(p0: AnchorPoint, p1: AnchorPoint, target: int) -> float:
    """Continue the line through p0 and p1 to target."""
    if p1.quantity == p0.quantity:
        return p0.price
    slope = (p1.price - p0.price) / (p1.quantity - p0.quantity)
    return p0.price + slope * (target - p0.quantity)


def interpolate_components(target: int, anchors: Sequence[AnchorPoint]) -> tuple[float, float]:
    """
    Base price and markup percent at target quantity, before composition.

    Rules:
        - no anchors: (0, 0)
        - one anchor: its price and markup, for any target
        - below the smallest anchor: slope of the two smallest anchors,
          markup of the smallest, base floored at 0
        - above the largest anchor: slope of the two largest anchors,
          markup of the largest, base floored at 0
        - otherwise price and markup are each interpolated linearly
          between the surrounding anchors

    Returns:
        (base_price, markup_percent)
    """
    if not anchors:
        return 0.0, 0.0
    if len(anchors) == 1:
        only = anchors[0]
        return float(only.price), float(only.markup)

    ordered = sorted(anchors, key=lambda a: a.quantity)
    before = None
    after = None
    for anchor in ordered:
        if anchor.quantity <= target:
            before = anchor
        if anchor.quantity >= target and after is None:
            after = anchor

    if before is None:
        base = _extrapolate(ordered[0], ordered[1], target)
        return max(0.0, base), float(ordered[0].markup)

    if after is None:
        base = _extrapolate(ordered[-2], ordered[-1], target)
        return max(0.0, base), float(ordered[-1].markup)

    if after.quantity == before.quantity:
        return float(before.price), float(before.markup)

    t = (target - before.quantity) / (after.quantity - before.quantity)
    return _lerp(before.price, after.price, t), _lerp(before.markup, after.markup, t)


def interpolate(target: int, anchors: Sequence[AnchorPoint]) -> float:
    """
    Price at target quantity with the anchors' own markup applied.

    Never rounds; product/master markup and rounding are the caller's job.

    Examples:
        >>> interpolate(7, [AnchorPoint(100, 50, 10)])
        55.00000000000001
        >>> interpolate(150, [AnchorPoint(100, 100), AnchorPoint(200, 200)])
        150.0
    """
    if not anchors:
        return 0.0
    base, markup = interpolate_components(target, anchors)
    return max(0.0, apply_markup(base, markup))


def round_price(price: float, unit: int = 1) -> float:
    """
    Round to the nearest multiple of unit, halves rounding up.

    Idempotent: round_price(round_price(x, u), u) == round_price(x, u).

    Examples:
        >>> round_price(132.4, 5)
        130
        >>> round_price(132.5, 5)
        135
    """
    if unit <= 0:
        return price
    return math.floor(price / unit + 0.5) * unit


def compose_price(
    base: float,
    local_markup: float = 0.0,
    product_markup: float = 0.0,
    master_markup: float = 0.0,
    rounding: int = 1,
) -> float:
    """
    Final price: base × (1+local) × (1+product) × (1+master), then rounded.

    Example:
        >>> compose_price(100, 10, 20, 0, 1)
        132
    """
    price = apply_markup(apply_markup(apply_markup(base, local_markup), product_markup), master_markup)
    return round_price(price, rounding)


def finalize(price_with_local_markup: float, product_markup: float, master_markup: float, rounding: int) -> float:
    """Apply product and master markup on top of an interpolated price, then round."""
    return round_price(apply_markup(apply_markup(price_with_local_markup, product_markup), master_markup), rounding)


