"""Instantaneous success-rate model for pity systems."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import PityConfig


def clamp01(value: float) -> float:
    """Clamp a probability into ``[0, 1]``, mapping NaN to zero."""

    if value is None or math.isnan(value):
        return 0.0
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return float(value)


def floor_at_least(value: float, minimum: int) -> int:
    """Floor ``value`` and bound it below by ``minimum``.

    NaN, infinities and non-numeric values map to ``minimum``.
    """

    try:
        return max(minimum, math.floor(value))
    except (TypeError, ValueError, OverflowError):
        return minimum


def effective_hard_pity(config: PityConfig) -> int:
    """Return the hard pity as a positive integer."""

    return floor_at_least(config.hard_pity, 1)


def rate_at(config: PityConfig, draw_index: int) -> float:
    """Return the success probability of the draw at ``draw_index``.

    Parameters
    ----------
    config:
        Pity rules of the banner.
    draw_index:
        One-based index of the draw about to be attempted, counted from the
        last success.

    Returns
    -------
    float
        Base rate, soft-pity ramp, or exactly 1 once hard pity is reached.
    """

    hard_pity = effective_hard_pity(config)
    index = floor_at_least(draw_index, 1)
    if index >= hard_pity:
        return 1.0

    rate = clamp01(config.base_rate)
    soft_start = config.soft_pity_start
    increase = config.soft_pity_increase_per_pull
    if soft_start is not None and increase is not None and index >= soft_start:
        rate = rate + increase * (index - soft_start + 1)
    return clamp01(rate)
