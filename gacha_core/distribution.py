"""Exact PMF builders for draws-until-success, via recurrence and convolution."""

from __future__ import annotations

from collections.abc import Sequence

from .data import PullPDF
from .models import DrawState, PityConfig
from .rates import clamp01, effective_hard_pity, floor_at_least, rate_at


def convolve_pdf(a: Sequence[float], b: Sequence[float]) -> PullPDF:
    """Return the distribution of the sum of two independent draw counts."""

    result = [0.0] * (len(a) + len(b) - 1)
    for i in range(1, len(a)):
        a_prob = a[i]
        if a_prob == 0.0:
            continue
        for j in range(1, len(b)):
            b_prob = b[j]
            if b_prob == 0.0:
                continue
            result[i + j] += a_prob * b_prob
    return result


def _add_weighted(target: PullPDF, pdf: Sequence[float], weight: float) -> PullPDF:
    if weight == 0.0:
        return target
    if len(target) < len(pdf):
        target.extend(0.0 for _ in range(len(pdf) - len(target)))
    for i in range(1, len(pdf)):
        target[i] += pdf[i] * weight
    return target


def success_pdf(config: PityConfig, state: DrawState) -> PullPDF:
    """Return P(first success lands exactly on offset ``i``) for each ``i``.

    The horizon ends at hard pity, where the rate model guarantees success.
    """

    hard_pity = effective_hard_pity(config)
    pity_counter = floor_at_least(state.pity_counter, 0)
    remaining = max(1, hard_pity - pity_counter)

    pdf = [0.0] * (remaining + 1)
    survival = 1.0
    for offset in range(1, remaining + 1):
        rate = rate_at(config, pity_counter + offset)
        pdf[offset] = clamp01(survival * rate)
        survival *= 1.0 - rate
    return pdf


def featured_pdf(config: PityConfig, state: DrawState) -> PullPDF:
    """Return the distribution of draws until the next featured success.

    Each mixture component ``loses = k`` stands for ``k`` consecutive
    non-featured successes followed by a featured one; the last component is
    the forced featured pull once the guarantee threshold is reached.
    """

    first = success_pdf(config, state)
    threshold = floor_at_least(config.guaranteed_after_loses, 0)
    current_loses = state.loses_for(config)
    if threshold == 0 or current_loses >= threshold:
        return first

    remaining = threshold - current_loses
    win_rate = clamp01(config.featured_win_rate)
    lose_rate = 1.0 - win_rate
    fresh = success_pdf(config, DrawState())

    result: PullPDF = [0.0]
    distribution = first
    for loses in range(remaining + 1):
        if loses > 0:
            distribution = convolve_pdf(distribution, fresh)
        win_weight = 1.0 if loses == remaining else win_rate
        _add_weighted(result, distribution, (lose_rate**loses) * win_weight)
    return [clamp01(value) for value in result]


def multi_target_pdf(single_pdf: Sequence[float], count: int) -> PullPDF:
    """Return the distribution of the sum of ``count`` i.i.d. draw counts."""

    target = floor_at_least(count, 1)
    result = list(single_pdf)
    for _ in range(1, target):
        result = convolve_pdf(result, single_pdf)
    return result


def exact_target_pdf(config: PityConfig, state: DrawState, count: int) -> PullPDF:
    """Return the distribution of draws until ``count`` featured copies.

    The first copy starts from ``state``; later copies start from a fresh
    pity counter with no losing streak.
    """

    target = floor_at_least(count, 1)
    result = featured_pdf(config, state)
    if target == 1:
        return result
    fresh = featured_pdf(config, DrawState())
    return convolve_pdf(result, multi_target_pdf(fresh, target - 1))


def cumulative_from_pdf(pdf: Sequence[float]) -> list[tuple[int, float]]:
    """Return ``(draw_count, cumulative_percent)`` pairs for charting."""

    series: list[tuple[int, float]] = []
    cumulative = 0.0
    for pulls in range(1, len(pdf)):
        cumulative += pdf[pulls]
        series.append((pulls, cumulative * 100.0))
    return series


def pdf_expectation(pdf: Sequence[float]) -> float:
    return sum(pulls * pdf[pulls] for pulls in range(1, len(pdf)))


def pdf_percentile(pdf: Sequence[float], percentile: float) -> int:
    """Return the first draw count whose cumulative mass reaches ``percentile``."""

    target = clamp01(percentile)
    cumulative = 0.0
    for pulls in range(1, len(pdf)):
        cumulative += pdf[pulls]
        if cumulative >= target:
            return pulls
    return len(pdf) - 1 if len(pdf) > 1 else 0
