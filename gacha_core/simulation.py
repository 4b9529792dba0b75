"""Monte Carlo simulation of draws needed to collect featured copies."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from concurrent.futures import ProcessPoolExecutor
from decimal import Decimal
from typing import Optional

from .data import DEFAULT_SIMULATION_RUNS, PERCENTILE_LEVELS, PullCounts
from .models import DrawState, Percentiles, PityConfig, PullDistributionPoint, SimulationResult
from .random_source import Mulberry32Random, PythonRandomSource, RandomSource
from .rates import clamp01, effective_hard_pity, floor_at_least, rate_at

logger = logging.getLogger(__name__)


def max_pulls_per_run(config: PityConfig, target_count: int) -> int:
    """Return the draw budget used to cut off runs that can never finish.

    Only applies when the featured item is unreachable: a zero win rate with
    no loss guarantee. Otherwise hard pity bounds every success and runs end
    on their own.
    """

    hard_pity = effective_hard_pity(config)
    threshold = floor_at_least(config.guaranteed_after_loses, 0)
    return target_count * (threshold + 1) * hard_pity + hard_pity


def simulate_once(
    config: PityConfig,
    target_count: int,
    initial_state: DrawState,
    rng: RandomSource,
) -> int:
    """Simulate one run and return the number of draws it took.

    Parameters
    ----------
    config:
        Pity rules of the banner.
    target_count:
        Number of featured copies to collect.
    initial_state:
        Pity counter and losing streak carried into the run.
    rng:
        Source of uniform samples.
    """

    hard_pity = effective_hard_pity(config)
    threshold = floor_at_least(config.guaranteed_after_loses, 0)
    win_rate = clamp01(config.featured_win_rate)
    unreachable = threshold == 0 and win_rate == 0.0
    pull_cap = max_pulls_per_run(config, target_count)

    pulls = 0
    pity_counter = floor_at_least(initial_state.pity_counter, 0)
    lose_count = initial_state.loses_for(config)
    featured_count = 0

    while featured_count < target_count:
        if unreachable and pulls >= pull_cap:
            break
        pulls += 1

        rate = rate_at(config, pity_counter + 1)
        if rng.next() >= rate:
            pity_counter = min(pity_counter + 1, hard_pity)
            continue

        pity_counter = 0
        if threshold > 0 and lose_count >= threshold:
            featured_count += 1
            lose_count = 0
            continue

        if rng.next() < win_rate:
            featured_count += 1
            lose_count = 0
        else:
            lose_count += 1
    return pulls


def simulate_counts(
    config: PityConfig,
    target_count: int,
    initial_state: DrawState,
    runs: int,
    rng: RandomSource,
) -> Counter[int]:
    """Return a frequency map of run lengths over ``runs`` independent runs."""

    target = floor_at_least(target_count, 1)
    total_runs = floor_at_least(runs, 1)
    counts: Counter[int] = Counter()
    for _ in range(total_runs):
        counts[simulate_once(config, target, initial_state, rng)] += 1
    return counts


def merge_pull_counts(*counters: Mapping[int, int]) -> Counter[int]:
    """Sum frequency maps produced by independent batches."""

    merged: Counter[int] = Counter()
    for counts in counters:
        merged.update(counts)
    return merged


def _percentile_from_sorted(
    sorted_counts: list[tuple[int, int]],
    total_runs: int,
    percentile: float,
) -> int:
    target = Decimal(str(clamp01(percentile)))
    cumulative = 0
    for pulls, count in sorted_counts:
        cumulative += count
        if Decimal(cumulative) / Decimal(total_runs) >= target:
            return pulls
    return sorted_counts[-1][0] if sorted_counts else 0


def summarize_pull_counts(counts: Mapping[int, int]) -> SimulationResult:
    """Convert a run-length frequency map into distribution and statistics."""

    sorted_counts = sorted((pulls, count) for pulls, count in counts.items() if count > 0)
    total_runs = sum(count for _, count in sorted_counts)
    if total_runs == 0:
        return SimulationResult(
            distribution=[],
            percentiles=Percentiles(p10=0, p50=0, p90=0),
            expected_value=0.0,
            total_runs=0,
        )

    distribution = [
        PullDistributionPoint(pulls=pulls, probability=count / total_runs)
        for pulls, count in sorted_counts
    ]
    expected = sum(Decimal(pulls) * count for pulls, count in sorted_counts) / total_runs
    p10, p50, p90 = (
        _percentile_from_sorted(sorted_counts, total_runs, level) for level in PERCENTILE_LEVELS
    )
    return SimulationResult(
        distribution=distribution,
        percentiles=Percentiles(p10=p10, p50=p50, p90=p90),
        expected_value=float(expected),
        total_runs=total_runs,
    )


def simulate(
    config: PityConfig,
    target_count: int,
    initial_state: Optional[DrawState] = None,
    runs: int = DEFAULT_SIMULATION_RUNS,
    random_source: Optional[RandomSource] = None,
) -> SimulationResult:
    """Estimate the draws needed for ``target_count`` featured copies.

    Parameters
    ----------
    config:
        Pity rules of the banner.
    target_count:
        Number of featured copies wanted; floored and at least 1.
    initial_state:
        Starting pity counter and guarantee status (fresh state by default).
    runs:
        Number of Monte Carlo runs; floored and at least 1.
    random_source:
        Uniform sample source. Pass a seeded source for reproducible output.

    Returns
    -------
    SimulationResult
        Sorted empirical distribution, p10/p50/p90 and the mean draw count.
    """

    state = initial_state if initial_state is not None else DrawState()
    rng = random_source if random_source is not None else PythonRandomSource()
    target = floor_at_least(target_count, 1)
    no_guarantee = floor_at_least(config.guaranteed_after_loses, 0) == 0
    if no_guarantee and clamp01(config.featured_win_rate) == 0.0:
        logger.warning(
            "Pity system %r can never yield a featured item; runs are capped.", config.id
        )
    logger.debug("Simulating %d runs for %d featured copies", floor_at_least(runs, 1), target)
    counts = simulate_counts(config, target, state, runs, rng)
    return summarize_pull_counts(counts)


def _simulate_shard(
    config: PityConfig,
    target_count: int,
    initial_state: DrawState,
    runs: int,
    seed: int,
) -> PullCounts:
    return dict(simulate_counts(config, target_count, initial_state, runs, Mulberry32Random(seed)))


def _split_runs(runs: int, shards: int) -> list[int]:
    base, extra = divmod(runs, shards)
    return [base + (1 if index < extra else 0) for index in range(shards)]


def simulate_sharded(
    config: PityConfig,
    target_count: int,
    initial_state: Optional[DrawState] = None,
    runs: int = DEFAULT_SIMULATION_RUNS,
    shards: int = 4,
    seed: int = 0,
    max_workers: Optional[int] = None,
) -> SimulationResult:
    """Run the simulation in independently seeded batches and merge them.

    Shard ``i`` uses ``Mulberry32Random(seed + i)``, so the result depends
    only on ``seed`` and ``shards``. ``max_workers=1`` runs the shards in
    process; any other value uses a process pool.
    """

    state = initial_state if initial_state is not None else DrawState()
    total_runs = floor_at_least(runs, 1)
    shard_count = min(floor_at_least(shards, 1), total_runs)
    shard_runs = _split_runs(total_runs, shard_count)
    seeds = [seed + index for index in range(shard_count)]

    if max_workers == 1:
        results: Iterable[PullCounts] = [
            _simulate_shard(config, target_count, state, count, shard_seed)
            for count, shard_seed in zip(shard_runs, seeds)
        ]
        return summarize_pull_counts(merge_pull_counts(*results))

    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        results = list(
            executor.map(
                _simulate_shard,
                [config] * shard_count,
                [target_count] * shard_count,
                [state] * shard_count,
                shard_runs,
                seeds,
            )
        )
    return summarize_pull_counts(merge_pull_counts(*results))
