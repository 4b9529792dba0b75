"""Tests for the Monte Carlo simulator and its random sources."""

import dataclasses
import math
from collections import Counter

import pytest

from gacha_core import (
    DrawState,
    Mulberry32Random,
    PityConfig,
    PythonRandomSource,
    featured_pdf,
    merge_pull_counts,
    pdf_expectation,
    pdf_percentile,
    simulate,
    simulate_sharded,
    summarize_pull_counts,
)
from gacha_core.simulation import simulate_counts, simulate_once


class TestRandomSources:
    def test_mulberry32_range(self):
        rng = Mulberry32Random(7)
        values = [rng.next() for _ in range(2000)]
        assert all(0.0 <= value < 1.0 for value in values)
        assert len(set(values)) > 1900

    def test_mulberry32_same_seed_same_stream(self):
        a = Mulberry32Random(42)
        b = Mulberry32Random(42)
        assert [a.next() for _ in range(50)] == [b.next() for _ in range(50)]

    def test_mulberry32_different_seeds_differ(self):
        a = Mulberry32Random(1)
        b = Mulberry32Random(2)
        assert [a.next() for _ in range(10)] != [b.next() for _ in range(10)]

    def test_python_source_is_seedable(self):
        a = PythonRandomSource(3)
        b = PythonRandomSource(3)
        assert [a.next() for _ in range(10)] == [b.next() for _ in range(10)]


class TestSimulateOnce:
    def test_certain_next_draw(self, flat_pity):
        state = DrawState(pity_counter=3)
        assert simulate_once(flat_pity, 1, state, Mulberry32Random(0)) == 1

    def test_never_exceeds_hard_pity_per_copy(self, flat_pity):
        rng = Mulberry32Random(11)
        for _ in range(200):
            assert 1 <= simulate_once(flat_pity, 2, DrawState(), rng) <= 8

    def test_guaranteed_flag_skips_the_coin_flip(self):
        config = PityConfig(
            base_rate=1.0,
            soft_pity_start=None,
            soft_pity_increase_per_pull=None,
            hard_pity=10,
            featured_win_rate=0.0,
            guaranteed_after_loses=1,
        )
        rng = Mulberry32Random(5)
        assert simulate_once(config, 1, DrawState(is_featured_guaranteed=True), rng) == 1
        # A zero win rate loses the first flip, then the guarantee fires.
        assert simulate_once(config, 1, DrawState(), rng) == 2

    def test_unreachable_featured_item_terminates(self, flat_pity):
        config = PityConfig(
            base_rate=flat_pity.base_rate,
            soft_pity_start=None,
            soft_pity_increase_per_pull=None,
            hard_pity=flat_pity.hard_pity,
            featured_win_rate=0.0,
            guaranteed_after_loses=0,
        )
        assert simulate_once(config, 1, DrawState(), Mulberry32Random(0)) == 8

    def test_nan_state_and_threshold_are_clamped(self, flat_pity):
        state = DrawState(pity_counter=math.nan, guaranteed_loses=math.nan)
        config = dataclasses.replace(flat_pity, guaranteed_after_loses=math.nan)
        pulls = simulate_once(config, 1, state, Mulberry32Random(0))
        assert 1 <= pulls <= 4

    def test_nan_runs_and_target_run_once(self, flat_pity):
        result = simulate(flat_pity, math.nan, runs=math.nan, random_source=Mulberry32Random(0))
        assert result.total_runs == 1


class TestSimulate:
    def test_seeded_runs_are_reproducible(self, genshin_pity):
        first = simulate(genshin_pity, 1, runs=500, random_source=Mulberry32Random(42))
        second = simulate(genshin_pity, 1, runs=500, random_source=Mulberry32Random(42))
        assert first == second

    def test_result_shape(self, genshin_pity):
        result = simulate(genshin_pity, 2, runs=1000, random_source=Mulberry32Random(1))
        assert result.total_runs == 1000
        assert sum(point.probability for point in result.distribution) == pytest.approx(1.0)
        pulls = [point.pulls for point in result.distribution]
        assert pulls == sorted(pulls)
        assert len(pulls) == len(set(pulls))
        p = result.percentiles
        assert 1 <= p.p10 <= p.p50 <= p.p90 <= 4 * 90

    def test_runs_and_target_are_floored(self, flat_pity):
        result = simulate(flat_pity, 1.7, runs=10.9, random_source=Mulberry32Random(0))
        assert result.total_runs == 10
        assert result.distribution[-1].pulls <= 4

    def test_zero_runs_still_runs_once(self, flat_pity):
        result = simulate(flat_pity, 0, runs=0, random_source=Mulberry32Random(0))
        assert result.total_runs == 1

    def test_degenerate_config_logs_warning(self, flat_pity, caplog):
        config = PityConfig(
            base_rate=0.5,
            soft_pity_start=None,
            soft_pity_increase_per_pull=None,
            hard_pity=4,
            featured_win_rate=0.0,
            guaranteed_after_loses=0,
            id="broken",
        )
        with caplog.at_level("WARNING", logger="gacha_core.simulation"):
            result = simulate(config, 1, runs=20, random_source=Mulberry32Random(0))
        assert result.percentiles.p50 == 8
        assert "broken" in caplog.text

    def test_agrees_with_exact_distribution(self, genshin_pity):
        """The simulator and the exact PMF describe the same process."""

        exact = featured_pdf(genshin_pity, DrawState())
        result = simulate(genshin_pity, 1, runs=20000, random_source=Mulberry32Random(42))

        assert result.expected_value == pytest.approx(pdf_expectation(exact), abs=1.5)
        assert abs(result.percentiles.p50 - pdf_percentile(exact, 0.5)) <= 3
        assert abs(result.percentiles.p90 - pdf_percentile(exact, 0.9)) <= 3

        within_90 = sum(p.probability for p in result.distribution if p.pulls <= 90)
        assert within_90 == pytest.approx(sum(exact[1:91]), abs=0.02)


class TestSummaries:
    def test_empty_counts(self):
        result = summarize_pull_counts({})
        assert result.total_runs == 0
        assert result.distribution == []
        assert result.expected_value == 0.0

    def test_percentiles_on_known_counts(self):
        counts = {10: 1, 20: 3, 30: 5, 40: 1}
        result = summarize_pull_counts(counts)
        assert result.percentiles.p10 == 10
        assert result.percentiles.p50 == 30
        assert result.percentiles.p90 == 30
        assert result.expected_value == pytest.approx(26.0)

    def test_merge_adds_frequencies(self):
        merged = merge_pull_counts({1: 2, 3: 1}, Counter({3: 4, 5: 1}))
        assert merged == Counter({1: 2, 3: 5, 5: 1})


class TestSimulateSharded:
    def test_inline_shards_are_deterministic(self, genshin_pity):
        first = simulate_sharded(genshin_pity, 1, runs=403, shards=4, seed=9, max_workers=1)
        second = simulate_sharded(genshin_pity, 1, runs=403, shards=4, seed=9, max_workers=1)
        assert first == second
        assert first.total_runs == 403

    def test_matches_manual_merge(self, genshin_pity):
        state = DrawState()
        expected_counts = merge_pull_counts(
            simulate_counts(genshin_pity, 1, state, 51, Mulberry32Random(3)),
            simulate_counts(genshin_pity, 1, state, 50, Mulberry32Random(4)),
        )
        result = simulate_sharded(genshin_pity, 1, runs=101, shards=2, seed=3, max_workers=1)
        assert result == summarize_pull_counts(expected_counts)

    def test_process_pool_matches_inline_run(self, genshin_pity):
        inline = simulate_sharded(genshin_pity, 1, runs=301, shards=3, seed=5, max_workers=1)
        pooled = simulate_sharded(genshin_pity, 1, runs=301, shards=3, seed=5, max_workers=2)
        assert pooled == inline

    def test_more_shards_than_runs(self, flat_pity):
        result = simulate_sharded(flat_pity, 1, runs=3, shards=8, max_workers=1)
        assert result.total_runs == 3
