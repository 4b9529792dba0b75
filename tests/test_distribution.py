"""Unit tests for distribution.py - exact draw-count PMFs."""

import dataclasses
import math

import pytest

from gacha_core import (
    DrawState,
    PityConfig,
    convolve_pdf,
    cumulative_from_pdf,
    exact_target_pdf,
    featured_pdf,
    multi_target_pdf,
    pdf_expectation,
    pdf_percentile,
    success_pdf,
)


class TestConvolvePdf:
    def test_length_and_values(self):
        a = [0.0, 0.5, 0.5]
        b = [0.0, 1.0]
        result = convolve_pdf(a, b)
        assert len(result) == len(a) + len(b) - 1
        assert result == pytest.approx([0.0, 0.0, 0.5, 0.5])

    def test_index_zero_is_ignored(self):
        result = convolve_pdf([0.9, 1.0], [0.9, 1.0])
        assert result == pytest.approx([0.0, 0.0, 1.0])


class TestSuccessPdf:
    def test_hand_computed_values(self, flat_pity):
        pdf = success_pdf(flat_pity, DrawState())
        assert pdf == pytest.approx([0.0, 0.25, 0.1875, 0.140625, 0.421875])

    def test_entries_in_unit_range_and_sum_to_one(self, genshin_pity):
        pdf = success_pdf(genshin_pity, DrawState())
        assert len(pdf) == 91
        assert pdf[0] == 0.0
        assert all(0.0 <= value <= 1.0 for value in pdf)
        assert sum(pdf) == pytest.approx(1.0)

    def test_pity_counter_shortens_horizon(self, genshin_pity):
        pdf = success_pdf(genshin_pity, DrawState(pity_counter=80))
        assert len(pdf) == 11
        assert sum(pdf) == pytest.approx(1.0)

    def test_counter_past_hard_pity_gives_certain_next_draw(self, genshin_pity):
        pdf = success_pdf(genshin_pity, DrawState(pity_counter=95))
        assert pdf == [0.0, 1.0]

    def test_expected_draws_match_closed_form(self, genshin_pity):
        """Mean draws to any success for this rule set is about 62.3."""
        expectation = pdf_expectation(success_pdf(genshin_pity, DrawState()))
        assert expectation == pytest.approx(62.3, abs=0.5)


class TestFeaturedPdf:
    def test_equals_success_pdf_without_guarantee(self, flat_pity):
        state = DrawState(pity_counter=1)
        assert featured_pdf(flat_pity, state) == success_pdf(flat_pity, state)

    def test_equals_success_pdf_when_already_guaranteed(self, genshin_pity):
        state = DrawState(pity_counter=10, is_featured_guaranteed=True)
        assert featured_pdf(genshin_pity, state) == success_pdf(genshin_pity, state)

    def test_loss_count_reaching_threshold_counts_as_guaranteed(self, genshin_pity):
        state = DrawState(guaranteed_loses=1)
        assert featured_pdf(genshin_pity, state) == success_pdf(genshin_pity, state)

    def test_mixture_weights(self, flat_pity):
        config = PityConfig(
            base_rate=flat_pity.base_rate,
            soft_pity_start=None,
            soft_pity_increase_per_pull=None,
            hard_pity=flat_pity.hard_pity,
            featured_win_rate=0.5,
            guaranteed_after_loses=1,
        )
        single = success_pdf(config, DrawState())
        expected = [0.0] * 9
        for index, value in enumerate(single):
            expected[index] += 0.5 * value
        for index, value in enumerate(convolve_pdf(single, single)):
            expected[index] += 0.5 * value
        result = featured_pdf(config, DrawState())
        assert result == pytest.approx(expected)
        assert sum(result) == pytest.approx(1.0)

    def test_expectation_with_single_loss_guarantee(self, genshin_pity):
        """A 50/50 with one-loss guarantee costs 1.5 successes on average."""
        single = pdf_expectation(success_pdf(genshin_pity, DrawState()))
        featured = pdf_expectation(featured_pdf(genshin_pity, DrawState()))
        assert featured == pytest.approx(1.5 * single, rel=1e-9)

    def test_partial_loss_streak_shortens_mixture(self):
        config = PityConfig(
            base_rate=0.5,
            soft_pity_start=None,
            soft_pity_increase_per_pull=None,
            hard_pity=2,
            featured_win_rate=0.5,
            guaranteed_after_loses=2,
        )
        fresh = featured_pdf(config, DrawState())
        one_loss = featured_pdf(config, DrawState(guaranteed_loses=1))
        assert len(one_loss) < len(fresh)
        assert sum(one_loss) == pytest.approx(1.0)
        assert pdf_expectation(one_loss) < pdf_expectation(fresh)


class TestNonFiniteInputs:
    def test_nan_pity_counter_counts_as_fresh(self, genshin_pity):
        pdf = success_pdf(genshin_pity, DrawState(pity_counter=math.nan))
        assert pdf == success_pdf(genshin_pity, DrawState())

    def test_nan_loss_threshold_disables_guarantee(self, genshin_pity):
        config = dataclasses.replace(genshin_pity, guaranteed_after_loses=math.nan)
        assert featured_pdf(config, DrawState()) == success_pdf(config, DrawState())

    def test_nan_loss_streak_counts_as_none(self, genshin_pity):
        state = DrawState(guaranteed_loses=math.nan)
        assert featured_pdf(genshin_pity, state) == featured_pdf(genshin_pity, DrawState())

    def test_nan_target_count_means_one_copy(self, genshin_pity):
        single = exact_target_pdf(genshin_pity, DrawState(), 1)
        assert exact_target_pdf(genshin_pity, DrawState(), math.nan) == single


class TestMultiTargetPdf:
    def test_count_one_is_identity(self, flat_pity):
        single = success_pdf(flat_pity, DrawState())
        assert multi_target_pdf(single, 1) == single
        assert multi_target_pdf(single, 0) == single

    def test_sum_and_expectation(self, genshin_pity):
        single = featured_pdf(genshin_pity, DrawState())
        triple = multi_target_pdf(single, 3)
        assert sum(triple) <= 1.0 + 1e-9
        assert sum(triple) == pytest.approx(1.0)
        assert pdf_expectation(triple) == pytest.approx(3 * pdf_expectation(single))

    def test_exact_target_pdf_uses_state_for_first_copy(self, genshin_pity):
        state = DrawState(pity_counter=85, is_featured_guaranteed=True)
        pdf = exact_target_pdf(genshin_pity, state, 2)
        first = featured_pdf(genshin_pity, state)
        fresh = featured_pdf(genshin_pity, DrawState())
        assert pdf == pytest.approx(convolve_pdf(first, fresh))


class TestCumulativeFromPdf:
    def test_series_shape(self, flat_pity):
        series = cumulative_from_pdf(success_pdf(flat_pity, DrawState()))
        assert [pulls for pulls, _ in series] == [1, 2, 3, 4]
        assert series[0][1] == pytest.approx(25.0)
        assert series[-1][1] == pytest.approx(100.0)

    def test_percentile_is_first_crossing(self, flat_pity):
        pdf = success_pdf(flat_pity, DrawState())
        assert pdf_percentile(pdf, 0.25) == 1
        assert pdf_percentile(pdf, 0.5) == 3
        assert pdf_percentile(pdf, 0.9) == 4
