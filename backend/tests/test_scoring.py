"""
Kindred Backend — Scoring Policy Unit Tests
============================================

What:  Properties of next_score, display_weight, swipe_delta and the credit advisor.
How:   Pure functions, so no fixtures: fixed reference points plus sweeps over
       the score range for the monotonicity and bound properties.

What we test:
    ✅ Reference values at the ends of the range and for out-of-range input
    ✅ Likes never lower a score, dislikes never raise it, results stay in [0, 100]
    ✅ Boost shrinks and penalty grows as the score rises
    ✅ Two likes compose as two steps (the update is not idempotent)
    ✅ Display weight reference values, bounds and monotonicity
    ✅ Outcome spellings and credit spending thresholds
"""

import math

import pytest

from kindred.scoring import (
    DEFAULT_SCORE,
    SwipeOutcome,
    clamp_score,
    coerce_outcome,
    credit_spending_strategy,
    display_weight,
    dislike_penalty,
    like_boost,
    next_score,
    swipe_delta,
)

# 0.0, 0.5, ..., 100.0
SWEEP = [i / 2 for i in range(201)]


class TestNextScoreReferencePoints:

    @pytest.mark.parametrize(
        "score, outcome, expected",
        [
            (0, SwipeOutcome.LIKED, 3.0),
            (100, SwipeOutcome.LIKED, 100.0),
            (100, SwipeOutcome.DISLIKED, 98.0),
            (0, SwipeOutcome.DISLIKED, 0.0),
            (50, SwipeOutcome.LIKED, 51.5),
            (50, SwipeOutcome.DISLIKED, 49.0),
        ],
    )
    def test_in_range(self, score, outcome, expected):
        assert next_score(score, outcome) == pytest.approx(expected)

    def test_above_range_is_clamped_before_update(self):
        assert next_score(150, "disliked") == pytest.approx(98.0)

    def test_below_range_is_clamped_before_update(self):
        assert next_score(-10, "liked") == pytest.approx(3.0)

    def test_default_score_like(self):
        # 70 → boost max(0.5, 3 * 0.3) = 0.9
        assert next_score(DEFAULT_SCORE, SwipeOutcome.LIKED) == pytest.approx(70.9)

    def test_near_top_like_hits_cap(self):
        assert next_score(99.8, SwipeOutcome.LIKED) == 100.0

    def test_near_bottom_dislike_hits_floor(self):
        assert next_score(0.1, SwipeOutcome.DISLIKED) == 0.0


class TestNextScoreProperties:

    @pytest.mark.parametrize("score", SWEEP)
    def test_like_never_decreases(self, score):
        result = next_score(score, SwipeOutcome.LIKED)
        assert score <= result <= 100.0

    @pytest.mark.parametrize("score", SWEEP)
    def test_dislike_never_increases(self, score):
        result = next_score(score, SwipeOutcome.DISLIKED)
        assert 0.0 <= result <= score

    @pytest.mark.parametrize("score", [-1e9, -0.001, 100.001, 1e9])
    def test_result_in_range_for_any_input(self, score):
        for outcome in SwipeOutcome:
            assert 0.0 <= next_score(score, outcome) <= 100.0

    def test_boost_non_increasing(self):
        boosts = [like_boost(s) for s in SWEEP]
        assert all(a >= b for a, b in zip(boosts, boosts[1:]))

    def test_penalty_non_decreasing(self):
        penalties = [dislike_penalty(s) for s in SWEEP]
        assert all(a <= b for a, b in zip(penalties, penalties[1:]))

    def test_boost_and_penalty_floors(self):
        assert like_boost(100) == pytest.approx(0.5)
        assert dislike_penalty(0) == pytest.approx(0.3)

    def test_two_likes_are_two_steps(self):
        once = next_score(DEFAULT_SCORE, SwipeOutcome.LIKED)
        twice = next_score(once, SwipeOutcome.LIKED)
        assert twice == pytest.approx(once + like_boost(once))
        assert twice > once

    def test_pure(self):
        assert next_score(42.0, "liked") == next_score(42.0, "liked")


class TestSwipeDelta:

    def test_like_delta_matches_boost(self):
        assert swipe_delta(50, SwipeOutcome.LIKED) == pytest.approx(1.5)

    def test_dislike_delta_is_negative(self):
        assert swipe_delta(50, SwipeOutcome.DISLIKED) == pytest.approx(-1.0)

    def test_delta_measured_from_clamped_score(self):
        assert swipe_delta(150, SwipeOutcome.DISLIKED) == pytest.approx(-2.0)

    def test_zero_delta_at_bounds(self):
        assert swipe_delta(100, SwipeOutcome.LIKED) == 0.0
        assert swipe_delta(0, SwipeOutcome.DISLIKED) == 0.0


class TestDisplayWeight:

    @pytest.mark.parametrize(
        "score, expected",
        [(0, 0.8), (50, 0.65), (100, 0.2)],
    )
    def test_reference_points(self, score, expected):
        assert display_weight(score) == pytest.approx(expected)

    def test_non_increasing(self):
        weights = [display_weight(s) for s in SWEEP]
        assert all(a >= b for a, b in zip(weights, weights[1:]))

    @pytest.mark.parametrize("score", [-50, 0, 33.3, 100, 250])
    def test_bounded(self, score):
        assert 0.2 <= display_weight(score) <= 0.8

    def test_out_of_range_is_clamped(self):
        assert display_weight(-10) == pytest.approx(0.8)
        assert display_weight(200) == pytest.approx(0.2)


class TestOutcomes:

    @pytest.mark.parametrize(
        "value, expected",
        [
            (SwipeOutcome.LIKED, SwipeOutcome.LIKED),
            ("liked", SwipeOutcome.LIKED),
            ("disliked", SwipeOutcome.DISLIKED),
            (True, SwipeOutcome.LIKED),
            (False, SwipeOutcome.DISLIKED),
        ],
    )
    def test_accepted_spellings(self, value, expected):
        assert coerce_outcome(value) is expected

    @pytest.mark.parametrize("value", ["like", "LIKED", "", None, 1])
    def test_unknown_outcome_raises(self, value):
        with pytest.raises(ValueError):
            coerce_outcome(value)

    def test_clamp(self):
        assert clamp_score(-3) == 0.0
        assert clamp_score(101) == 100.0
        assert clamp_score(12.5) == 12.5


class TestCreditSpendingStrategy:

    @pytest.mark.parametrize(
        "remaining, message",
        [
            (0, "Use your remaining credits selectively"),
            (2, "Use your remaining credits selectively"),
            (3, "Be more selective with your likes"),
            (5, "Be more selective with your likes"),
            (6, "You have plenty of credits to spend"),
            (10, "You have plenty of credits to spend"),
        ],
    )
    def test_recommendation_thresholds(self, remaining, message):
        assert credit_spending_strategy(remaining).recommendation == message

    def test_optimal_spreads_over_days(self):
        assert credit_spending_strategy(10, days_in_cycle=3).optimal == math.ceil(10 / 3)
        assert credit_spending_strategy(10).optimal == 10

    def test_invalid_cycle_rejected(self):
        with pytest.raises(ValueError):
            credit_spending_strategy(5, days_in_cycle=0)
