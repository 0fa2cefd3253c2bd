"""
Kindred Backend — Scoring Policy
=================================

What:  Pure functions that move a profile's desirability score after a swipe
       and turn a score into a display weight for candidate selection.
Why:   The score is the only piece of the backend with real numeric behavior.
       Keeping it in one dependency-free module means the authoritative swipe
       path and the preview endpoint can never drift apart.
How:   Plain arithmetic over floats. No I/O, no shared state, no exceptions
       for any finite numeric input.
Who:   SwipeService (persisted updates), ProfileService (candidate weights),
       the /api/scoring/preview route (client-side estimation).

Score Update Curve:
    liked:     boost   = max(0.5, 3 * (1 - s/100))   → 3.0 at s=0, 0.5 at s=100
    disliked:  penalty = max(0.3, 2 * s/100)         → 0.3 at s=0, 2.0 at s=100

    Diminishing returns at the top, a soft floor at the bottom. Every swipe
    moves the score by at least the floor amount until a bound is reached.

Display Weight Curve:
    weight = max(0.2, 0.8 - (s/100)^2 * 0.6)

    s=0 → 0.8, s=50 → 0.65, s=100 → 0.2. Quadratic, so mid-range profiles
    are barely suppressed while top-range profiles are suppressed heavily.

Concurrency:
    Nothing here needs a lock. The caller owns the read-modify-write on the
    stored score (see SwipeService.apply_score_update).
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Union


# ── Score Bounds ──────────────────────────────────────────────────────────
MIN_SCORE = 0.0
MAX_SCORE = 100.0
DEFAULT_SCORE = 70.0

# ── Like Boost ────────────────────────────────────────────────────────────
LIKE_MAX_BOOST = 3.0
LIKE_MIN_BOOST = 0.5

# ── Dislike Penalty ───────────────────────────────────────────────────────
DISLIKE_MAX_PENALTY = 2.0
DISLIKE_MIN_PENALTY = 0.3

# ── Display Weight ────────────────────────────────────────────────────────
DISPLAY_BASELINE = 0.8
DISPLAY_SUPPRESSION = 0.6
DISPLAY_FLOOR = 0.2


class SwipeOutcome(str, Enum):
    """Result of one directed swipe, as seen by the profile being swiped on."""

    LIKED = "liked"
    DISLIKED = "disliked"


OutcomeLike = Union[SwipeOutcome, str, bool]


def coerce_outcome(outcome: OutcomeLike) -> SwipeOutcome:
    """
    Normalize the accepted outcome spellings into a SwipeOutcome.

    Accepts the enum itself, its string value ("liked" / "disliked"), or a
    boolean "is liked" flag. Anything else is a programming error.
    """
    if isinstance(outcome, SwipeOutcome):
        return outcome
    if isinstance(outcome, bool):
        return SwipeOutcome.LIKED if outcome else SwipeOutcome.DISLIKED
    try:
        return SwipeOutcome(outcome)
    except ValueError:
        raise ValueError(
            f"Unknown swipe outcome {outcome!r}. "
            f"Expected one of: {[o.value for o in SwipeOutcome]}"
        ) from None


def clamp_score(score: float) -> float:
    """Clamp any numeric score into [MIN_SCORE, MAX_SCORE]."""
    return max(MIN_SCORE, min(MAX_SCORE, float(score)))


def like_boost(score: float) -> float:
    """Points a like would add at this (already clamped) score, before the cap."""
    return max(LIKE_MIN_BOOST, LIKE_MAX_BOOST * (1 - score / MAX_SCORE))


def dislike_penalty(score: float) -> float:
    """Points a dislike would remove at this (already clamped) score, before the floor."""
    return max(DISLIKE_MIN_PENALTY, DISLIKE_MAX_PENALTY * (score / MAX_SCORE))


def next_score(current_score: float, outcome: OutcomeLike) -> float:
    """
    Compute a profile's score after it receives a like or a dislike.

    What:    One step of the score update. Not idempotent: applying it twice
             is two swipes, not one.
    How:     The input is clamped into [0, 100] first so corrupted stored
             values cannot push the result out of range, then the boost or
             penalty is applied and the result clamped again.

    Args:
        current_score: The stored score. Out-of-range values are tolerated.
        outcome: SwipeOutcome, "liked"/"disliked", or an is-liked boolean.

    Returns:
        New score in [0, 100].

    Examples:
        >>> next_score(0, "liked")
        3.0
        >>> next_score(100, SwipeOutcome.DISLIKED)
        98.0
        >>> next_score(150, "disliked")
        98.0
    """
    normalized = clamp_score(current_score)

    if coerce_outcome(outcome) is SwipeOutcome.LIKED:
        return min(MAX_SCORE, normalized + like_boost(normalized))
    return max(MIN_SCORE, normalized - dislike_penalty(normalized))


def swipe_delta(current_score: float, outcome: OutcomeLike) -> float:
    """Signed change actually applied by next_score, measured from the clamped input."""
    return next_score(current_score, outcome) - clamp_score(current_score)


def display_weight(score: float) -> float:
    """
    Probability-like weight for surfacing a profile to a viewer.

    Returns a value in [0.2, 0.8]; lower scores get more exposure. The input
    is clamped into [0, 100] so the output range holds for any number.
    """
    normalized = clamp_score(score)
    penalty = (normalized / MAX_SCORE) ** 2 * DISPLAY_SUPPRESSION
    return max(DISPLAY_FLOOR, DISPLAY_BASELINE - penalty)


# ══════════════════════════════════════════════════════════════════════════
# Credit Spending Advice
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CreditStrategy:
    """How many likes to spend per day, with a short human-readable hint."""

    optimal: int
    recommendation: str


def credit_spending_strategy(remaining_credits: int, days_in_cycle: int = 1) -> CreditStrategy:
    """
    Suggest a daily like budget for the remaining credits.

    Likes cost credits and credits are scarce, so the hint nudges users to be
    selective as the balance drops.
    """
    if days_in_cycle < 1:
        raise ValueError("days_in_cycle must be at least 1")

    remaining = max(0, remaining_credits)
    optimal = math.ceil(remaining / days_in_cycle)

    if remaining <= 2:
        recommendation = "Use your remaining credits selectively"
    elif remaining <= 5:
        recommendation = "Be more selective with your likes"
    else:
        recommendation = "You have plenty of credits to spend"

    return CreditStrategy(optimal=optimal, recommendation=recommendation)
