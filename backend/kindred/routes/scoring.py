"""
Kindred Backend — Scoring Preview Route
========================================

What:  GET /api/scoring/preview: what a like or dislike would do to a score.
Why:   Clients show score estimates without reimplementing the curve. The
       numbers come from kindred.scoring, the same functions the swipe path
       uses, so preview and reality cannot disagree.
How:   Pure computation; no database session and no identity needed.
"""

from fastapi import APIRouter, Query

from kindred.schemas.match import ScorePreviewResponse
from kindred.scoring import (
    SwipeOutcome,
    clamp_score,
    display_weight,
    next_score,
    swipe_delta,
)

router = APIRouter(prefix="/api/scoring", tags=["Scoring"])


@router.get(
    "/preview",
    response_model=ScorePreviewResponse,
    summary="Preview a score update",
)
async def preview_score(
    score: float = Query(description="Current score; out-of-range values are clamped", allow_inf_nan=False),
    outcome: SwipeOutcome = Query(description="liked or disliked"),
) -> ScorePreviewResponse:
    new = next_score(score, outcome)
    return ScorePreviewResponse(
        score=score,
        normalized_score=clamp_score(score),
        outcome=outcome,
        next_score=new,
        delta=swipe_delta(score, outcome),
        display_weight=display_weight(score),
        next_display_weight=display_weight(new),
    )
