"""
Kindred Backend — Swipe, Match and Message Schemas
===================================================

What:  Pydantic models for swipe results, matches, chat messages and score previews.
Who:   Returned by the /api/matches and /api/scoring routers.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from kindred.schemas.profile import ProfileDetailResponse
from kindred.scoring import SwipeOutcome

MAX_MESSAGE_LENGTH = 2000


class MatchResponse(BaseModel):
    id: int
    profile_id_1: int
    profile_id_2: int
    created_at: datetime
    last_message_at: datetime

    model_config = {"from_attributes": True}


class SwipeResponse(BaseModel):
    """
    What:  Result of a like or dislike.
    Why previous/new score: The swipe changed the target's score; returning
           both lets clients animate the change and lets support audit it.
    """
    outcome: SwipeOutcome
    target_id: int
    is_match: bool = False
    match: Optional[MatchResponse] = None
    previous_score: float
    new_score: float
    credits_remaining: Optional[int] = Field(
        default=None, description="Like balance after this swipe (likes only)"
    )


class MessageCreate(BaseModel):
    """Body of POST /api/matches/{match_id}/messages."""
    content: str = Field(min_length=1, max_length=MAX_MESSAGE_LENGTH)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Message content must not be blank")
        return stripped


class MessageResponse(BaseModel):
    id: int
    match_id: int
    sender_id: int
    content: str
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class MatchSummary(BaseModel):
    """One row of GET /api/matches: the match, who it's with, and the latest chat state."""
    match: MatchResponse
    profile: ProfileDetailResponse
    last_message: Optional[MessageResponse] = None
    unread_count: int = 0


class MatchListResponse(BaseModel):
    matches: List[MatchSummary]


class ScorePreviewResponse(BaseModel):
    """
    What:  What a swipe would do to a score, computed by the same policy the
           server uses when it persists a real swipe.
    """
    score: float = Field(description="Score as supplied")
    normalized_score: float = Field(description="Score clamped into [0, 100]")
    outcome: SwipeOutcome
    next_score: float
    delta: float = Field(description="Signed change applied by the swipe")
    display_weight: float = Field(description="Display weight at the supplied score")
    next_display_weight: float = Field(description="Display weight after the swipe")
