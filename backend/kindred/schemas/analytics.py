"""
Kindred Backend — Analytics Schemas
====================================

What:  Request bodies for client-side tracking and response models for admin dashboards.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class SessionEndRequest(BaseModel):
    """Body of POST /api/analytics/session-end. Duration in seconds."""
    duration: int = Field(ge=0, le=86_400)


class FeedbackRequest(BaseModel):
    """Body of POST /api/analytics/feedback. Every field optional, ratings 1-5."""
    match_quality_rating: Optional[int] = Field(default=None, ge=1, le=5)
    algorithm_fairness_rating: Optional[int] = Field(default=None, ge=1, le=5)
    general_satisfaction: Optional[int] = Field(default=None, ge=1, le=5)
    feedback_text: Optional[str] = Field(default=None, max_length=5000)

    @model_validator(mode="after")
    def require_something(self):
        """An entirely empty submission carries no signal; reject it."""
        if all(
            v is None
            for v in (
                self.match_quality_rating,
                self.algorithm_fairness_rating,
                self.general_satisfaction,
                self.feedback_text,
            )
        ):
            raise ValueError("Provide at least one rating or some feedback text")
        return self


class SuccessResponse(BaseModel):
    success: bool = True


class AlgorithmMetricResponse(BaseModel):
    date_recorded: date
    average_score_change: float
    match_rate: float = Field(description="Percent of likes that produced a match")
    average_response_time: float = Field(description="Seconds from match to first message")
    user_retention: float = Field(
        description="Percent of users active in the previous 7 days who returned that day"
    )
    average_session_length: float = Field(description="Seconds")

    model_config = {"from_attributes": True}


class UserMetricsDay(BaseModel):
    """Aggregated activity for one calendar day."""
    day: date
    active_users: int
    total_swipes: int
    total_likes: int
    total_dislikes: int
    total_matches: int
    total_messages: int
    avg_session_duration: Optional[float] = None


class FeedbackSummaryResponse(BaseModel):
    avg_match_quality: Optional[float] = None
    avg_fairness: Optional[float] = None
    avg_satisfaction: Optional[float] = None
    total_feedback: int = 0
