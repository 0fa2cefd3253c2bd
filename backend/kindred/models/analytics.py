"""
Kindred Backend — Analytics SQLAlchemy Models
==============================================

What:  Per-user daily activity counters, daily algorithm roll-ups and user feedback.
Why:   Lets operators see whether the scoring policy keeps the ecosystem balanced
       (match rate, score drift, response times) without querying raw swipes.
Who:   Written by AnalyticsService tracking helpers; read by admin endpoints.

Granularity:
    user_metrics has at most one row per (user_id, date). Tracking helpers
    increment counters on that row with a single UPDATE statement.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    Date,
    DateTime,
    Float,
    Integer,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from kindred.database import Base
from kindred.timeutils import utcnow


class UserMetric(Base):
    """Daily activity counters for one user."""

    __tablename__ = "user_metrics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    metric_date: Mapped[date] = mapped_column("date", Date, nullable=False)

    login_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    session_duration: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True, comment="Seconds, reported by the client on session end"
    )

    swipes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    likes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    dislikes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    matches_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    messages_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_user_metrics_user_date"),
    )


class AlgorithmMetric(Base):
    """One day's roll-up of how the matching ecosystem behaved."""

    __tablename__ = "algorithm_metrics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date_recorded: Mapped[date] = mapped_column(Date, nullable=False, unique=True)

    average_score_change: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    # Percentage of likes that produced a match
    match_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    # Seconds from match creation to first message
    average_response_time: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    # Percent of users active in the previous 7 days who were active again that day
    user_retention: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    average_session_length: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )


class UserFeedback(Base):
    """Optional ratings (1-5) and free-text feedback submitted by a user."""

    __tablename__ = "user_feedback"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    match_quality_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    algorithm_fairness_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    general_satisfaction: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    feedback_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date_submitted: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
