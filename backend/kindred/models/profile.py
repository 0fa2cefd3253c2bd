"""
Kindred Backend — Profile SQLAlchemy Models
============================================

What:  ORM models for `profiles`, `photos`, `interests` and `profile_interests`.
Why:   The profile row owns the desirability score that the scoring policy moves.
Who:   Used by ProfileService and SwipeService; read by Alembic for migrations.

Table Design Rationale:
    - Integer primary keys: profiles are referenced from many tables (swipes,
      matches, messages, credits) and integer joins keep those narrow
    - user_id UNIQUE: exactly one profile per authenticated user
    - score FLOAT in [0, 100]: fractional boosts (0.5, 0.3, ...) must not be
      truncated away, otherwise low-boost likes would never move the score
    - Index on score: candidate listing orders by score descending

Score Ownership:
    Only SwipeService writes `score`, and only through a conditional UPDATE
    (see SwipeService.apply_score_update). Profile edits never touch it.
"""

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kindred.database import Base
from kindred.scoring import DEFAULT_SCORE, MAX_SCORE, MIN_SCORE
from kindred.timeutils import utcnow


# Allowed values; stored as short strings rather than database enums so new
# values don't need a type migration.
GENDERS = ("male", "female", "non-binary", "other")
INTERESTED_IN = GENDERS + ("everyone",)


class Profile(Base):
    """
    A user's dating profile.

    Lifecycle:
        1. Created once per user (score = 70, credits row created alongside)
        2. Edited by its owner (everything except score)
        3. Score moved by incoming swipes from other profiles
    """

    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Identity supplied by the upstream session layer
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    birthdate: Mapped[date] = mapped_column(Date, nullable=False)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    gender: Mapped[str] = mapped_column(String(20), nullable=False)
    interested_in: Mapped[str] = mapped_column(String(20), nullable=False)

    # ── Location & Preferences ────────────────────────────────────────────
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    looking_for: Mapped[str] = mapped_column(
        String(50), nullable=False, default="casual", server_default=text("'casual'")
    )
    max_distance: Mapped[int] = mapped_column(
        Integer, nullable=False, default=25, server_default=text("25")
    )
    age_range_min: Mapped[int] = mapped_column(
        Integer, nullable=False, default=18, server_default=text("18")
    )
    age_range_max: Mapped[int] = mapped_column(
        Integer, nullable=False, default=35, server_default=text("35")
    )

    # ── Desirability Score ────────────────────────────────────────────────
    score: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=DEFAULT_SCORE,
        server_default=text(str(DEFAULT_SCORE)),
        comment="Desirability score in [0, 100], moved only by incoming swipes",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    photos: Mapped[List["Photo"]] = relationship(
        back_populates="profile",
        order_by="Photo.order",
        cascade="all, delete-orphan",
    )
    interests: Mapped[List["Interest"]] = relationship(
        secondary="profile_interests",
        order_by="Interest.name",
        viewonly=True,
    )

    __table_args__ = (
        CheckConstraint(
            f"score >= {MIN_SCORE} AND score <= {MAX_SCORE}", name="ck_profiles_score_range"
        ),
        Index("idx_profiles_score", "score"),
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, user_id={self.user_id}, score={self.score})>"


class Photo(Base):
    """A profile photo (by URL). At most one per profile should have is_main set."""

    __tablename__ = "photos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    is_main: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    order: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    profile: Mapped[Profile] = relationship(back_populates="photos")

    def __repr__(self) -> str:
        return f"<Photo(id={self.id}, profile_id={self.profile_id}, is_main={self.is_main})>"


class Interest(Base):
    """A selectable interest tag (hiking, jazz, ...)."""

    __tablename__ = "interests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<Interest(id={self.id}, name='{self.name}')>"


class ProfileInterest(Base):
    """Association row between a profile and an interest."""

    __tablename__ = "profile_interests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    interest_id: Mapped[int] = mapped_column(
        ForeignKey("interests.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("profile_id", "interest_id", name="uq_profile_interest"),
    )
