"""
Kindred Backend — Swipe, Match, Message and Credit Models
==========================================================

What:  ORM models for the interaction tables around profiles.
Why:   A swipe is the event that feeds the scoring policy; matches and
       messages are what users actually see; credits gate likes.
Who:   SwipeService, MessageService, CreditService, AnalyticsService.

Swipe Audit Trail:
    Every swipe stores the target's score before and after the update.
    Analytics averages `new_score - previous_score` without replaying the
    scoring curve.

Match Ordering:
    profile_id_1 is always the smaller id, so one pair maps to one row and
    the unique constraint can catch double inserts.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
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
from sqlalchemy.orm import Mapped, mapped_column

from kindred.database import Base
from kindred.timeutils import utcnow
from kindred.scoring import SwipeOutcome


class Swipe(Base):
    """One directed like or dislike from `swiper_id` to `target_id`."""

    __tablename__ = "swipes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    swiper_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    target_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    outcome: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        comment="liked | disliked",
    )
    previous_score: Mapped[float] = mapped_column(
        Float, nullable=False, comment="Target score before this swipe"
    )
    new_score: Mapped[float] = mapped_column(
        Float, nullable=False, comment="Target score after this swipe"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        UniqueConstraint("swiper_id", "target_id", name="uq_swipes_pair"),
        Index("idx_swipes_target", "target_id"),
        Index("idx_swipes_created_at", "created_at"),
    )

    @property
    def is_like(self) -> bool:
        return self.outcome == SwipeOutcome.LIKED.value

    def __repr__(self) -> str:
        return (
            f"<Swipe(swiper={self.swiper_id}, target={self.target_id}, "
            f"outcome='{self.outcome}', {self.previous_score}->{self.new_score})>"
        )


class Match(Base):
    """A mutual like between two profiles."""

    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id_1: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    profile_id_2: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    last_message_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        UniqueConstraint("profile_id_1", "profile_id_2", name="uq_matches_pair"),
    )

    def other_profile_id(self, profile_id: int) -> int:
        """The participant that is not `profile_id`."""
        return self.profile_id_2 if self.profile_id_1 == profile_id else self.profile_id_1

    def involves(self, profile_id: int) -> bool:
        return profile_id in (self.profile_id_1, self.profile_id_2)

    def __repr__(self) -> str:
        return f"<Match(id={self.id}, {self.profile_id_1}<->{self.profile_id_2})>"


class Message(Base):
    """A chat message inside a match."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    match_id: Mapped[int] = mapped_column(
        ForeignKey("matches.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    read: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_messages_match_created", "match_id", "created_at"),
    )


class Credit(Base):
    """Daily like budget for a profile."""

    __tablename__ = "credits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    amount: Mapped[int] = mapped_column(
        Integer, nullable=False, default=10, server_default=text("10")
    )
    last_refreshed: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Credit(profile_id={self.profile_id}, amount={self.amount})>"
