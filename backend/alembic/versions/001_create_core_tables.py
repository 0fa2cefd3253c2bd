"""Create profile, swipe, match, credit and analytics tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Initial schema for the whole backend.
How:   Integer surrogate keys, TIMESTAMP WITH TIME ZONE everywhere, and the
       constraints the services rely on:
       - profiles.score CHECK in [0, 100]
       - swipes UNIQUE (swiper_id, target_id)  → DuplicateSwipeError
       - matches UNIQUE (profile_id_1, profile_id_2), smaller id first
       - credits UNIQUE (profile_id)
       - user_metrics UNIQUE (user_id, date)

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def _profile_fk(name: str) -> sa.Column:
    return sa.Column(
        name, sa.Integer(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )


def upgrade() -> None:
    # ── Profiles ──────────────────────────────────────────────────────────
    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False, unique=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("birthdate", sa.Date(), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("gender", sa.String(20), nullable=False),
        sa.Column("interested_in", sa.String(20), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("looking_for", sa.String(50), nullable=False, server_default=sa.text("'casual'")),
        sa.Column("max_distance", sa.Integer(), nullable=False, server_default=sa.text("25")),
        sa.Column("age_range_min", sa.Integer(), nullable=False, server_default=sa.text("18")),
        sa.Column("age_range_max", sa.Integer(), nullable=False, server_default=sa.text("35")),
        sa.Column(
            "score",
            sa.Float(),
            nullable=False,
            server_default=sa.text("70.0"),
            comment="Desirability score in [0, 100], moved only by incoming swipes",
        ),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.CheckConstraint("score >= 0.0 AND score <= 100.0", name="ck_profiles_score_range"),
    )
    op.create_index("idx_profiles_score", "profiles", ["score"])

    op.create_table(
        "photos",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _profile_fk("profile_id"),
        sa.Column("url", sa.String(1024), nullable=False),
        sa.Column("is_main", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _created_at(),
    )
    op.create_index("ix_photos_profile_id", "photos", ["profile_id"])

    op.create_table(
        "interests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
    )

    op.create_table(
        "profile_interests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _profile_fk("profile_id"),
        sa.Column(
            "interest_id",
            sa.Integer(),
            sa.ForeignKey("interests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint("profile_id", "interest_id", name="uq_profile_interest"),
    )

    # ── Swipes, Matches, Messages ─────────────────────────────────────────
    op.create_table(
        "swipes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _profile_fk("swiper_id"),
        _profile_fk("target_id"),
        sa.Column("outcome", sa.String(10), nullable=False, comment="liked | disliked"),
        sa.Column("previous_score", sa.Float(), nullable=False),
        sa.Column("new_score", sa.Float(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("swiper_id", "target_id", name="uq_swipes_pair"),
    )
    op.create_index("idx_swipes_target", "swipes", ["target_id"])
    op.create_index("idx_swipes_created_at", "swipes", ["created_at"])

    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _profile_fk("profile_id_1"),
        _profile_fk("profile_id_2"),
        _created_at(),
        sa.Column(
            "last_message_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.UniqueConstraint("profile_id_1", "profile_id_2", name="uq_matches_pair"),
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "match_id", sa.Integer(), sa.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False
        ),
        _profile_fk("sender_id"),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _created_at(),
    )
    op.create_index("idx_messages_match_created", "messages", ["match_id", "created_at"])

    op.create_table(
        "credits",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "profile_id",
            sa.Integer(),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("amount", sa.Integer(), nullable=False, server_default=sa.text("10")),
        sa.Column(
            "last_refreshed",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    )

    # ── Analytics ─────────────────────────────────────────────────────────
    op.create_table(
        "user_metrics",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("login_time", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("session_duration", sa.Integer(), nullable=True),
        sa.Column("swipes_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("likes_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("dislikes_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("matches_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("messages_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.UniqueConstraint("user_id", "date", name="uq_user_metrics_user_date"),
    )

    op.create_table(
        "algorithm_metrics",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("date_recorded", sa.Date(), nullable=False, unique=True),
        sa.Column("average_score_change", sa.Float(), nullable=False),
        sa.Column("match_rate", sa.Float(), nullable=False),
        sa.Column("average_response_time", sa.Float(), nullable=False),
        sa.Column("user_retention", sa.Float(), nullable=False),
        sa.Column("average_session_length", sa.Float(), nullable=False),
        _created_at(),
    )

    op.create_table(
        "user_feedback",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("match_quality_rating", sa.Integer(), nullable=True),
        sa.Column("algorithm_fairness_rating", sa.Integer(), nullable=True),
        sa.Column("general_satisfaction", sa.Integer(), nullable=True),
        sa.Column("feedback_text", sa.Text(), nullable=True),
        sa.Column(
            "date_submitted",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    )


def downgrade() -> None:
    """Drop every table, children first. Destructive."""
    for table in (
        "user_feedback",
        "algorithm_metrics",
        "user_metrics",
        "credits",
        "messages",
        "matches",
        "swipes",
        "profile_interests",
        "interests",
        "photos",
        "profiles",
    ):
        op.drop_table(table)
