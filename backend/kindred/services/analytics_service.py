"""
Kindred Backend — Analytics Service
====================================

What:  Per-user daily activity counters, session length, user feedback, and a
       daily roll-up of how the scoring algorithm behaves.
Why:   The scoring curve is tuned by watching its effect: how far scores move,
       how many likes turn into matches, how fast matched users start talking.
How:   Counters live in `user_metrics` (one row per user per UTC day). The
       track_* helpers run inside a SAVEPOINT so a failed counter update rolls
       back on its own and never fails the swipe or message that triggered it.
Who:   SwipeService and MessageService call the track_* helpers; the
       /api/analytics router calls the rest.

Roll-up Formulas (for one UTC day):
    average_score_change   = AVG(new_score - previous_score) over swipes
    match_rate             = matches created / likes given × 100
    average_response_time  = AVG(first message time - match time), seconds,
                             over matches created that day with a message
    user_retention         = users active on the day among those active in
                             the 7 days before it, as a percentage
    average_session_length = AVG(session_duration) over user_metrics rows
"""

import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.exceptions import DatabaseError, KindredError
from kindred.models.analytics import AlgorithmMetric, UserFeedback, UserMetric
from kindred.models.match import Match, Message, Swipe
from kindred.schemas.analytics import (
    AlgorithmMetricResponse,
    FeedbackRequest,
    FeedbackSummaryResponse,
    UserMetricsDay,
)
from kindred.scoring import SwipeOutcome
from kindred.timeutils import as_utc, day_bounds, today_utc, utcnow

logger = logging.getLogger(__name__)

# Counter columns the track_* helpers may bump
COUNTERS = ("swipes_count", "likes_count", "dislikes_count", "matches_count", "messages_count")

# Users active this many days before the roll-up day form the retention cohort
RETENTION_WINDOW_DAYS = 7


class AnalyticsService:
    """
    Business logic for analytics.

    Responsibilities:
        - track_swipe() / track_match() / track_message(): best-effort counters
        - end_session(): record how long the caller's session lasted
        - submit_feedback(): store a feedback form
        - record_algorithm_metrics(): daily roll-up (admin / scheduled job)
        - list_algorithm_metrics() / user_metrics_summary() / feedback_summary():
          admin dashboards
    """

    # ══════════════════════════════════════════════════════════════════════
    # Tracking (best effort)
    # ══════════════════════════════════════════════════════════════════════

    async def _get_or_create_daily(
        self, db: AsyncSession, user_id: int, day: date
    ) -> UserMetric:
        result = await db.execute(
            select(UserMetric).where(UserMetric.user_id == user_id, UserMetric.metric_date == day)
        )
        metric = result.scalar_one_or_none()
        if metric is None:
            metric = UserMetric(user_id=user_id, metric_date=day)
            for counter in COUNTERS:
                setattr(metric, counter, 0)
            db.add(metric)
            await db.flush()
        return metric

    async def _bump(self, db: AsyncSession, user_id: int, **increments: int) -> None:
        """
        Add `increments` to today's counters for `user_id`.

        Runs in a SAVEPOINT; on failure only the savepoint is rolled back and
        the error is logged.
        """
        try:
            async with db.begin_nested():
                metric = await self._get_or_create_daily(db, user_id, today_utc())
                for counter, amount in increments.items():
                    setattr(metric, counter, (getattr(metric, counter) or 0) + amount)
                await db.flush()
        except SQLAlchemyError as e:
            logger.error(
                "Failed to track %s for user %s: %s", ",".join(increments), user_id, str(e)
            )

    async def track_swipe(self, db: AsyncSession, user_id: int, outcome: SwipeOutcome) -> None:
        """Count one swipe (and a like or a dislike) for today."""
        if outcome is SwipeOutcome.LIKED:
            await self._bump(db, user_id, swipes_count=1, likes_count=1)
        else:
            await self._bump(db, user_id, swipes_count=1, dislikes_count=1)
        logger.debug("Tracked %s swipe for user %s", outcome.value, user_id)

    async def track_match(self, db: AsyncSession, user_id: int) -> None:
        await self._bump(db, user_id, matches_count=1)

    async def track_message(self, db: AsyncSession, user_id: int) -> None:
        await self._bump(db, user_id, messages_count=1)

    # ══════════════════════════════════════════════════════════════════════
    # Client-Reported Data
    # ══════════════════════════════════════════════════════════════════════

    async def end_session(self, db: AsyncSession, user_id: int, duration: int) -> None:
        """
        Store the length of the caller's session on their latest metrics row.

        A user who ends a session without any tracked activity gets a row for
        today so the duration is not lost.
        """
        try:
            result = await db.execute(
                select(UserMetric)
                .where(UserMetric.user_id == user_id)
                .order_by(UserMetric.metric_date.desc())
                .limit(1)
            )
            metric = result.scalar_one_or_none()
            if metric is None:
                metric = await self._get_or_create_daily(db, user_id, today_utc())

            metric.session_duration = duration
            await db.flush()
            logger.info("Session duration for user %s: %ds", user_id, duration)

        except SQLAlchemyError as e:
            logger.error("Database error recording session for user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not record your session. Please try again.",
                context={"user_id": user_id},
            )

    async def submit_feedback(
        self, db: AsyncSession, user_id: int, data: FeedbackRequest
    ) -> UserFeedback:
        try:
            feedback = UserFeedback(
                user_id=user_id,
                match_quality_rating=data.match_quality_rating,
                algorithm_fairness_rating=data.algorithm_fairness_rating,
                general_satisfaction=data.general_satisfaction,
                feedback_text=data.feedback_text,
                date_submitted=utcnow(),
            )
            db.add(feedback)
            await db.flush()
            logger.info("Recorded feedback from user %s", user_id)
            return feedback

        except SQLAlchemyError as e:
            logger.error("Database error saving feedback from user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not save your feedback. Please try again.",
                context={"user_id": user_id},
            )

    # ══════════════════════════════════════════════════════════════════════
    # Daily Roll-up
    # ══════════════════════════════════════════════════════════════════════

    async def record_algorithm_metrics(
        self, db: AsyncSession, day: Optional[date] = None
    ) -> AlgorithmMetricResponse:
        """
        Compute and store the roll-up for `day` (default: yesterday, UTC).

        Re-running for the same day overwrites that day's row.
        """
        target_day = day or (today_utc() - timedelta(days=1))
        start, end = day_bounds(target_day)

        try:
            score_change = await db.scalar(
                select(func.avg(Swipe.new_score - Swipe.previous_score)).where(
                    Swipe.created_at >= start, Swipe.created_at < end
                )
            )

            likes = await db.scalar(
                select(func.count(Swipe.id)).where(
                    Swipe.outcome == SwipeOutcome.LIKED.value,
                    Swipe.created_at >= start,
                    Swipe.created_at < end,
                )
            )
            matches = await db.scalar(
                select(func.count(Match.id)).where(
                    Match.created_at >= start, Match.created_at < end
                )
            )
            match_rate = (matches * 100.0 / likes) if likes else 0.0

            first_messages = (
                select(
                    Message.match_id.label("match_id"),
                    func.min(Message.created_at).label("first_at"),
                )
                .group_by(Message.match_id)
                .subquery()
            )
            rows = await db.execute(
                select(Match.created_at, first_messages.c.first_at)
                .join(first_messages, first_messages.c.match_id == Match.id)
                .where(Match.created_at >= start, Match.created_at < end)
            )
            # Subtraction done here; interval arithmetic differs between backends
            waits = [
                (as_utc(first_at) - as_utc(matched_at)).total_seconds()
                for matched_at, first_at in rows.all()
            ]
            response_time = sum(waits) / len(waits) if waits else 0.0

            previous_week = (
                select(UserMetric.user_id)
                .where(
                    UserMetric.metric_date >= target_day - timedelta(days=RETENTION_WINDOW_DAYS),
                    UserMetric.metric_date < target_day,
                )
                .distinct()
                .subquery()
            )
            active_that_day = (
                select(UserMetric.user_id)
                .where(UserMetric.metric_date == target_day)
                .distinct()
                .subquery()
            )
            cohort, returned = (
                await db.execute(
                    select(
                        func.count(previous_week.c.user_id),
                        func.count(active_that_day.c.user_id),
                    ).select_from(
                        previous_week.outerjoin(
                            active_that_day,
                            active_that_day.c.user_id == previous_week.c.user_id,
                        )
                    )
                )
            ).one()
            retention = (returned * 100.0 / cohort) if cohort else 0.0

            session_length = await db.scalar(
                select(func.avg(UserMetric.session_duration)).where(
                    UserMetric.metric_date == target_day,
                    UserMetric.session_duration.is_not(None),
                )
            )

            result = await db.execute(
                select(AlgorithmMetric).where(AlgorithmMetric.date_recorded == target_day)
            )
            metric = result.scalar_one_or_none()
            if metric is None:
                metric = AlgorithmMetric(date_recorded=target_day)
                db.add(metric)

            metric.average_score_change = float(score_change or 0.0)
            metric.match_rate = float(match_rate)
            metric.average_response_time = float(response_time)
            metric.user_retention = float(retention)
            metric.average_session_length = float(session_length or 0.0)
            await db.flush()

            logger.info(
                "Recorded algorithm metrics for %s: score_change=%.3f match_rate=%.1f%% "
                "response=%.0fs retention=%.1f%% session=%.0fs",
                target_day.isoformat(),
                metric.average_score_change,
                metric.match_rate,
                metric.average_response_time,
                metric.user_retention,
                metric.average_session_length,
            )
            return AlgorithmMetricResponse.model_validate(metric)

        except KindredError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error recording algorithm metrics: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not record algorithm metrics.",
                context={"day": target_day.isoformat()},
            )

    # ══════════════════════════════════════════════════════════════════════
    # Admin Dashboards
    # ══════════════════════════════════════════════════════════════════════

    @staticmethod
    def _since(days: int) -> date:
        return today_utc() - timedelta(days=days)

    async def list_algorithm_metrics(
        self, db: AsyncSession, days: int = 30
    ) -> List[AlgorithmMetricResponse]:
        try:
            result = await db.execute(
                select(AlgorithmMetric)
                .where(AlgorithmMetric.date_recorded >= self._since(days))
                .order_by(AlgorithmMetric.date_recorded)
            )
            return [AlgorithmMetricResponse.model_validate(m) for m in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Database error listing algorithm metrics: %s", str(e))
            raise DatabaseError(message="Could not load algorithm metrics.")

    async def user_metrics_summary(self, db: AsyncSession, days: int = 30) -> List[UserMetricsDay]:
        """Activity per day across all users, oldest day first."""
        try:
            result = await db.execute(
                select(UserMetric)
                .where(UserMetric.metric_date >= self._since(days))
                .order_by(UserMetric.metric_date)
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error summarising user metrics: %s", str(e))
            raise DatabaseError(message="Could not load user metrics.")

        by_day: Dict[date, List[UserMetric]] = defaultdict(list)
        for row in rows:
            by_day[row.metric_date].append(row)

        summary = []
        for day in sorted(by_day):
            metrics = by_day[day]
            durations = [m.session_duration for m in metrics if m.session_duration is not None]
            summary.append(
                UserMetricsDay(
                    day=day,
                    active_users=len({m.user_id for m in metrics}),
                    total_swipes=sum(m.swipes_count for m in metrics),
                    total_likes=sum(m.likes_count for m in metrics),
                    total_dislikes=sum(m.dislikes_count for m in metrics),
                    total_matches=sum(m.matches_count for m in metrics),
                    total_messages=sum(m.messages_count for m in metrics),
                    avg_session_duration=(
                        sum(durations) / len(durations) if durations else None
                    ),
                )
            )
        return summary

    async def feedback_summary(self, db: AsyncSession, days: int = 30) -> FeedbackSummaryResponse:
        start, _ = day_bounds(self._since(days))
        try:
            result = await db.execute(
                select(
                    func.avg(UserFeedback.match_quality_rating),
                    func.avg(UserFeedback.algorithm_fairness_rating),
                    func.avg(UserFeedback.general_satisfaction),
                    func.count(UserFeedback.id),
                ).where(UserFeedback.date_submitted >= start)
            )
            quality, fairness, satisfaction, total = result.one()
        except SQLAlchemyError as e:
            logger.error("Database error summarising feedback: %s", str(e))
            raise DatabaseError(message="Could not load the feedback summary.")

        return FeedbackSummaryResponse(
            avg_match_quality=float(quality) if quality is not None else None,
            avg_fairness=float(fairness) if fairness is not None else None,
            avg_satisfaction=float(satisfaction) if satisfaction is not None else None,
            total_feedback=total or 0,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
analytics_service = AnalyticsService()
