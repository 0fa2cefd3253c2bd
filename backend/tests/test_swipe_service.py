"""
Kindred Backend — Swipe Service Tests
======================================

What:  Compare-and-set score updates (mocked session) and the full like/dislike
       flow against SQLite.

What we test:
    ✅ Score update retries when the stored score changed underneath it
    ✅ Exhausted retries raise ConcurrencyError (409)
    ✅ Retry backoff stays within the configured ceiling without deprecation warnings
    ✅ Like moves the target score, spends a credit, records previous/new score
    ✅ Dislike is free and lowers the target score
    ✅ The swiper's own score never moves
    ✅ Mutual like creates exactly one match (smaller id first) and counts it for both users
    ✅ Self-swipe, unknown target, duplicate swipe, empty credit balance
"""

import warnings
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select

from kindred.config import settings
from kindred.exceptions import (
    ConcurrencyError,
    DuplicateSwipeError,
    InsufficientCreditsError,
    NotFoundError,
    ValidationError,
)
from kindred.models.analytics import UserMetric
from kindred.models.match import Credit, Match, Swipe
from kindred.models.profile import Profile
from kindred.scoring import SwipeOutcome
from kindred.services.swipe_service import SwipeService, score_update_wait


async def stored_score(db, profile_id):
    return await db.scalar(select(Profile.score).where(Profile.id == profile_id))


class TestApplyScoreUpdate:
    """Conditional UPDATE + retry, with a mocked session."""

    def setup_method(self):
        self.service = SwipeService()

    @pytest.mark.asyncio
    async def test_first_attempt_wins(self, mock_db_session):
        mock_db_session.scalar.return_value = 70.0
        mock_db_session.execute.return_value = MagicMock(rowcount=1)

        previous, new = await self.service.apply_score_update(
            mock_db_session, 5, SwipeOutcome.LIKED
        )

        assert previous == 70.0
        assert new == pytest.approx(70.9)
        mock_db_session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_retries_on_stale_read(self, mock_db_session):
        # Another writer moved 70.0 → 70.9 between our read and write
        mock_db_session.scalar = AsyncMock(side_effect=[70.0, 70.9])
        mock_db_session.execute = AsyncMock(
            side_effect=[MagicMock(rowcount=0), MagicMock(rowcount=1)]
        )

        previous, new = await self.service.apply_score_update(
            mock_db_session, 5, SwipeOutcome.LIKED
        )

        assert previous == 70.9
        assert new == pytest.approx(70.9 + 0.873)
        assert mock_db_session.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_with_concurrency_error(self, mock_db_session):
        mock_db_session.scalar.return_value = 70.0
        mock_db_session.execute.return_value = MagicMock(rowcount=0)

        with pytest.raises(ConcurrencyError) as exc_info:
            await self.service.apply_score_update(mock_db_session, 5, "disliked")

        assert exc_info.value.attempts == settings.score_update_max_attempts
        assert mock_db_session.execute.await_count == settings.score_update_max_attempts

    @pytest.mark.asyncio
    async def test_missing_profile_not_retried(self, mock_db_session):
        mock_db_session.scalar.return_value = None

        with pytest.raises(NotFoundError):
            await self.service.apply_score_update(mock_db_session, 404, "liked")

        mock_db_session.scalar.assert_awaited_once()

    def test_backoff_is_bounded_and_warning_free(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            wait = score_update_wait()
            delays = [wait(MagicMock(attempt_number=n)) for n in range(1, 11)]

        assert all(0 <= d <= settings.score_update_max_wait for d in delays)


class TestSwipeFlow:
    """End-to-end swipe behavior on a real (SQLite) database."""

    def setup_method(self):
        self.service = SwipeService()

    @pytest.mark.asyncio
    async def test_like_updates_target_and_spends_credit(self, db_session, make_profile):
        alice = await make_profile(user_id=1, name="Alice")
        bob = await make_profile(user_id=2, name="Bob")

        result = await self.service.like(db_session, alice.user_id, bob.id)

        assert result.outcome is SwipeOutcome.LIKED
        assert result.is_match is False
        assert result.previous_score == 70.0
        assert result.new_score == pytest.approx(70.9)
        assert result.credits_remaining == 9
        assert await stored_score(db_session, bob.id) == pytest.approx(70.9)
        assert await stored_score(db_session, alice.id) == 70.0

        swipe = (await db_session.execute(select(Swipe))).scalar_one()
        assert (swipe.swiper_id, swipe.target_id, swipe.outcome) == (alice.id, bob.id, "liked")
        assert swipe.previous_score == 70.0
        assert swipe.new_score == pytest.approx(70.9)

    @pytest.mark.asyncio
    async def test_dislike_is_free(self, db_session, make_profile):
        alice = await make_profile(user_id=1)
        bob = await make_profile(user_id=2)

        result = await self.service.dislike(db_session, alice.user_id, bob.id)

        assert result.new_score == pytest.approx(68.6)
        assert result.credits_remaining is None
        amount = await db_session.scalar(
            select(Credit.amount).where(Credit.profile_id == alice.id)
        )
        assert amount == 10

    @pytest.mark.asyncio
    async def test_mutual_like_creates_one_match(self, db_session, make_profile):
        alice = await make_profile(user_id=1)
        bob = await make_profile(user_id=2)

        first = await self.service.like(db_session, bob.user_id, alice.id)
        second = await self.service.like(db_session, alice.user_id, bob.id)

        assert first.is_match is False
        assert second.is_match is True
        assert second.match.profile_id_1 == min(alice.id, bob.id)
        assert second.match.profile_id_2 == max(alice.id, bob.id)
        assert await db_session.scalar(select(func.count(Match.id))) == 1

        counts = dict(
            (await db_session.execute(select(UserMetric.user_id, UserMetric.matches_count))).all()
        )
        assert counts == {1: 1, 2: 1}

    @pytest.mark.asyncio
    async def test_like_after_dislike_is_not_a_match(self, db_session, make_profile):
        alice = await make_profile(user_id=1)
        bob = await make_profile(user_id=2)

        await self.service.dislike(db_session, bob.user_id, alice.id)
        result = await self.service.like(db_session, alice.user_id, bob.id)

        assert result.is_match is False

    @pytest.mark.asyncio
    async def test_swipe_tracks_counters(self, db_session, make_profile):
        alice = await make_profile(user_id=1)
        bob = await make_profile(user_id=2)
        carol = await make_profile(user_id=3)

        await self.service.like(db_session, alice.user_id, bob.id)
        await self.service.dislike(db_session, alice.user_id, carol.id)

        metric = (
            await db_session.execute(select(UserMetric).where(UserMetric.user_id == 1))
        ).scalar_one()
        assert (metric.swipes_count, metric.likes_count, metric.dislikes_count) == (2, 1, 1)

    @pytest.mark.asyncio
    async def test_cannot_swipe_self(self, db_session, make_profile):
        alice = await make_profile(user_id=1)

        with pytest.raises(ValidationError):
            await self.service.like(db_session, alice.user_id, alice.id)

    @pytest.mark.asyncio
    async def test_unknown_target(self, db_session, make_profile):
        alice = await make_profile(user_id=1)

        with pytest.raises(NotFoundError):
            await self.service.dislike(db_session, alice.user_id, 9999)

    @pytest.mark.asyncio
    async def test_swiper_without_profile(self, db_session, make_profile):
        bob = await make_profile(user_id=2)

        with pytest.raises(NotFoundError):
            await self.service.like(db_session, 77, bob.id)

    @pytest.mark.asyncio
    async def test_duplicate_swipe_rejected(self, db_session, make_profile):
        alice = await make_profile(user_id=1)
        bob = await make_profile(user_id=2)
        await self.service.like(db_session, alice.user_id, bob.id)

        with pytest.raises(DuplicateSwipeError):
            await self.service.dislike(db_session, alice.user_id, bob.id)

        assert await stored_score(db_session, bob.id) == pytest.approx(70.9)

    @pytest.mark.asyncio
    async def test_like_without_credits(self, db_session, make_profile):
        alice = await make_profile(user_id=1, credits=0)
        bob = await make_profile(user_id=2)

        with pytest.raises(InsufficientCreditsError):
            await self.service.like(db_session, alice.user_id, bob.id)

        assert await stored_score(db_session, bob.id) == 70.0
        assert await db_session.scalar(select(func.count(Swipe.id))) == 0

    @pytest.mark.asyncio
    async def test_successive_likes_compose(self, db_session, make_profile):
        target = await make_profile(user_id=1)
        first = await make_profile(user_id=2)
        second = await make_profile(user_id=3)

        one = await self.service.like(db_session, first.user_id, target.id)
        two = await self.service.like(db_session, second.user_id, target.id)

        assert two.previous_score == pytest.approx(one.new_score)
        assert two.new_score > one.new_score
