"""
Kindred Backend — Swipe Service (Like/Dislike Orchestrator)
============================================================

What:  Everything that happens when one profile swipes on another.
Why:   A like touches four tables (credits, profiles, swipes, matches) and the
       target's score is shared mutable state. Keeping the sequence in one
       place makes the ordering and the failure behavior explicit.
How:   Validate → spend credit (likes only) → move target score with a
       compare-and-set UPDATE → record the swipe → detect a mutual like.
       All of it runs in the request's transaction; any error rolls it back.
Who:   POST /api/matches/like/{id} and /api/matches/dislike/{id}.

Orchestration Flow:
    ┌──────────┐   ┌──────────┐   ┌──────────────┐   ┌─────────┐   ┌──────────┐
    │ Validate │──▶│  Credit  │──▶│ Score update │──▶│  Swipe  │──▶│  Match?  │
    │ (self,   │   │ (likes)  │   │ (CAS + retry)│   │  row    │   │ (likes)  │
    │  404,dup)│   └──────────┘   └──────────────┘   └─────────┘   └──────────┘
    └──────────┘

Lost-Update Protection:
    UPDATE profiles SET score = :new
    WHERE id = :id AND score = :observed
    → 0 rows means another swipe moved the score since we read it. Re-read,
      recompute and try again (tenacity, bounded attempts, jittered backoff).
      Giving up raises ConcurrencyError (409).
"""

import logging
from typing import Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from kindred.config import settings
from kindred.exceptions import (
    ConcurrencyError,
    DatabaseError,
    DuplicateSwipeError,
    KindredError,
    NotFoundError,
    ValidationError,
)
from kindred.models.match import Match, Swipe
from kindred.models.profile import Profile
from kindred.schemas.match import MatchResponse, SwipeResponse
from kindred.scoring import OutcomeLike, SwipeOutcome, coerce_outcome, next_score
from kindred.services.analytics_service import analytics_service
from kindred.services.credit_service import credit_service
from kindred.services.profile_service import profile_service

logger = logging.getLogger(__name__)


class StaleScoreError(Exception):
    """The stored score changed between read and conditional write."""


def score_update_wait() -> wait_random_exponential:
    """Full-jitter backoff: uniform in [0, min(max, min_wait × 2^n)]."""
    return wait_random_exponential(
        multiplier=settings.score_update_min_wait,
        max=settings.score_update_max_wait,
    )


class SwipeService:
    """
    Business logic for swipes.

    Responsibilities:
        - like() / dislike(): public entry points
        - apply_score_update(): the only writer of profiles.score
        - find_or_create_match(): mutual like → one match row per pair
    """

    # ══════════════════════════════════════════════════════════════════════
    # Score Update
    # ══════════════════════════════════════════════════════════════════════

    @retry(
        retry=retry_if_exception_type(StaleScoreError),
        stop=stop_after_attempt(settings.score_update_max_attempts),
        wait=score_update_wait(),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _compare_and_set_score(
        self, db: AsyncSession, profile_id: int, outcome: SwipeOutcome
    ) -> Tuple[float, float]:
        observed = await db.scalar(select(Profile.score).where(Profile.id == profile_id))
        if observed is None:
            raise NotFoundError(resource="profile", resource_id=str(profile_id))

        new = next_score(observed, outcome)
        result = await db.execute(
            update(Profile)
            .where(Profile.id == profile_id, Profile.score == observed)
            .values(score=new)
        )
        if result.rowcount != 1:
            raise StaleScoreError()
        return observed, new

    async def apply_score_update(
        self, db: AsyncSession, profile_id: int, outcome: OutcomeLike
    ) -> Tuple[float, float]:
        """
        Move a profile's stored score by one swipe outcome.

        Returns:
            (previous_score, new_score)

        Raises:
            NotFoundError: the profile does not exist (→ 404)
            ConcurrencyError: lost the compare-and-set on every attempt (→ 409)
        """
        try:
            return await self._compare_and_set_score(db, profile_id, coerce_outcome(outcome))
        except StaleScoreError:
            logger.error(
                "Gave up updating score of profile %s after %d attempts",
                profile_id,
                settings.score_update_max_attempts,
            )
            raise ConcurrencyError(
                profile_id=profile_id, attempts=settings.score_update_max_attempts
            )

    # ══════════════════════════════════════════════════════════════════════
    # Matches
    # ══════════════════════════════════════════════════════════════════════

    async def find_or_create_match(self, db: AsyncSession, profile_a: int, profile_b: int) -> Match:
        """Match row for the pair, stored with the smaller id first."""
        first, second = sorted((profile_a, profile_b))
        result = await db.execute(
            select(Match).where(Match.profile_id_1 == first, Match.profile_id_2 == second)
        )
        match = result.scalar_one_or_none()
        if match is None:
            match = Match(profile_id_1=first, profile_id_2=second)
            db.add(match)
            await db.flush()
            logger.info("New match %s between profiles %s and %s", match.id, first, second)
        return match

    async def _liked_back(self, db: AsyncSession, swiper_id: int, target_id: int) -> bool:
        result = await db.execute(
            select(Swipe.id).where(
                Swipe.swiper_id == target_id,
                Swipe.target_id == swiper_id,
                Swipe.outcome == SwipeOutcome.LIKED.value,
            )
        )
        return result.scalar_one_or_none() is not None

    # ══════════════════════════════════════════════════════════════════════
    # Swipes
    # ══════════════════════════════════════════════════════════════════════

    async def swipe(
        self, db: AsyncSession, user_id: int, target_id: int, outcome: OutcomeLike
    ) -> SwipeResponse:
        """
        Record a like or dislike from the caller's profile on `target_id`.

        Raises:
            NotFoundError: caller has no profile, or target does not exist (→ 404)
            ValidationError: swiping on yourself (→ 400)
            InsufficientCreditsError: like with no credits left (→ 400)
            DuplicateSwipeError: caller already swiped on target (→ 409)
            ConcurrencyError: score update kept losing to other writers (→ 409)
            DatabaseError: anything else the database threw (→ 500)
        """
        kind = coerce_outcome(outcome)
        swiper = await profile_service.require_profile(db, user_id)

        if swiper.id == target_id:
            raise ValidationError(message="You cannot swipe on your own profile", field="profile_id")

        try:
            target_user_id = await db.scalar(select(Profile.user_id).where(Profile.id == target_id))
            if target_user_id is None:
                raise NotFoundError(resource="profile", resource_id=str(target_id))

            existing = await db.execute(
                select(Swipe.id).where(Swipe.swiper_id == swiper.id, Swipe.target_id == target_id)
            )
            if existing.scalar_one_or_none() is not None:
                raise DuplicateSwipeError(swiper_id=swiper.id, target_id=target_id)

            credits_remaining: Optional[int] = None
            if kind is SwipeOutcome.LIKED:
                credits_remaining = await credit_service.consume(db, swiper.id)

            previous, new = await self.apply_score_update(db, target_id, kind)

            db.add(
                Swipe(
                    swiper_id=swiper.id,
                    target_id=target_id,
                    outcome=kind.value,
                    previous_score=previous,
                    new_score=new,
                )
            )
            try:
                await db.flush()
            except IntegrityError:
                # A concurrent request recorded the same swipe first
                raise DuplicateSwipeError(swiper_id=swiper.id, target_id=target_id)

            logger.info(
                "Profile %s %s profile %s: score %.2f -> %.2f",
                swiper.id,
                kind.value,
                target_id,
                previous,
                new,
            )

            match = None
            if kind is SwipeOutcome.LIKED and await self._liked_back(db, swiper.id, target_id):
                match = await self.find_or_create_match(db, swiper.id, target_id)

        except KindredError:
            raise
        except SQLAlchemyError as e:
            logger.error(
                "Database error recording swipe %s -> %s: %s", swiper.id, target_id, str(e),
                exc_info=True,
            )
            raise DatabaseError(
                message="Could not record your swipe. Please try again.",
                context={"swiper_id": swiper.id, "target_id": target_id},
            )

        await analytics_service.track_swipe(db, user_id, kind)
        if match is not None:
            await analytics_service.track_match(db, user_id)
            await analytics_service.track_match(db, target_user_id)

        return SwipeResponse(
            outcome=kind,
            target_id=target_id,
            is_match=match is not None,
            match=MatchResponse.model_validate(match) if match is not None else None,
            previous_score=previous,
            new_score=new,
            credits_remaining=credits_remaining,
        )

    async def like(self, db: AsyncSession, user_id: int, target_id: int) -> SwipeResponse:
        return await self.swipe(db, user_id, target_id, SwipeOutcome.LIKED)

    async def dislike(self, db: AsyncSession, user_id: int, target_id: int) -> SwipeResponse:
        return await self.swipe(db, user_id, target_id, SwipeOutcome.DISLIKED)


# ── Singleton Instance ────────────────────────────────────────────────────
swipe_service = SwipeService()
