"""
Kindred Backend — Credit Service
=================================

What:  Daily like budget: read, lazy refresh, atomic consume.
Why:   Likes are the scarce resource that makes users selective. Without a
       budget, a user could like every profile and the score signal would
       carry no information.
How:   Balance lives in the `credits` table. It is reset to DAILY_CREDITS on
       the first read after midnight UTC (no scheduler needed). Both the reset
       and the spend are single guarded UPDATEs, so a request holding a stale
       row can neither re-grant a balance nor spend the same credit twice.

Consume Query:
    UPDATE credits SET amount = amount - 1
    WHERE profile_id = :id AND amount > 0
    RETURNING amount
    → no row returned means the balance was already zero

Reset Query:
    UPDATE credits SET amount = :daily, last_refreshed = :now
    WHERE profile_id = :id AND last_refreshed < :start_of_today
    → 0 rows means another request already reset it today
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.config import settings
from kindred.exceptions import DatabaseError, InsufficientCreditsError, KindredError
from kindred.models.match import Credit
from kindred.schemas.profile import CreditStatusResponse
from kindred.scoring import credit_spending_strategy
from kindred.timeutils import as_utc, start_of_day, utcnow

logger = logging.getLogger(__name__)


class CreditService:
    """
    Business logic for the daily like budget.

    Responsibilities:
        - get_credits(): balance for a profile, refreshed if stale
        - consume(): spend one credit or raise InsufficientCreditsError
        - get_status(): balance plus spending advice for the client
    """

    @staticmethod
    def needs_refresh(credit: Credit, now: Optional[datetime] = None) -> bool:
        """True when the balance was last reset before today (UTC)."""
        current = now or utcnow()
        return as_utc(credit.last_refreshed) < start_of_day(current.date())

    async def create_for_profile(self, db: AsyncSession, profile_id: int) -> Credit:
        """Initial balance for a brand-new profile."""
        credit = Credit(
            profile_id=profile_id,
            amount=settings.daily_credits,
            last_refreshed=utcnow(),
        )
        db.add(credit)
        await db.flush()
        return credit

    async def get_credits(self, db: AsyncSession, profile_id: int) -> Credit:
        """
        Current balance, reset to the daily amount if the last reset was before today.

        Profiles created before credits existed get a row on first access.
        """
        try:
            result = await db.execute(select(Credit).where(Credit.profile_id == profile_id))
            credit = result.scalar_one_or_none()

            if credit is None:
                logger.info("No credits row for profile %s; creating one", profile_id)
                return await self.create_for_profile(db, profile_id)

            now = utcnow()
            if self.needs_refresh(credit, now=now):
                # Only the first request of the day resets; later ones see 0 rows
                reset = await db.execute(
                    update(Credit)
                    .where(
                        Credit.profile_id == profile_id,
                        Credit.last_refreshed < start_of_day(now.date()),
                    )
                    .values(amount=settings.daily_credits, last_refreshed=now)
                    .execution_options(synchronize_session=False)
                )
                await db.refresh(credit)
                if reset.rowcount:
                    logger.info(
                        "Refreshed credits for profile %s to %d",
                        profile_id,
                        settings.daily_credits,
                    )

            return credit

        except KindredError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error reading credits for profile %s: %s", profile_id, str(e))
            raise DatabaseError(
                message="Could not load your credits. Please try again.",
                context={"profile_id": profile_id},
            )

    async def consume(self, db: AsyncSession, profile_id: int) -> int:
        """
        Spend one credit.

        Returns:
            Remaining balance after spending.

        Raises:
            InsufficientCreditsError: balance is zero (→ 400)
        """
        # Apply any pending daily reset before spending
        await self.get_credits(db, profile_id)

        try:
            result = await db.execute(
                update(Credit)
                .where(Credit.profile_id == profile_id, Credit.amount > 0)
                .values(amount=Credit.amount - 1)
                .returning(Credit.amount)
                .execution_options(synchronize_session=False)
            )
            remaining = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error consuming credit for profile %s: %s", profile_id, str(e))
            raise DatabaseError(
                message="Could not update your credits. Please try again.",
                context={"profile_id": profile_id},
            )

        if remaining is None:
            raise InsufficientCreditsError(profile_id=profile_id)

        logger.debug("Profile %s spent a credit; %d left", profile_id, remaining)
        return remaining

    async def get_status(self, db: AsyncSession, profile_id: int) -> CreditStatusResponse:
        """Balance plus how many likes to spend today."""
        credit = await self.get_credits(db, profile_id)
        # The guarded UPDATE in consume() bypasses the identity map
        await db.refresh(credit)
        strategy = credit_spending_strategy(credit.amount)
        return CreditStatusResponse(
            profile_id=credit.profile_id,
            amount=credit.amount,
            last_refreshed=credit.last_refreshed,
            optimal=strategy.optimal,
            recommendation=strategy.recommendation,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
credit_service = CreditService()
