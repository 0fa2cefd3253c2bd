"""
Kindred Backend — Credit Service Tests
=======================================

What we test:
    ✅ Balance is reset on the first read after a UTC day boundary
    ✅ Same-day reads leave the balance alone
    ✅ Consuming decrements by exactly one and stops at zero
    ✅ A request holding a stale row cannot re-grant a concurrently spent credit
    ✅ Missing credits row is created on first access
    ✅ Status includes the spending recommendation
"""

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kindred.config import settings
from kindred.exceptions import InsufficientCreditsError
from kindred.models.match import Credit
from kindred.models.profile import Profile
from kindred.services.credit_service import CreditService
from kindred.timeutils import utcnow


class TestNeedsRefresh:

    def test_yesterday_needs_refresh(self):
        now = datetime(2024, 3, 2, 0, 5, tzinfo=timezone.utc)
        credit = Credit(profile_id=1, amount=0, last_refreshed=now - timedelta(minutes=10))
        assert CreditService.needs_refresh(credit, now=now)

    def test_earlier_today_does_not(self):
        now = datetime(2024, 3, 2, 23, 0, tzinfo=timezone.utc)
        credit = Credit(profile_id=1, amount=3, last_refreshed=datetime(2024, 3, 2, 0, 1))
        assert not CreditService.needs_refresh(credit, now=now)


class TestCreditServiceDatabase:

    def setup_method(self):
        self.service = CreditService()

    @pytest.mark.asyncio
    async def test_stale_balance_is_refreshed(self, db_session, make_profile):
        profile = await make_profile(user_id=10, credits=0)
        credit = (
            await db_session.execute(select(Credit).where(Credit.profile_id == profile.id))
        ).scalar_one()
        credit.last_refreshed = utcnow() - timedelta(days=1)
        await db_session.flush()

        refreshed = await self.service.get_credits(db_session, profile.id)

        assert refreshed.amount == settings.daily_credits

    @pytest.mark.asyncio
    async def test_same_day_balance_untouched(self, db_session, make_profile):
        profile = await make_profile(user_id=11, credits=4)
        credit = await self.service.get_credits(db_session, profile.id)
        assert credit.amount == 4

    @pytest.mark.asyncio
    async def test_consume_decrements_once(self, db_session, make_profile):
        profile = await make_profile(user_id=12, credits=2)

        assert await self.service.consume(db_session, profile.id) == 1
        assert await self.service.consume(db_session, profile.id) == 0

    @pytest.mark.asyncio
    async def test_consume_at_zero_raises(self, db_session, make_profile):
        profile = await make_profile(user_id=13, credits=0)

        with pytest.raises(InsufficientCreditsError) as exc_info:
            await self.service.consume(db_session, profile.id)

        assert exc_info.value.context["profile_id"] == profile.id

    @pytest.mark.asyncio
    async def test_missing_row_created(self, db_session, make_profile):
        profile = await make_profile(user_id=14)
        await db_session.execute(
            Credit.__table__.delete().where(Credit.profile_id == profile.id)
        )
        db_session.expunge_all()

        credit = await self.service.get_credits(db_session, profile.id)

        assert credit.amount == settings.daily_credits

    @pytest.mark.asyncio
    async def test_stale_row_does_not_undo_a_concurrent_spend(self, db_engine):
        factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
        async with factory() as setup:
            profile = Profile(
                user_id=20,
                name="Test",
                birthdate=date(1995, 6, 15),
                gender="female",
                interested_in="everyone",
            )
            setup.add(profile)
            await setup.flush()
            setup.add(
                Credit(profile_id=profile.id, amount=0, last_refreshed=utcnow() - timedelta(days=1))
            )
            await setup.commit()
            profile_id = profile.id

        async with factory() as late, factory() as early:
            # `late` keeps yesterday's row in its identity map
            stale = (
                await late.execute(select(Credit).where(Credit.profile_id == profile_id))
            ).scalar_one()
            await late.commit()
            assert self.service.needs_refresh(stale)

            assert await self.service.consume(early, profile_id) == settings.daily_credits - 1
            await early.commit()

            remaining = await self.service.consume(late, profile_id)
            await late.commit()

        assert remaining == settings.daily_credits - 2
        async with factory() as check:
            stored = await check.scalar(
                select(Credit.amount).where(Credit.profile_id == profile_id)
            )
        assert stored == settings.daily_credits - 2

    @pytest.mark.asyncio
    async def test_status_reflects_consumption(self, db_session, make_profile):
        profile = await make_profile(user_id=15, credits=3)
        await self.service.consume(db_session, profile.id)

        status = await self.service.get_status(db_session, profile.id)

        assert status.amount == 2
        assert status.optimal == 2
        assert status.recommendation == "Use your remaining credits selectively"
