"""
Kindred Backend — Message Service Tests
========================================

What we test:
    ✅ Only the two participants can read or write a match
    ✅ Reading a conversation marks the other side's messages read
    ✅ Sending bumps the match to the top of the list
    ✅ Match list carries the other profile, last message and unread count
    ✅ Message bodies are trimmed and blank ones rejected
"""

from datetime import timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select

from kindred.exceptions import NotFoundError, PermissionDeniedError
from kindred.models.analytics import UserMetric
from kindred.models.match import Match
from kindred.schemas.match import MessageCreate
from kindred.services.message_service import MessageService
from kindred.timeutils import utcnow


async def make_match(db, first, second, minutes_ago=60):
    ids = sorted((first.id, second.id))
    stamp = utcnow() - timedelta(minutes=minutes_ago)
    match = Match(profile_id_1=ids[0], profile_id_2=ids[1], created_at=stamp, last_message_at=stamp)
    db.add(match)
    await db.flush()
    return match


class TestMessageBody:

    def test_content_trimmed(self):
        assert MessageCreate(content="  hello  ").content == "hello"

    @pytest.mark.parametrize("content", ["", "   "])
    def test_blank_rejected(self, content):
        with pytest.raises(PydanticValidationError):
            MessageCreate(content=content)


class TestMessaging:

    def setup_method(self):
        self.service = MessageService()

    @pytest.mark.asyncio
    async def test_send_and_read(self, db_session, make_profile):
        alice = await make_profile(user_id=1, name="Alice")
        bob = await make_profile(user_id=2, name="Bob")
        match = await make_match(db_session, alice, bob)

        sent = await self.service.send_message(db_session, 1, match.id, "hi Bob")
        assert sent.sender_id == alice.id
        assert sent.read is False

        history = await self.service.get_messages(db_session, 2, match.id)

        assert [m.content for m in history] == ["hi Bob"]
        assert history[0].read is True

    @pytest.mark.asyncio
    async def test_own_messages_stay_unread_for_sender_view(self, db_session, make_profile):
        alice = await make_profile(user_id=1)
        bob = await make_profile(user_id=2)
        match = await make_match(db_session, alice, bob)
        await self.service.send_message(db_session, 1, match.id, "first")

        history = await self.service.get_messages(db_session, 1, match.id)

        assert history[0].read is False

    @pytest.mark.asyncio
    async def test_outsider_cannot_read_or_write(self, db_session, make_profile):
        alice = await make_profile(user_id=1)
        bob = await make_profile(user_id=2)
        await make_profile(user_id=3)
        match = await make_match(db_session, alice, bob)

        with pytest.raises(PermissionDeniedError):
            await self.service.get_messages(db_session, 3, match.id)
        with pytest.raises(PermissionDeniedError):
            await self.service.send_message(db_session, 3, match.id, "let me in")

    @pytest.mark.asyncio
    async def test_unknown_match(self, db_session, make_profile):
        await make_profile(user_id=1)

        with pytest.raises(NotFoundError):
            await self.service.send_message(db_session, 1, 999, "hello?")

    @pytest.mark.asyncio
    async def test_sending_counts_message(self, db_session, make_profile):
        alice = await make_profile(user_id=1)
        bob = await make_profile(user_id=2)
        match = await make_match(db_session, alice, bob)

        await self.service.send_message(db_session, 1, match.id, "one")
        await self.service.send_message(db_session, 1, match.id, "two")

        count = await db_session.scalar(
            select(UserMetric.messages_count).where(UserMetric.user_id == 1)
        )
        assert count == 2


class TestMatchList:

    def setup_method(self):
        self.service = MessageService()

    @pytest.mark.asyncio
    async def test_empty(self, db_session, make_profile):
        await make_profile(user_id=1)

        listing = await self.service.list_matches(db_session, 1)

        assert listing.matches == []

    @pytest.mark.asyncio
    async def test_recent_activity_first_with_unread(self, db_session, make_profile):
        alice = await make_profile(user_id=1, name="Alice")
        bob = await make_profile(user_id=2, name="Bob")
        carol = await make_profile(user_id=3, name="Carol")
        with_bob = await make_match(db_session, alice, bob, minutes_ago=120)
        with_carol = await make_match(db_session, alice, carol, minutes_ago=30)

        await self.service.send_message(db_session, 2, with_bob.id, "hey")
        await self.service.send_message(db_session, 2, with_bob.id, "you there?")

        listing = await self.service.list_matches(db_session, 1)

        assert [s.match.id for s in listing.matches] == [with_bob.id, with_carol.id]
        top = listing.matches[0]
        assert top.profile.name == "Bob"
        assert top.unread_count == 2
        assert top.last_message.content == "you there?"
        assert listing.matches[1].last_message is None
        assert listing.matches[1].unread_count == 0

    @pytest.mark.asyncio
    async def test_unread_cleared_after_reading(self, db_session, make_profile):
        alice = await make_profile(user_id=1)
        bob = await make_profile(user_id=2)
        match = await make_match(db_session, alice, bob)
        await self.service.send_message(db_session, 2, match.id, "hey")

        await self.service.get_messages(db_session, 1, match.id)
        listing = await self.service.list_matches(db_session, 1)

        assert listing.matches[0].unread_count == 0

    @pytest.mark.asyncio
    async def test_sender_sees_no_unread(self, db_session, make_profile):
        alice = await make_profile(user_id=1)
        bob = await make_profile(user_id=2)
        match = await make_match(db_session, alice, bob)
        await self.service.send_message(db_session, 2, match.id, "hey")

        listing = await self.service.list_matches(db_session, 2)

        assert listing.matches[0].unread_count == 0
        assert listing.matches[0].profile.id == alice.id
