"""
Kindred Backend — Message Service
==================================

What:  Match listing, chat history and sending messages inside a match.
Why:   Only the two participants of a match may read or write its messages;
       this is where that rule is enforced.
How:   Request/response polling. Reading a conversation marks the other
       participant's messages as read; sending bumps matches.last_message_at
       so the match list can be ordered by recent activity.
Who:   /api/matches (list) and /api/matches/{match_id}/messages.
"""

import logging
from typing import Dict, List

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from kindred.exceptions import DatabaseError, KindredError, NotFoundError, PermissionDeniedError
from kindred.models.match import Match, Message
from kindred.models.profile import Profile
from kindred.schemas.match import MatchListResponse, MatchResponse, MatchSummary, MessageResponse
from kindred.services.analytics_service import analytics_service
from kindred.services.profile_service import build_detail, profile_service
from kindred.timeutils import utcnow

logger = logging.getLogger(__name__)


class MessageService:
    """
    Business logic for matches and chat.

    Responsibilities:
        - list_matches(): caller's matches with the other profile, last message, unread count
        - get_messages(): history of one match, marking incoming messages read
        - send_message(): append a message and bump the match activity time
    """

    async def _participant_match(self, db: AsyncSession, match_id: int, profile_id: int) -> Match:
        """
        Raises:
            NotFoundError: no such match (→ 404)
            PermissionDeniedError: caller is not one of the two profiles (→ 403)
        """
        match = await db.get(Match, match_id)
        if match is None:
            raise NotFoundError(resource="match", resource_id=str(match_id))
        if not match.involves(profile_id):
            raise PermissionDeniedError(context={"match_id": match_id, "profile_id": profile_id})
        return match

    async def list_matches(self, db: AsyncSession, user_id: int) -> MatchListResponse:
        """Most recently active match first."""
        me = await profile_service.require_profile(db, user_id)

        try:
            result = await db.execute(
                select(Match)
                .where(or_(Match.profile_id_1 == me.id, Match.profile_id_2 == me.id))
                .order_by(Match.last_message_at.desc(), Match.id.desc())
            )
            matches = result.scalars().all()
            if not matches:
                return MatchListResponse(matches=[])

            other_ids = [m.other_profile_id(me.id) for m in matches]
            profiles_result = await db.execute(
                select(Profile)
                .options(selectinload(Profile.photos), selectinload(Profile.interests))
                .where(Profile.id.in_(other_ids))
            )
            others: Dict[int, Profile] = {p.id: p for p in profiles_result.scalars().all()}

            match_ids = [m.id for m in matches]
            unread_result = await db.execute(
                select(Message.match_id, func.count(Message.id))
                .where(
                    Message.match_id.in_(match_ids),
                    Message.sender_id != me.id,
                    Message.read.is_(False),
                )
                .group_by(Message.match_id)
            )
            unread: Dict[int, int] = {match_id: count for match_id, count in unread_result.all()}

            summaries = []
            for match in matches:
                other = others.get(match.other_profile_id(me.id))
                if other is None:
                    continue
                last_result = await db.execute(
                    select(Message)
                    .where(Message.match_id == match.id)
                    .order_by(Message.created_at.desc(), Message.id.desc())
                    .limit(1)
                )
                last = last_result.scalar_one_or_none()
                summaries.append(
                    MatchSummary(
                        match=MatchResponse.model_validate(match),
                        profile=build_detail(other),
                        last_message=MessageResponse.model_validate(last) if last else None,
                        unread_count=unread.get(match.id, 0),
                    )
                )
            return MatchListResponse(matches=summaries)

        except KindredError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error listing matches for profile %s: %s", me.id, str(e))
            raise DatabaseError(message="Could not load your matches. Please try again.")

    async def get_messages(
        self, db: AsyncSession, user_id: int, match_id: int
    ) -> List[MessageResponse]:
        """Conversation in chronological order; the other side's messages become read."""
        me = await profile_service.require_profile(db, user_id)
        try:
            await self._participant_match(db, match_id, me.id)

            await db.execute(
                update(Message)
                .where(
                    Message.match_id == match_id,
                    Message.sender_id != me.id,
                    Message.read.is_(False),
                )
                .values(read=True)
                .execution_options(synchronize_session=False)
            )

            result = await db.execute(
                select(Message)
                .where(Message.match_id == match_id)
                .order_by(Message.created_at, Message.id)
                .execution_options(populate_existing=True)
            )
            return [MessageResponse.model_validate(m) for m in result.scalars().all()]

        except KindredError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error reading match %s: %s", match_id, str(e))
            raise DatabaseError(message="Could not load messages. Please try again.")

    async def send_message(
        self, db: AsyncSession, user_id: int, match_id: int, content: str
    ) -> MessageResponse:
        me = await profile_service.require_profile(db, user_id)
        try:
            match = await self._participant_match(db, match_id, me.id)

            message = Message(match_id=match_id, sender_id=me.id, content=content, read=False)
            db.add(message)
            match.last_message_at = utcnow()
            await db.flush()
            logger.info("Profile %s sent message %s in match %s", me.id, message.id, match_id)
            response = MessageResponse.model_validate(message)

        except KindredError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error sending message in match %s: %s", match_id, str(e))
            raise DatabaseError(message="Could not send your message. Please try again.")

        await analytics_service.track_message(db, user_id)
        return response


# ── Singleton Instance ────────────────────────────────────────────────────
message_service = MessageService()
