"""
Kindred Backend — Matching and Messaging Routes
================================================

What:  Candidate feed, like/dislike, match list and chat.
Who:   Swipe deck, matches page and chat window of the client.

Status Codes (like/dislike):
    200  swipe recorded (body says whether it produced a match)
    400  swiping yourself, or liking with no credits left
    404  caller has no profile, or target profile does not exist
    409  already swiped on this profile, or score update contention
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.config import settings
from kindred.database import get_db_session
from kindred.dependencies import get_current_user_id
from kindred.schemas.common import ErrorResponse
from kindred.schemas.match import MatchListResponse, MessageCreate, MessageResponse, SwipeResponse
from kindred.schemas.profile import CandidateResponse
from kindred.services.message_service import message_service
from kindred.services.profile_service import profile_service
from kindred.services.swipe_service import swipe_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/matches", tags=["Matches"])

_swipe_errors = {
    400: {"description": "Self-swipe or no credits left", "model": ErrorResponse},
    401: {"description": "Missing or invalid X-User-ID", "model": ErrorResponse},
    404: {"description": "Profile not found", "model": ErrorResponse},
    409: {"description": "Already swiped, or concurrent update", "model": ErrorResponse},
}

_match_errors = {
    401: {"description": "Missing or invalid X-User-ID", "model": ErrorResponse},
    403: {"description": "Not a participant of this match", "model": ErrorResponse},
    404: {"description": "Match not found", "model": ErrorResponse},
}


@router.get(
    "/potential",
    response_model=List[CandidateResponse],
    summary="Profiles to swipe on",
    description=(
        "Profiles the caller has not swiped on yet, filtered by the caller's "
        "interested_in preference and ordered by score (highest first). Each item "
        "includes its display weight."
    ),
)
async def list_potential_matches(
    limit: Optional[int] = Query(default=None, ge=1, le=100, description="Page size"),
    offset: int = Query(default=0, ge=0),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[CandidateResponse]:
    return await profile_service.list_candidates(
        db, user_id, limit=limit or settings.default_candidate_limit, offset=offset
    )


@router.post(
    "/like/{profile_id}",
    response_model=SwipeResponse,
    responses=_swipe_errors,
    summary="Like a profile",
    description="Costs one credit. Raises the target's score and creates a match on a mutual like.",
)
async def like_profile(
    profile_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SwipeResponse:
    return await swipe_service.like(db, user_id, profile_id)


@router.post(
    "/dislike/{profile_id}",
    response_model=SwipeResponse,
    responses=_swipe_errors,
    summary="Dislike a profile",
    description="Free. Lowers the target's score.",
)
async def dislike_profile(
    profile_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SwipeResponse:
    return await swipe_service.dislike(db, user_id, profile_id)


@router.get(
    "",
    response_model=MatchListResponse,
    summary="My matches",
    description="Each match with the other profile, the last message and the unread count.",
)
async def list_matches(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MatchListResponse:
    return await message_service.list_matches(db, user_id)


@router.get(
    "/{match_id}/messages",
    response_model=List[MessageResponse],
    responses=_match_errors,
    summary="Read a conversation",
    description="Returns messages oldest first and marks the other participant's messages as read.",
)
async def get_messages(
    match_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[MessageResponse]:
    return await message_service.get_messages(db, user_id, match_id)


@router.post(
    "/{match_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_match_errors,
    summary="Send a message",
)
async def send_message(
    match_id: int,
    payload: MessageCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await message_service.send_message(db, user_id, match_id, payload.content)
