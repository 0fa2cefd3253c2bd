"""
Kindred Backend — Credits Route
================================

What:  GET /api/credits: today's like balance and how to spend it.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.database import get_db_session
from kindred.dependencies import get_current_user_id
from kindred.schemas.common import ErrorResponse
from kindred.schemas.profile import CreditStatusResponse
from kindred.services.credit_service import credit_service
from kindred.services.profile_service import profile_service

router = APIRouter(prefix="/api", tags=["Credits"])


@router.get(
    "/credits",
    response_model=CreditStatusResponse,
    responses={404: {"description": "No profile yet", "model": ErrorResponse}},
    summary="My like balance",
    description=(
        "Balance is reset to the daily amount on the first read after midnight UTC. "
        "Includes a suggested number of likes to spend and a short recommendation."
    ),
)
async def get_credits(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> CreditStatusResponse:
    profile = await profile_service.require_profile(db, user_id)
    return await credit_service.get_status(db, profile.id)
