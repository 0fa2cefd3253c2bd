"""
Kindred Backend — Profile, Photo and Interest Routes
=====================================================

What:  The caller's own profile plus the photos and interests attached to it.
Who:   Profile page and onboarding flow of the client.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.database import get_db_session
from kindred.dependencies import get_current_user_id
from kindred.schemas.common import AckResponse, ErrorResponse
from kindred.schemas.profile import (
    InterestAdd,
    InterestResponse,
    MyProfileResponse,
    PhotoCreate,
    PhotoResponse,
    ProfileCreate,
    ProfileResponse,
    ProfileUpdate,
)
from kindred.services.profile_service import profile_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Profiles"])

_auth_errors = {
    401: {"description": "Missing or invalid X-User-ID", "model": ErrorResponse},
}


# ══════════════════════════════════════════════════════════════════════════
# Profiles
# ══════════════════════════════════════════════════════════════════════════


@router.get(
    "/profiles/me",
    response_model=MyProfileResponse,
    responses={**_auth_errors, 404: {"description": "No profile yet", "model": ErrorResponse}},
    summary="Get my profile",
    description=(
        "Returns the caller's profile with photos, interests, current display weight "
        "and credit balance. Credits are refreshed here if the last refresh was before today."
    ),
)
async def get_my_profile(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MyProfileResponse:
    return await profile_service.get_my_profile(db, user_id)


@router.post(
    "/profiles",
    response_model=ProfileResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_auth_errors, 400: {"description": "Profile already exists", "model": ErrorResponse}},
    summary="Create my profile",
)
async def create_profile(
    payload: ProfileCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    """New profiles start at score 70 with a full daily credit balance."""
    return await profile_service.create_profile(db, user_id, payload)


@router.put(
    "/profiles/{profile_id}",
    response_model=ProfileResponse,
    responses={
        **_auth_errors,
        403: {"description": "Not your profile", "model": ErrorResponse},
        404: {"description": "Profile not found", "model": ErrorResponse},
    },
    summary="Update my profile",
)
async def update_profile(
    profile_id: int,
    payload: ProfileUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return await profile_service.update_profile(db, user_id, profile_id, payload)


# ══════════════════════════════════════════════════════════════════════════
# Photos
# ══════════════════════════════════════════════════════════════════════════


@router.post(
    "/photos",
    response_model=PhotoResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_auth_errors, 400: {"description": "No profile yet", "model": ErrorResponse}},
    summary="Add a photo",
)
async def add_photo(
    payload: PhotoCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PhotoResponse:
    return await profile_service.add_photo(db, user_id, payload)


@router.put(
    "/photos/{photo_id}/main",
    response_model=AckResponse,
    responses={**_auth_errors, 404: {"description": "Photo not found", "model": ErrorResponse}},
    summary="Make a photo the main photo",
)
async def set_main_photo(
    photo_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> AckResponse:
    await profile_service.set_main_photo(db, user_id, photo_id)
    return AckResponse(message="Main photo updated")


@router.delete(
    "/photos/{photo_id}",
    response_model=AckResponse,
    responses={**_auth_errors, 404: {"description": "Photo not found", "model": ErrorResponse}},
    summary="Delete a photo",
)
async def delete_photo(
    photo_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> AckResponse:
    await profile_service.delete_photo(db, user_id, photo_id)
    return AckResponse(message="Photo deleted")


# ══════════════════════════════════════════════════════════════════════════
# Interests
# ══════════════════════════════════════════════════════════════════════════


@router.get(
    "/interests",
    response_model=List[InterestResponse],
    summary="List all selectable interests",
)
async def list_interests(db: AsyncSession = Depends(get_db_session)) -> List[InterestResponse]:
    # Public: the onboarding screen shows these before a profile exists
    return await profile_service.list_interests(db)


@router.post(
    "/profiles/interests",
    response_model=AckResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        **_auth_errors,
        404: {"description": "Interest or profile not found", "model": ErrorResponse},
        409: {"description": "Interest already added", "model": ErrorResponse},
    },
    summary="Add an interest to my profile",
)
async def add_interest(
    payload: InterestAdd,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> AckResponse:
    await profile_service.add_interest(db, user_id, payload.interest_id)
    return AckResponse(message="Interest added")


@router.delete(
    "/profiles/interests/{interest_id}",
    response_model=AckResponse,
    responses={**_auth_errors, 404: {"description": "Interest not on profile", "model": ErrorResponse}},
    summary="Remove an interest from my profile",
)
async def remove_interest(
    interest_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> AckResponse:
    await profile_service.remove_interest(db, user_id, interest_id)
    return AckResponse(message="Interest removed")
