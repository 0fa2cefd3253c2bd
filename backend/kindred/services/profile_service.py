"""
Kindred Backend — Profile Service
==================================

What:  Profiles, photos, interests, and the list of candidates to swipe on.
Why:   Keeps ownership checks and query shapes out of the route handlers.
How:   Plain SQLAlchemy 2.0 selects; photos and interests eager-loaded with
       selectinload (async sessions cannot lazy-load).
Who:   /api/profiles, /api/photos, /api/interests and /api/matches/potential;
       SwipeService and MessageService use the profile lookups.

Candidate Query:
    SELECT * FROM profiles
    WHERE id != :viewer
      AND id NOT IN (SELECT target_id FROM swipes WHERE swiper_id = :viewer)
      [AND gender = :interested_in]        -- unless the viewer wants everyone
    ORDER BY score DESC, id
    LIMIT :limit OFFSET :offset
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from kindred.exceptions import (
    ConflictError,
    DatabaseError,
    KindredError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from kindred.models.match import Swipe
from kindred.models.profile import Interest, Photo, Profile, ProfileInterest
from kindred.schemas.profile import (
    CandidateResponse,
    CreditResponse,
    InterestResponse,
    MyProfileResponse,
    PhotoCreate,
    PhotoResponse,
    ProfileCreate,
    ProfileDetailResponse,
    ProfileResponse,
    ProfileUpdate,
)
from kindred.scoring import display_weight
from kindred.services.credit_service import credit_service

logger = logging.getLogger(__name__)

# Columns a client may explicitly clear with null
NULLABLE_FIELDS = {"bio", "location", "latitude", "longitude"}


def build_detail(profile: Profile) -> ProfileDetailResponse:
    """Profile (with photos and interests loaded) → detail response with display weight."""
    base = ProfileResponse.model_validate(profile).model_dump()
    return ProfileDetailResponse(
        **base,
        photos=[PhotoResponse.model_validate(p) for p in profile.photos],
        interests=[InterestResponse.model_validate(i) for i in profile.interests],
        display_weight=display_weight(profile.score),
    )


class ProfileService:
    """
    Business logic for profiles and everything hanging off them.

    Error Handling Strategy:
        Ownership problems surface as PermissionDeniedError, missing rows as
        NotFoundError. Any other database failure is logged and wrapped in
        DatabaseError so driver details never reach the client.
    """

    # ══════════════════════════════════════════════════════════════════════
    # Lookups
    # ══════════════════════════════════════════════════════════════════════

    async def get_by_user_id(self, db: AsyncSession, user_id: int) -> Optional[Profile]:
        result = await db.execute(
            select(Profile)
            .options(selectinload(Profile.photos), selectinload(Profile.interests))
            .where(Profile.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def require_profile(self, db: AsyncSession, user_id: int) -> Profile:
        """
        The caller's own profile.

        Raises:
            NotFoundError: the user has not created a profile yet (→ 404)
        """
        try:
            profile = await self.get_by_user_id(db, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error loading profile for user %s: %s", user_id, str(e))
            raise DatabaseError(message="Could not load your profile. Please try again.")
        if profile is None:
            raise NotFoundError(resource="profile")
        return profile

    async def get_profile(self, db: AsyncSession, profile_id: int) -> Profile:
        """Any profile by id, with photos and interests (→ 404 if missing)."""
        result = await db.execute(
            select(Profile)
            .options(selectinload(Profile.photos), selectinload(Profile.interests))
            .where(Profile.id == profile_id)
        )
        profile = result.scalar_one_or_none()
        if profile is None:
            raise NotFoundError(resource="profile", resource_id=str(profile_id))
        return profile

    # ══════════════════════════════════════════════════════════════════════
    # Profile CRUD
    # ══════════════════════════════════════════════════════════════════════

    async def get_my_profile(self, db: AsyncSession, user_id: int) -> MyProfileResponse:
        """Own profile with photos, interests and (lazily refreshed) credits."""
        profile = await self.require_profile(db, user_id)
        credit = await credit_service.get_credits(db, profile.id)
        detail = build_detail(profile)
        return MyProfileResponse(
            **detail.model_dump(),
            credits=CreditResponse.model_validate(credit),
        )

    async def create_profile(
        self, db: AsyncSession, user_id: int, data: ProfileCreate
    ) -> ProfileResponse:
        """
        Create the caller's profile with the starting score and a full credit balance.

        Raises:
            ValidationError: the user already has a profile (→ 400)
        """
        try:
            if await self.get_by_user_id(db, user_id) is not None:
                raise ValidationError(message="Profile already exists", field="user_id")

            profile = Profile(user_id=user_id, **data.model_dump(exclude_none=True))
            db.add(profile)
            await db.flush()
            await credit_service.create_for_profile(db, profile.id)

            logger.info("Created profile %s for user %s", profile.id, user_id)
            return ProfileResponse.model_validate(profile)

        except KindredError:
            raise
        except IntegrityError:
            # Two concurrent creates for the same user
            raise ValidationError(message="Profile already exists", field="user_id")
        except SQLAlchemyError as e:
            logger.error("Database error creating profile for user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not create your profile. Please try again.",
                context={"user_id": user_id},
            )

    async def update_profile(
        self, db: AsyncSession, user_id: int, profile_id: int, data: ProfileUpdate
    ) -> ProfileResponse:
        """
        Partial update of an owned profile. `score` is not an accepted field.

        Raises:
            NotFoundError: no such profile (→ 404)
            PermissionDeniedError: profile belongs to someone else (→ 403)
            ValidationError: resulting age range is inverted (→ 400)
        """
        try:
            result = await db.execute(select(Profile).where(Profile.id == profile_id))
            profile = result.scalar_one_or_none()
            if profile is None:
                raise NotFoundError(resource="profile", resource_id=str(profile_id))
            if profile.user_id != user_id:
                raise PermissionDeniedError(context={"profile_id": profile_id, "user_id": user_id})

            for field, value in data.model_dump(exclude_unset=True).items():
                if value is None and field not in NULLABLE_FIELDS:
                    continue
                setattr(profile, field, value)

            if profile.age_range_min > profile.age_range_max:
                raise ValidationError(
                    message="age_range_min must not exceed age_range_max", field="age_range_min"
                )

            await db.flush()
            await db.refresh(profile)
            logger.info("Updated profile %s", profile_id)
            return ProfileResponse.model_validate(profile)

        except KindredError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating profile %s: %s", profile_id, str(e))
            raise DatabaseError(
                message="Could not update the profile. Please try again.",
                context={"profile_id": profile_id},
            )

    # ══════════════════════════════════════════════════════════════════════
    # Photos
    # ══════════════════════════════════════════════════════════════════════

    async def _clear_main(
        self, db: AsyncSession, profile_id: int, keep_photo_id: Optional[int] = None
    ) -> None:
        query = update(Photo).where(Photo.profile_id == profile_id, Photo.is_main.is_(True))
        if keep_photo_id is not None:
            query = query.where(Photo.id != keep_photo_id)
        await db.execute(
            query
            .values(is_main=False)
            .execution_options(synchronize_session=False)
        )

    async def add_photo(self, db: AsyncSession, user_id: int, data: PhotoCreate) -> PhotoResponse:
        """
        Attach a photo URL to the caller's profile.

        Raises:
            ValidationError: the caller has no profile yet (→ 400)
        """
        profile = await self.get_by_user_id(db, user_id)
        if profile is None:
            raise ValidationError(message="Create a profile first")

        try:
            if data.is_main:
                await self._clear_main(db, profile.id)
            photo = Photo(profile_id=profile.id, url=data.url, is_main=data.is_main, order=data.order)
            db.add(photo)
            await db.flush()
            logger.info("Added photo %s to profile %s", photo.id, profile.id)
            return PhotoResponse.model_validate(photo)

        except SQLAlchemyError as e:
            logger.error("Database error adding photo to profile %s: %s", profile.id, str(e))
            raise DatabaseError(message="Could not save the photo. Please try again.")

    async def _owned_photo(self, db: AsyncSession, profile_id: int, photo_id: int) -> Photo:
        result = await db.execute(
            select(Photo).where(Photo.id == photo_id, Photo.profile_id == profile_id)
        )
        photo = result.scalar_one_or_none()
        if photo is None:
            raise NotFoundError(resource="photo", resource_id=str(photo_id))
        return photo

    async def set_main_photo(self, db: AsyncSession, user_id: int, photo_id: int) -> None:
        """Make `photo_id` the only main photo of the caller's profile (→ 404 if not theirs)."""
        profile = await self.require_profile(db, user_id)
        try:
            photo = await self._owned_photo(db, profile.id, photo_id)
            await self._clear_main(db, profile.id, keep_photo_id=photo.id)
            photo.is_main = True
            await db.flush()
        except KindredError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error setting main photo %s: %s", photo_id, str(e))
            raise DatabaseError(message="Could not update the photo. Please try again.")

    async def delete_photo(self, db: AsyncSession, user_id: int, photo_id: int) -> None:
        profile = await self.require_profile(db, user_id)
        try:
            photo = await self._owned_photo(db, profile.id, photo_id)
            await db.delete(photo)
            await db.flush()
            logger.info("Deleted photo %s from profile %s", photo_id, profile.id)
        except KindredError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting photo %s: %s", photo_id, str(e))
            raise DatabaseError(message="Could not delete the photo. Please try again.")

    # ══════════════════════════════════════════════════════════════════════
    # Interests
    # ══════════════════════════════════════════════════════════════════════

    async def list_interests(self, db: AsyncSession) -> List[InterestResponse]:
        try:
            result = await db.execute(select(Interest).order_by(Interest.name))
            return [InterestResponse.model_validate(i) for i in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Database error listing interests: %s", str(e))
            raise DatabaseError(message="Could not load interests.")

    async def add_interest(self, db: AsyncSession, user_id: int, interest_id: int) -> None:
        """
        Raises:
            NotFoundError: unknown interest (→ 404)
            ConflictError: already on the profile (→ 409)
        """
        profile = await self.require_profile(db, user_id)
        try:
            if await db.get(Interest, interest_id) is None:
                raise NotFoundError(resource="interest", resource_id=str(interest_id))

            existing = await db.execute(
                select(ProfileInterest.id).where(
                    ProfileInterest.profile_id == profile.id,
                    ProfileInterest.interest_id == interest_id,
                )
            )
            if existing.scalar_one_or_none() is not None:
                raise ConflictError(message="Interest already added")

            db.add(ProfileInterest(profile_id=profile.id, interest_id=interest_id))
            await db.flush()

        except KindredError:
            raise
        except IntegrityError:
            raise ConflictError(message="Interest already added")
        except SQLAlchemyError as e:
            logger.error("Database error adding interest %s: %s", interest_id, str(e))
            raise DatabaseError(message="Could not add the interest. Please try again.")

    async def remove_interest(self, db: AsyncSession, user_id: int, interest_id: int) -> None:
        profile = await self.require_profile(db, user_id)
        try:
            result = await db.execute(
                delete(ProfileInterest).where(
                    ProfileInterest.profile_id == profile.id,
                    ProfileInterest.interest_id == interest_id,
                )
            )
        except SQLAlchemyError as e:
            logger.error("Database error removing interest %s: %s", interest_id, str(e))
            raise DatabaseError(message="Could not remove the interest. Please try again.")
        if result.rowcount == 0:
            raise NotFoundError(resource="interest", resource_id=str(interest_id))

    # ══════════════════════════════════════════════════════════════════════
    # Candidates
    # ══════════════════════════════════════════════════════════════════════

    async def list_candidates(
        self, db: AsyncSession, user_id: int, limit: int, offset: int = 0
    ) -> List[CandidateResponse]:
        """
        Profiles the caller has not swiped on yet, highest score first.

        Each candidate carries its display weight. Ordering is by raw score;
        the weight is informational for clients.
        """
        viewer = await self.require_profile(db, user_id)

        already_swiped = select(Swipe.target_id).where(Swipe.swiper_id == viewer.id)
        query = (
            select(Profile)
            .options(selectinload(Profile.photos))
            .where(Profile.id != viewer.id, Profile.id.not_in(already_swiped))
            .order_by(Profile.score.desc(), Profile.id)
            .limit(limit)
            .offset(offset)
        )
        if viewer.interested_in != "everyone":
            query = query.where(Profile.gender == viewer.interested_in)

        try:
            result = await db.execute(query)
            candidates = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing candidates for %s: %s", viewer.id, str(e))
            raise DatabaseError(message="Could not load potential matches. Please try again.")

        logger.debug("Profile %s: %d candidates (offset %d)", viewer.id, len(candidates), offset)
        return [
            CandidateResponse(
                id=c.id,
                name=c.name,
                bio=c.bio,
                gender=c.gender,
                location=c.location,
                score=c.score,
                display_weight=display_weight(c.score),
                photos=[PhotoResponse.model_validate(p) for p in c.photos],
            )
            for c in candidates
        ]


# ── Singleton Instance ────────────────────────────────────────────────────
profile_service = ProfileService()
