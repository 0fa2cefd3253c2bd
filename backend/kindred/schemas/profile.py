"""
Kindred Backend — Profile Request/Response Schemas
===================================================

What:  Pydantic models for profiles, photos, interests, credits and candidates.
Why:   Strict input validation, automatic serialization, and OpenAPI docs.
How:   FastAPI validates request bodies against these and serializes responses.

Design Decision:
    `score` appears on responses but never on request models. It is moved
    only by incoming swipes, so clients have no way to write it.
"""

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

MINIMUM_AGE = 18

Gender = Literal["male", "female", "non-binary", "other"]
InterestedIn = Literal["male", "female", "non-binary", "other", "everyone"]


def age_on(birthdate: date, today: date) -> int:
    """Whole years between birthdate and today."""
    years = today.year - birthdate.year
    if (today.month, today.day) < (birthdate.month, birthdate.day):
        years -= 1
    return years


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ProfileFields(BaseModel):
    """Editable profile fields shared by create and update."""
    bio: Optional[str] = Field(default=None, max_length=2000)
    location: Optional[str] = Field(default=None, max_length=255)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    looking_for: Optional[str] = Field(default=None, max_length=50)
    max_distance: Optional[int] = Field(default=None, ge=1, le=500)
    age_range_min: Optional[int] = Field(default=None, ge=MINIMUM_AGE, le=120)
    age_range_max: Optional[int] = Field(default=None, ge=MINIMUM_AGE, le=120)

    @model_validator(mode="after")
    def check_age_range(self):
        """Rejects inverted age ranges when both bounds are given."""
        if (
            self.age_range_min is not None
            and self.age_range_max is not None
            and self.age_range_min > self.age_range_max
        ):
            raise ValueError("age_range_min must not exceed age_range_max")
        return self


class ProfileCreate(ProfileFields):
    """
    What:  Body of POST /api/profiles.
    Rule:  Users must be at least 18 years old on the day they sign up.
    """
    name: str = Field(min_length=1, max_length=100)
    birthdate: date
    gender: Gender
    interested_in: InterestedIn

    @field_validator("birthdate")
    @classmethod
    def validate_adult(cls, v: date) -> date:
        if age_on(v, date.today()) < MINIMUM_AGE:
            raise ValueError("You must be at least 18 years old to use this app")
        return v


class ProfileUpdate(ProfileFields):
    """Body of PUT /api/profiles/{id}. Every field optional; omitted fields stay untouched."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    birthdate: Optional[date] = None
    gender: Optional[Gender] = None
    interested_in: Optional[InterestedIn] = None

    @field_validator("birthdate")
    @classmethod
    def validate_adult(cls, v: Optional[date]) -> Optional[date]:
        if v is not None and age_on(v, date.today()) < MINIMUM_AGE:
            raise ValueError("You must be at least 18 years old to use this app")
        return v


class PhotoCreate(BaseModel):
    """Body of POST /api/photos. Photos are referenced by URL; upload hosting is external."""
    url: str = Field(min_length=1, max_length=1024)
    is_main: bool = False
    order: int = Field(default=0, ge=0)


class InterestAdd(BaseModel):
    """Body of POST /api/profiles/interests."""
    interest_id: int = Field(gt=0)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class PhotoResponse(BaseModel):
    id: int
    profile_id: int
    url: str
    is_main: bool
    order: int
    created_at: datetime

    model_config = {"from_attributes": True}


class InterestResponse(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class ProfileResponse(BaseModel):
    """
    What:  A profile as stored, including its current score.
    Who:   Returned by POST /api/profiles and PUT /api/profiles/{id}.
    """
    id: int
    user_id: int
    name: str
    birthdate: date
    bio: Optional[str] = None
    gender: str
    interested_in: str
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    looking_for: str
    max_distance: int
    age_range_min: int
    age_range_max: int
    score: float = Field(description="Desirability score in [0, 100]")
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProfileDetailResponse(ProfileResponse):
    """Profile with its photos, interests and current display weight."""
    photos: List[PhotoResponse] = Field(default_factory=list)
    interests: List[InterestResponse] = Field(default_factory=list)
    display_weight: float = Field(description="Exposure weight in [0.2, 0.8] derived from score")


class CreditResponse(BaseModel):
    """Current like balance."""
    profile_id: int
    amount: int
    last_refreshed: datetime

    model_config = {"from_attributes": True}


class CreditStatusResponse(CreditResponse):
    """Like balance plus spending advice. Returned by GET /api/credits."""
    optimal: int = Field(description="Suggested likes to spend per day")
    recommendation: str


class MyProfileResponse(ProfileDetailResponse):
    """Returned by GET /api/profiles/me."""
    credits: Optional[CreditResponse] = None


class CandidateResponse(BaseModel):
    """
    What:  A profile offered to the viewer for swiping.
    Why display_weight: Exposed so clients (and future ranking) can use it.
                        Candidates are still ordered by raw score.
    """
    id: int
    name: str
    bio: Optional[str] = None
    gender: str
    location: Optional[str] = None
    score: float
    display_weight: float
    photos: List[PhotoResponse] = Field(default_factory=list)
