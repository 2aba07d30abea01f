"""User profile schemas."""

from datetime import date
from typing import Literal

from pydantic import ConfigDict, EmailStr, Field

from notescafe.schemas.base import BaseSchema, TimestampMixin

# Type aliases for enums (used as literals for API validation)
GenderType = Literal["Male", "Female", "Other"]
MediumType = Literal["English", "Hindi", "Other"]
QualificationType = Literal["High School", "Intermediate", "Graduation", "Post Graduation", "Other"]

PINCODE_PATTERN = r"^\d{6}$"


class ProfileFields(BaseSchema):
    """Optional profile fields shared by create, update and read."""

    mobile: str | None = Field(None, max_length=20)

    # Address
    district: str | None = Field(None, max_length=100)
    pincode: str | None = Field(None, pattern=PINCODE_PATTERN)

    # Exam
    exam: str | None = Field(None, max_length=100)
    attempt_year: int | None = Field(None, ge=1900, le=2100)
    medium: MediumType | None = None

    # Academic & coaching
    qualification: QualificationType | None = None
    discipline: str | None = Field(None, max_length=255)
    college: str | None = Field(None, max_length=255)
    coaching: bool = False
    coaching_name: str | None = Field(None, max_length=255)


class ProfileCreate(ProfileFields):
    """Schema for the first save of a profile. Unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    full_name: str = Field(..., min_length=1, max_length=255)
    gender: GenderType
    dob: date
    email: EmailStr
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)


class ProfileUpdate(BaseSchema):
    """
    Schema for updating a profile. All fields optional, unknown keys rejected.

    There is deliberately no ``is_profile_complete`` field: once a profile has
    been completed an update cannot unset it.
    """

    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(None, min_length=1, max_length=255)
    gender: GenderType | None = None
    dob: date | None = None
    email: EmailStr | None = None
    mobile: str | None = Field(None, max_length=20)
    city: str | None = Field(None, min_length=1, max_length=100)
    district: str | None = Field(None, max_length=100)
    state: str | None = Field(None, min_length=1, max_length=100)
    pincode: str | None = Field(None, pattern=PINCODE_PATTERN)
    exam: str | None = Field(None, max_length=100)
    attempt_year: int | None = Field(None, ge=1900, le=2100)
    medium: MediumType | None = None
    qualification: QualificationType | None = None
    discipline: str | None = Field(None, max_length=255)
    college: str | None = Field(None, max_length=255)
    coaching: bool | None = None
    coaching_name: str | None = Field(None, max_length=255)


class UserProfile(ProfileFields, TimestampMixin):
    """Schema for reading a stored profile."""

    uid: str
    full_name: str | None = None
    gender: GenderType | None = None
    dob: date | None = None
    email: str | None = None
    city: str | None = None
    state: str | None = None
    is_profile_complete: bool = False
    is_admin: bool = False


class ProfileValidation(BaseSchema):
    """Field-level validation outcome; ``errors`` maps field name to message."""

    is_valid: bool
    errors: dict[str, str] = Field(default_factory=dict)
