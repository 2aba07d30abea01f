"""Authentication schemas."""

from typing import Any

from pydantic import Field

from notescafe.schemas.base import BaseSchema
from notescafe.schemas.profile import UserProfile


# =============================================================================
# IDENTITY
# =============================================================================


class Identity(BaseSchema):
    """A verified identity returned by the identity provider."""

    uid: str
    phone_number: str | None = None
    email: str | None = None
    id_token: str | None = Field(None, repr=False)
    refresh_token: str | None = Field(None, repr=False)
    expires_in: int | None = None
    is_new_user: bool = False


class ConfirmationResult(BaseSchema):
    """Opaque handle for an in-flight phone verification awaiting its code."""

    verification_id: str
    phone_number: str | None = None


class SessionUser(BaseSchema):
    """Identity carried by the session token of an authenticated request."""

    uid: str
    phone_number: str | None = None


# =============================================================================
# RESULTS
# =============================================================================


class AuthResult(BaseSchema):
    """Structured outcome of an auth session operation."""

    success: bool
    message: str | None = None
    error: str | None = None
    code: str | None = None


class OTPSendResult(AuthResult):
    confirmation: ConfirmationResult | None = None


class OTPVerifyResult(AuthResult):
    user: Identity | None = None


class ProfileResult(AuthResult):
    user_data: UserProfile | None = None


class ProfileUpdateResult(AuthResult):
    updated_data: dict[str, Any] | None = None


class ProfileExistence(BaseSchema):
    exists: bool
    user_data: UserProfile | None = None
    error: str | None = None


# =============================================================================
# REQUESTS / RESPONSES
# =============================================================================


class OTPSendRequest(BaseSchema):
    """Request to dispatch an OTP to a phone number."""

    phone_number: str = Field(..., min_length=1, max_length=20)
    recaptcha_token: str = Field(..., min_length=1, description="Token from the invisible reCAPTCHA widget")


class OTPSendResponse(BaseSchema):
    success: bool = True
    verification_id: str
    message: str


class OTPVerifyRequest(BaseSchema):
    verification_id: str = Field(..., min_length=1)
    code: str = Field(..., min_length=4, max_length=8)


class FirebaseAuthRequest(BaseSchema):
    """Request schema for exchanging a Firebase ID token from client-side sign-in."""

    id_token: str = Field(..., description="Firebase ID token from the frontend SDK")


class TokenResponse(BaseSchema):
    """Response schema for successful authentication."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token expiry in seconds")
    uid: str
    profile_exists: bool


class MeResponse(BaseSchema):
    uid: str
    phone_number: str | None = None
    profile: UserProfile | None = None
