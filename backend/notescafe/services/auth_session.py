"""
Phone-OTP auth session.

State machine:

    IDLE --send_otp ok--> CHALLENGE_ISSUED --verify_otp ok--> VERIFIED
      ^                          |
      +------send_otp failed-----+   (verifier discarded, next attempt rebuilds it)

A failed verify_otp leaves the session where it was, so the user can retry
the code. Nothing here raises across the public boundary: every operation
returns a result model with ``success`` and either a payload or ``error``/``code``.

The session also fronts the user's profile document (existence check,
save, update, get) and the profile form validation rules.
"""

import logging
import re
from collections.abc import Callable, Mapping
from datetime import date
from enum import Enum
from typing import Any

from notescafe.errors import ProviderError, get_phone_auth_error_message
from notescafe.repositories.profiles import ProfileRepository
from notescafe.schemas.auth import (
    AuthResult,
    ConfirmationResult,
    Identity,
    OTPSendResult,
    OTPVerifyResult,
    ProfileExistence,
    ProfileResult,
    ProfileUpdateResult,
)
from notescafe.schemas.profile import ProfileCreate, ProfileUpdate, ProfileValidation
from notescafe.services.identity import IdentityListener, IdentityProvider, RecaptchaVerifier, TokenProvider
from notescafe.validation import validate_email

logger = logging.getLogger(__name__)

DEFAULT_COUNTRY_CODE = "+91"

REQUIRED_PROFILE_FIELDS = ("full_name", "gender", "dob", "email", "city", "state")
PROFILE_FIELD_LABELS = {
    "full_name": "Full name",
    "gender": "Gender",
    "dob": "Date of birth",
    "email": "Email",
    "city": "City",
    "state": "State",
}
MIN_AGE = 18
MAX_AGE = 100


class AuthState(str, Enum):
    IDLE = "idle"
    CHALLENGE_ISSUED = "challenge_issued"
    VERIFIED = "verified"


def _auth_error_code(error: Exception) -> str:
    return error.code if isinstance(error, ProviderError) else "auth/internal-error"


def format_phone_number(phone_number: str, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """
    Normalize a phone number to E.164.

    Numbers already starting with "+" are left alone. Otherwise separators
    are dropped and a bare 10-digit number gets the country code; anything
    else is returned unchanged for the provider to reject.
    """
    if phone_number.startswith("+"):
        return phone_number
    digits = re.sub(r"\D", "", phone_number)
    if len(digits) == 10:
        return f"{country_code}{digits}"
    return phone_number


def _is_blank(value: Any) -> bool:
    return not value or (isinstance(value, str) and value.strip() == "")


def _birth_year(value: Any) -> int | None:
    if isinstance(value, date):
        return value.year
    try:
        return date.fromisoformat(str(value)[:10]).year
    except ValueError:
        return None


def validate_profile_data(
    profile: Mapping[str, Any],
    *,
    partial: bool = False,
    today: date | None = None,
) -> ProfileValidation:
    """
    Check a profile form.

    - required: full name, gender, date of birth, email, city, state
      (blank or whitespace-only counts as missing; skipped when ``partial``)
    - email must look like an address
    - pincode, when given, is exactly 6 digits
    - age is the calendar-year difference (this year minus birth year) and
      must be 18..100; birthdays later in the year are not considered
    """
    today = today or date.today()
    errors: dict[str, str] = {}

    if not partial:
        for field in REQUIRED_PROFILE_FIELDS:
            if _is_blank(profile.get(field)):
                errors[field] = f"{PROFILE_FIELD_LABELS[field]} is required"

    email = profile.get("email")
    if email and not validate_email(str(email)):
        errors["email"] = "Invalid email format"

    pincode = profile.get("pincode")
    if pincode and not re.fullmatch(r"\d{6}", str(pincode)):
        errors["pincode"] = "Pincode must be 6 digits"

    dob = profile.get("dob")
    if dob:
        birth_year = _birth_year(dob)
        if birth_year is None:
            errors["dob"] = "Date of birth must be a valid date"
        else:
            age = today.year - birth_year
            if age < MIN_AGE or age > MAX_AGE:
                errors["dob"] = f"Age must be between {MIN_AGE} and {MAX_AGE} years"

    return ProfileValidation(is_valid=not errors, errors=errors)


class AuthSession:
    """
    One user's sign-in session.

    Construct it explicitly with an identity provider and a profile
    repository; call ``close`` when done to release the identity listener and
    the reCAPTCHA verifier.
    """

    def __init__(
        self,
        provider: IdentityProvider,
        profiles: ProfileRepository,
        *,
        country_code: str = DEFAULT_COUNTRY_CODE,
        recaptcha_container_id: str = "recaptcha-container",
        token_provider: TokenProvider | None = None,
    ):
        self._provider = provider
        self._profiles = profiles
        self._country_code = country_code
        self._recaptcha_container_id = recaptcha_container_id
        self._token_provider = token_provider

        self.recaptcha_verifier: RecaptchaVerifier | None = None
        self.pending_confirmation: ConfirmationResult | None = None
        self.current_user: Identity | None = None
        self._unsubscribe_identity = provider.on_identity_change(self._handle_identity_change)

    @property
    def state(self) -> AuthState:
        if self.current_user is not None:
            return AuthState.VERIFIED
        if self.pending_confirmation is not None:
            return AuthState.CHALLENGE_ISSUED
        return AuthState.IDLE

    def _handle_identity_change(self, identity: Identity | None) -> None:
        self.current_user = identity

    def on_identity_change(self, callback: IdentityListener) -> Callable[[], None]:
        """Be told about sign-in and sign-out. Returns an unsubscribe callable."""
        return self._provider.on_identity_change(callback)

    # =========================================================================
    # PHONE VERIFICATION
    # =========================================================================

    def initialize_recaptcha(
        self,
        container_id: str | None = None,
        token_provider: TokenProvider | None = None,
    ) -> RecaptchaVerifier:
        """Return the session's verifier, creating an invisible one if there is none."""
        if self.recaptcha_verifier is None:
            self.recaptcha_verifier = RecaptchaVerifier(
                container_id or self._recaptcha_container_id,
                size="invisible",
                token_provider=token_provider or self._token_provider,
                on_expired=self._discard_recaptcha,
            )
        return self.recaptcha_verifier

    def _discard_recaptcha(self) -> None:
        if self.recaptcha_verifier is not None:
            self.recaptcha_verifier.clear()
            self.recaptcha_verifier = None

    async def send_otp(self, phone_number: str) -> OTPSendResult:
        """Send a verification code by SMS; the result carries the confirmation handle."""
        formatted_phone = format_phone_number(phone_number, self._country_code)
        verifier = self.initialize_recaptcha()

        try:
            confirmation = await self._provider.issue_challenge(formatted_phone, verifier)
        except Exception as e:
            code = _auth_error_code(e)
            logger.warning("Error sending OTP to %s: %s", formatted_phone, code, exc_info=not isinstance(e, ProviderError))
            self._discard_recaptcha()
            self.pending_confirmation = None
            return OTPSendResult(success=False, error=get_phone_auth_error_message(code), code=code)

        self.pending_confirmation = confirmation
        return OTPSendResult(success=True, confirmation=confirmation, message="OTP sent successfully")

    async def verify_otp(self, confirmation: ConfirmationResult, code: str) -> OTPVerifyResult:
        """Submit the code for a confirmation handle."""
        try:
            identity = await self._provider.confirm(confirmation, code)
        except Exception as e:
            code = _auth_error_code(e)
            logger.warning("Error verifying OTP: %s", code, exc_info=not isinstance(e, ProviderError))
            return OTPVerifyResult(success=False, error=get_phone_auth_error_message(code), code=code)

        self.current_user = identity
        self.pending_confirmation = None
        return OTPVerifyResult(success=True, user=identity, message="OTP verified successfully")

    async def sign_out(self) -> AuthResult:
        try:
            await self._provider.sign_out()
        except ProviderError as e:
            logger.error("Error signing out: %s", e)
            return AuthResult(success=False, error=e.message, code=e.code)

        self.current_user = None
        self.pending_confirmation = None
        self._discard_recaptcha()
        return AuthResult(success=True, message="Signed out successfully")

    def close(self) -> None:
        """Release the identity listener and the verifier."""
        self._unsubscribe_identity()
        self._discard_recaptcha()

    # =========================================================================
    # PROFILE
    # =========================================================================

    async def check_user_exists(self, uid: str) -> ProfileExistence:
        try:
            profile = await self._profiles.get(uid)
        except Exception as e:
            logger.error("Error checking user existence for %s: %s", uid, e)
            return ProfileExistence(exists=False, user_data=None, error=str(e))
        return ProfileExistence(exists=profile is not None, user_data=profile)

    async def save_user_profile(self, uid: str, profile: ProfileCreate) -> ProfileResult:
        try:
            saved = await self._profiles.save(uid, profile)
        except Exception as e:
            logger.error("Error saving user profile %s: %s", uid, e)
            return ProfileResult(success=False, error=str(e), code=getattr(e, "code", None))
        return ProfileResult(success=True, message="Profile saved successfully", user_data=saved)

    async def update_user_profile(self, uid: str, changes: ProfileUpdate) -> ProfileUpdateResult:
        try:
            updated = await self._profiles.update(uid, changes)
        except Exception as e:
            logger.error("Error updating user profile %s: %s", uid, e)
            return ProfileUpdateResult(success=False, error=str(e), code=getattr(e, "code", None))
        return ProfileUpdateResult(success=True, message="Profile updated successfully", updated_data=updated)

    async def get_user_profile(self, uid: str) -> ProfileResult:
        try:
            profile = await self._profiles.get(uid)
        except Exception as e:
            logger.error("Error getting user profile %s: %s", uid, e)
            return ProfileResult(success=False, error=str(e), code=getattr(e, "code", None))
        if profile is None:
            return ProfileResult(success=False, error="User profile not found", code="not-found")
        return ProfileResult(success=True, user_data=profile)

    def validate_profile_data(self, profile: Mapping[str, Any], *, partial: bool = False) -> ProfileValidation:
        return validate_profile_data(profile, partial=partial)
