"""Services for identity and sign-in."""

from notescafe.services.auth_session import AuthSession, AuthState, format_phone_number, validate_profile_data
from notescafe.services.identity import FirebaseIdentityProvider, IdentityProvider, RecaptchaVerifier

__all__ = [
    "AuthSession",
    "AuthState",
    "FirebaseIdentityProvider",
    "IdentityProvider",
    "RecaptchaVerifier",
    "format_phone_number",
    "validate_profile_data",
]
