"""
Provider error types and user-safe message tables.

Two taxonomies are kept side by side:
- auth errors (identity provider, ``auth/...`` codes)
- API/data errors (document store codes like ``not-found``)

Provider failures are raised as ProviderError subclasses at the provider-call
boundary and translated here into sentences that are safe to show a student.
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Any

from notescafe.config import get_settings

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Failure reported by an external provider, tagged with a stable code."""

    def __init__(self, code: str, message: str | None = None):
        self.code = code
        self.message = message or code
        super().__init__(self.message)


class AuthProviderError(ProviderError):
    """Identity provider failure (``auth/...`` codes)."""


class DataProviderError(ProviderError):
    """Document store failure (``not-found``, ``permission-denied``, ...)."""


# =============================================================================
# MESSAGE TABLES
# =============================================================================

# Phone OTP flow
PHONE_AUTH_ERROR_MESSAGES: dict[str, str] = {
    "auth/invalid-phone-number": "Invalid phone number format",
    "auth/too-many-requests": "Too many attempts. Please try again later",
    "auth/invalid-verification-code": "Invalid OTP code",
    "auth/code-expired": "OTP has expired. Please request a new one",
    "auth/missing-phone-number": "Phone number is required",
    "auth/quota-exceeded": "SMS quota exceeded. Please try again tomorrow",
    "auth/captcha-check-failed": "reCAPTCHA verification failed",
    "auth/invalid-app-credential": "Invalid app credential",
    "auth/app-not-authorized": "App not authorized for Firebase Authentication",
    "auth/network-request-failed": "Network error. Please check your connection",
    "auth/web-storage-unsupported": "Web storage is not supported",
    "auth/operation-not-allowed": "Phone authentication is not enabled",
}
PHONE_AUTH_FALLBACK_MESSAGE = "An unexpected error occurred"

# Email/password sign-in
AUTH_ERROR_MESSAGES: dict[str, str] = {
    "auth/user-not-found": "No account found with this email address.",
    "auth/wrong-password": "Incorrect password.",
    "auth/email-already-in-use": "An account with this email already exists.",
    "auth/weak-password": "Password should be at least 6 characters.",
    "auth/invalid-email": "Please enter a valid email address.",
    "auth/user-disabled": "This account has been disabled.",
    "auth/too-many-requests": "Too many failed attempts. Please try again later.",
}
AUTH_FALLBACK_MESSAGE = "Authentication failed. Please try again."

API_ERROR_MESSAGES: dict[str, str] = {
    "permission-denied": "You do not have permission to perform this action.",
    "unavailable": "Service temporarily unavailable. Please try again later.",
    "not-found": "The requested resource was not found.",
    "already-exists": "This item already exists.",
    "failed-precondition": "Operation cannot be completed at this time.",
}
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."
API_FALLBACK_MESSAGE = "An unexpected error occurred. Please try again."


def get_phone_auth_error_message(code: str | None) -> str:
    """Translate a phone-auth error code; unknown codes get the generic message."""
    if code is None:
        return PHONE_AUTH_FALLBACK_MESSAGE
    return PHONE_AUTH_ERROR_MESSAGES.get(code, PHONE_AUTH_FALLBACK_MESSAGE)


def handle_auth_error(error: Exception) -> str:
    """Translate an email/password sign-in failure into a user-safe message."""
    code = getattr(error, "code", None)
    return AUTH_ERROR_MESSAGES.get(code, AUTH_FALLBACK_MESSAGE)


def handle_api_error(error: Exception, context: str = "") -> str:
    """
    Log an API/data failure and return a message safe to show the user.

    Internal details never reach the user: known provider codes map to fixed
    sentences, network-shaped failures to a connectivity hint, anything else to
    a generic fallback.
    """
    log_error(error, context)

    code = getattr(error, "code", None)
    if code in API_ERROR_MESSAGES:
        return API_ERROR_MESSAGES[code]

    text = str(error).lower()
    if "network" in text or "fetch" in text:
        return NETWORK_ERROR_MESSAGE

    return API_FALLBACK_MESSAGE


def log_error(error: Exception, context: str, user_id: str | None = None) -> None:
    """
    Diagnostic side channel for failures.

    Development logs the full record with traceback. Other environments log a
    redacted record (message, context, timestamp) only.
    """
    settings = get_settings()
    timestamp = datetime.now(timezone.utc).isoformat()

    if settings.environment == "development":
        error_data: dict[str, Any] = {
            "message": str(error),
            "code": getattr(error, "code", None),
            "context": context,
            "user_id": user_id,
            "timestamp": timestamp,
            "stack": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
        }
        logger.error("Logged error: %s", error_data)
    else:
        logger.error(
            "Production error logged: %s",
            {"message": str(error), "context": context, "timestamp": timestamp},
        )
