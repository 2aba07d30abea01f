"""
Identity provider for phone-number sign-in.

FirebaseIdentityProvider talks to the Firebase Identity Toolkit REST API:

1. accounts:sendVerificationCode   phone + reCAPTCHA token -> sessionInfo
2. accounts:signInWithPhoneNumber  sessionInfo + code      -> idToken, localId

The sessionInfo is handed back to the caller as a ConfirmationResult; the
caller presents it again with the code the user received by SMS.

Like the browser SDK, a provider instance tracks one signed-in identity and
notifies listeners when it changes. Create one per auth session; the HTTP
client underneath is shared.
"""

import inspect
import itertools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

import httpx

from notescafe.errors import AuthProviderError
from notescafe.schemas.auth import ConfirmationResult, Identity

logger = logging.getLogger(__name__)

IdentityListener = Callable[[Identity | None], None]
TokenProvider = Callable[[], Awaitable[str | None] | str | None]

# Identity Toolkit error strings -> auth error codes
IDENTITY_TOOLKIT_ERROR_CODES: dict[str, str] = {
    "INVALID_PHONE_NUMBER": "auth/invalid-phone-number",
    "MISSING_PHONE_NUMBER": "auth/missing-phone-number",
    "QUOTA_EXCEEDED": "auth/quota-exceeded",
    "CAPTCHA_CHECK_FAILED": "auth/captcha-check-failed",
    "MISSING_RECAPTCHA_TOKEN": "auth/captcha-check-failed",
    "INVALID_RECAPTCHA_TOKEN": "auth/captcha-check-failed",
    "INVALID_APP_CREDENTIAL": "auth/invalid-app-credential",
    "MISSING_APP_CREDENTIAL": "auth/invalid-app-credential",
    "INVALID_CODE": "auth/invalid-verification-code",
    "MISSING_CODE": "auth/missing-verification-code",
    "INVALID_SESSION_INFO": "auth/invalid-verification-id",
    "MISSING_SESSION_INFO": "auth/missing-verification-id",
    "SESSION_EXPIRED": "auth/code-expired",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "auth/too-many-requests",
    "OPERATION_NOT_ALLOWED": "auth/operation-not-allowed",
    "UNAUTHORIZED_DOMAIN": "auth/app-not-authorized",
    "USER_DISABLED": "auth/user-disabled",
}


class RecaptchaVerifier:
    """
    One-time human-verification handle required before an OTP is sent.

    The widget itself lives in the page at ``container_id``; the presentation
    layer hands over the token it produced through ``token_provider``. A
    cleared verifier cannot be used again.
    """

    def __init__(
        self,
        container_id: str,
        *,
        size: str = "invisible",
        token_provider: TokenProvider | None = None,
        on_expired: Callable[[], None] | None = None,
    ):
        self.container_id = container_id
        self.size = size
        self._token_provider = token_provider
        self._on_expired = on_expired
        self._cleared = False

    @property
    def cleared(self) -> bool:
        return self._cleared

    async def verify(self) -> str:
        """Resolve the challenge and return its token."""
        if self._cleared:
            raise AuthProviderError("auth/internal-error", "reCAPTCHA verifier has already been cleared")
        if self._token_provider is None:
            raise AuthProviderError("auth/captcha-check-failed", "No reCAPTCHA token provider")

        try:
            token = self._token_provider()
            if inspect.isawaitable(token):
                token = await token
        except AuthProviderError:
            raise
        except Exception as e:
            raise AuthProviderError("auth/captcha-check-failed", f"reCAPTCHA token provider failed: {e}") from e
        if not token:
            raise AuthProviderError("auth/captcha-check-failed", "reCAPTCHA returned no token")
        return token

    def expire(self) -> None:
        """The widget's token went stale."""
        if self._on_expired is not None:
            self._on_expired()

    def clear(self) -> None:
        self._cleared = True


class IdentityProvider(Protocol):
    current_user: Identity | None

    async def issue_challenge(self, phone_number: str, verifier: RecaptchaVerifier) -> ConfirmationResult: ...

    async def confirm(self, confirmation: ConfirmationResult, code: str) -> Identity: ...

    async def sign_out(self) -> None: ...

    def on_identity_change(self, callback: IdentityListener) -> Callable[[], None]: ...


class FirebaseIdentityProvider:
    """Identity provider backed by the Firebase Identity Toolkit REST API."""

    def __init__(self, api_key: str, client: httpx.AsyncClient, base_url: str):
        self._api_key = api_key
        self._client = client
        self._base_url = base_url.rstrip("/")
        self.current_user: Identity | None = None
        self._listeners: dict[int, IdentityListener] = {}
        self._listener_ids = itertools.count()

    async def issue_challenge(self, phone_number: str, verifier: RecaptchaVerifier) -> ConfirmationResult:
        """Dispatch an SMS code to ``phone_number`` (E.164)."""
        recaptcha_token = await verifier.verify()
        data = await self._post(
            "sendVerificationCode",
            {"phoneNumber": phone_number, "recaptchaToken": recaptcha_token},
        )
        if not data.get("sessionInfo"):
            raise AuthProviderError("auth/internal-error", "sendVerificationCode response has no sessionInfo")
        return ConfirmationResult(verification_id=data["sessionInfo"], phone_number=phone_number)

    async def confirm(self, confirmation: ConfirmationResult, code: str) -> Identity:
        """Exchange the SMS code for a signed-in identity."""
        data = await self._post(
            "signInWithPhoneNumber",
            {"sessionInfo": confirmation.verification_id, "code": code},
        )
        try:
            identity = Identity(
                uid=data["localId"],
                phone_number=data.get("phoneNumber", confirmation.phone_number),
                id_token=data.get("idToken"),
                refresh_token=data.get("refreshToken"),
                expires_in=int(data["expiresIn"]) if data.get("expiresIn") else None,
                is_new_user=bool(data.get("isNewUser", False)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise AuthProviderError("auth/internal-error", f"Malformed signInWithPhoneNumber response: {e}") from e
        self._set_current_user(identity)
        return identity

    async def sign_out(self) -> None:
        self._set_current_user(None)

    def on_identity_change(self, callback: IdentityListener) -> Callable[[], None]:
        """
        Register a listener for sign-in/sign-out.

        The listener is called right away with the current identity. Returns an
        unsubscribe callable; calling it more than once is harmless.
        """
        listener_id = next(self._listener_ids)
        self._listeners[listener_id] = callback
        callback(self.current_user)
        return lambda: self._listeners.pop(listener_id, None)

    def _set_current_user(self, identity: Identity | None) -> None:
        self.current_user = identity
        for listener in list(self._listeners.values()):
            listener(identity)

    async def _post(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.post(
                f"{self._base_url}/accounts:{method}",
                params={"key": self._api_key},
                json=payload,
            )
        except httpx.TransportError as e:
            raise AuthProviderError("auth/network-request-failed", str(e)) from e

        if response.is_error:
            code, detail = self._parse_error(response)
            logger.info("Identity Toolkit %s failed: %s (%s)", method, detail, code)
            raise AuthProviderError(code, detail)

        try:
            data = response.json()
        except ValueError as e:
            raise AuthProviderError("auth/internal-error", f"Identity Toolkit {method} returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise AuthProviderError("auth/internal-error", f"Identity Toolkit {method} returned an unexpected body")
        return data

    @staticmethod
    def _parse_error(response: httpx.Response) -> tuple[str, str]:
        try:
            message = response.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            return "auth/internal-error", f"HTTP {response.status_code}"

        # e.g. "TOO_MANY_ATTEMPTS_TRY_LATER : Try again later."
        server_code = message.split(":", 1)[0].strip()
        return IDENTITY_TOOLKIT_ERROR_CODES.get(server_code, "auth/internal-error"), message
