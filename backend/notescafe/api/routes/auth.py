"""
Authentication Routes

Endpoints:
- POST /auth/otp/send - Send an SMS code to a phone number
- POST /auth/otp/verify - Exchange the code for a session
- POST /auth/firebase - Exchange a Firebase ID token for a session
- POST /auth/logout - Clear session
- GET /auth/me - Current identity and profile

Phone OTP Flow:
1. Frontend renders the invisible reCAPTCHA widget and obtains its token
2. Frontend POSTs phone number + token to /auth/otp/send
3. Backend asks the Identity Toolkit to send the code, returns verificationId
4. Frontend POSTs verificationId + code to /auth/otp/verify
5. Backend confirms with the Identity Toolkit and returns a JWT
   (in cookie and response body) plus whether a profile exists yet

Clients that already signed in with the Firebase SDK can skip the OTP
round trip and post their ID token to /auth/firebase instead.
"""

from fastapi import APIRouter, HTTPException, Response, status
from fastapi.responses import JSONResponse
from google.auth import exceptions as google_auth_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token

from notescafe.api.deps import CurrentUser, Profiles, Session, create_access_token
from notescafe.config import get_settings
from notescafe.schemas.auth import (
    AuthResult,
    ConfirmationResult,
    FirebaseAuthRequest,
    MeResponse,
    OTPSendRequest,
    OTPSendResponse,
    OTPVerifyRequest,
    TokenResponse,
)

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()

# Failure codes that are not the caller's fault
_ERROR_STATUS = {
    "auth/too-many-requests": status.HTTP_429_TOO_MANY_REQUESTS,
    "auth/quota-exceeded": status.HTTP_429_TOO_MANY_REQUESTS,
    "auth/network-request-failed": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _failure_response(result: AuthResult) -> JSONResponse:
    return JSONResponse(
        {"error": result.error, "code": result.code},
        status_code=_ERROR_STATUS.get(result.code, status.HTTP_400_BAD_REQUEST),
    )


def _cookie_options() -> dict:
    # For cross-domain deployments (e.g., Vercel + Render), use samesite="none" + secure=True
    return {
        "httponly": True,
        "secure": settings.cookie_cross_domain or settings.environment != "development",
        "samesite": "none" if settings.cookie_cross_domain else "lax",
    }


def _start_session(response: Response, uid: str, phone_number: str | None, profile_exists: bool) -> TokenResponse:
    access_token = create_access_token(uid, phone_number)
    expires_in = settings.jwt_expire_minutes * 60

    response.set_cookie(key="access_token", value=access_token, max_age=expires_in, **_cookie_options())

    return TokenResponse(
        access_token=access_token,
        expires_in=expires_in,
        uid=uid,
        profile_exists=profile_exists,
    )


@router.post("/otp/send", response_model=OTPSendResponse)
async def send_otp(request: OTPSendRequest, session: Session):
    """
    Send a verification code by SMS.

    The phone number may be 10 bare digits (the default country code is
    prepended) or already in E.164 form.
    """
    session.initialize_recaptcha(token_provider=lambda: request.recaptcha_token)
    result = await session.send_otp(request.phone_number)
    if not result.success:
        return _failure_response(result)

    return OTPSendResponse(
        verification_id=result.confirmation.verification_id,
        message=result.message,
    )


@router.post("/otp/verify", response_model=TokenResponse)
async def verify_otp(request: OTPVerifyRequest, response: Response, session: Session):
    """
    Exchange the SMS code for a session JWT.

    ``profileExists`` tells the frontend whether to route to profile setup.
    """
    confirmation = ConfirmationResult(verification_id=request.verification_id)
    result = await session.verify_otp(confirmation, request.code)
    if not result.success:
        return _failure_response(result)

    existence = await session.check_user_exists(result.user.uid)
    return _start_session(response, result.user.uid, result.user.phone_number, existence.exists)


@router.post("/firebase", response_model=TokenResponse)
async def firebase_login(request: FirebaseAuthRequest, response: Response, session: Session) -> TokenResponse:
    """
    Exchange a Firebase ID token for a session JWT.

    The token is verified against Google's public keys; the audience must be
    the configured Firebase project.
    """
    try:
        claims = google_id_token.verify_firebase_token(
            request.id_token,
            google_requests.Request(),
            audience=settings.firebase_project_id or None,
        )
    except (ValueError, google_auth_exceptions.GoogleAuthError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid Firebase id_token: {e}",
        )

    uid = claims.get("user_id") or claims.get("sub")
    if not uid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Firebase id_token: missing subject",
        )

    existence = await session.check_user_exists(uid)
    return _start_session(response, uid, claims.get("phone_number"), existence.exists)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(response: Response) -> None:
    """
    Clear the authentication session.

    This only clears the cookie. A JWT the client stored elsewhere stays
    valid until it expires.
    """
    response.delete_cookie(key="access_token", **_cookie_options())


@router.get("/me", response_model=MeResponse)
async def get_me(current_user: CurrentUser, profiles: Profiles) -> MeResponse:
    """Current identity, with the stored profile when there is one."""
    profile = await profiles.get(current_user.uid)
    return MeResponse(uid=current_user.uid, phone_number=current_user.phone_number, profile=profile)
