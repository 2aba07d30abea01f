"""
FastAPI Dependencies for Authentication and Data Access.

Key patterns:
1. get_current_user: Extracts and validates the session JWT, returns a SessionUser
2. User-scoped data: every repository call takes the uid explicitly
3. No global "current user" state - auth sessions are built per request and closed after

The document store and the HTTP client are created once in the app lifespan
and live on ``app.state``; tests swap them through ``dependency_overrides``.
"""

from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from typing import Annotated

import httpx
from fastapi import Cookie, Depends, Header, HTTPException, Request, status
from jose import JWTError, jwt

from notescafe.config import Settings, get_settings
from notescafe.db.store import DocumentStore
from notescafe.repositories import NotesRepository, PlannerRepository, ProfileRepository
from notescafe.schemas.auth import SessionUser
from notescafe.services.auth_session import AuthSession
from notescafe.services.identity import FirebaseIdentityProvider

settings = get_settings()


# =============================================================================
# JWT UTILITIES
# =============================================================================


def create_access_token(uid: str, phone_number: str | None = None) -> str:
    """
    Create a session JWT for a verified identity.

    Token payload contains:
    - sub: identity id (standard JWT subject claim)
    - phone: verified phone number, when known
    - exp: expiration timestamp
    """
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    payload = {"sub": uid, "exp": expire}
    if phone_number:
        payload["phone"] = phone_number
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> SessionUser | None:
    """
    Decode and validate a session JWT.

    Returns the session user if valid, None if invalid/expired.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    uid = payload.get("sub")
    if not uid:
        return None
    return SessionUser(uid=uid, phone_number=payload.get("phone"))


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


async def get_token_from_request(
    authorization: Annotated[str | None, Header()] = None,
    access_token: Annotated[str | None, Cookie()] = None,
) -> str:
    """
    Extract the session JWT from the request.

    Supports two methods (in order of preference):
    1. HttpOnly cookie named 'access_token'
    2. Authorization header: 'Bearer <token>'
    """
    if access_token:
        return access_token

    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(token: Annotated[str, Depends(get_token_from_request)]) -> SessionUser:
    """
    Validate the session JWT and return the signed-in user.

    Raises 401 if the token is missing, invalid, or expired. The user may not
    have a profile yet (profile setup happens after the first sign-in).
    """
    user = decode_access_token(token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


# =============================================================================
# DATA ACCESS DEPENDENCIES
# =============================================================================


def get_document_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_identity_provider(
    client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
    app_settings: Annotated[Settings, Depends(get_settings)],
) -> FirebaseIdentityProvider:
    """A fresh provider per request; only the HTTP client is shared."""
    return FirebaseIdentityProvider(
        api_key=app_settings.firebase_api_key,
        client=client,
        base_url=app_settings.identity_toolkit_url,
    )


def get_profile_repository(store: Annotated[DocumentStore, Depends(get_document_store)]) -> ProfileRepository:
    return ProfileRepository(store)


def get_notes_repository(store: Annotated[DocumentStore, Depends(get_document_store)]) -> NotesRepository:
    return NotesRepository(store)


def get_planner_repository(store: Annotated[DocumentStore, Depends(get_document_store)]) -> PlannerRepository:
    return PlannerRepository(store)


def get_auth_session(
    provider: Annotated[FirebaseIdentityProvider, Depends(get_identity_provider)],
    profiles: Annotated[ProfileRepository, Depends(get_profile_repository)],
    app_settings: Annotated[Settings, Depends(get_settings)],
) -> Iterator[AuthSession]:
    """Auth session for the duration of one request."""
    session = AuthSession(
        provider,
        profiles,
        country_code=app_settings.phone_country_code,
        recaptcha_container_id=app_settings.recaptcha_container_id,
    )
    try:
        yield session
    finally:
        session.close()


# Type aliases for dependency injection
CurrentUser = Annotated[SessionUser, Depends(get_current_user)]
Session = Annotated[AuthSession, Depends(get_auth_session)]
Profiles = Annotated[ProfileRepository, Depends(get_profile_repository)]
Notes = Annotated[NotesRepository, Depends(get_notes_repository)]
Planner = Annotated[PlannerRepository, Depends(get_planner_repository)]
