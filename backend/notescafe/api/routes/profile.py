"""
Profile routes for the signed-in student.

The profile form is checked with the same rules the frontend shows inline
(required fields, email, pincode, age) before the schema is applied, so a
bad submission comes back as ``{"errors": {field: message}}``.
"""

from typing import Any

from fastapi import APIRouter, Body, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pydantic.alias_generators import to_camel, to_snake

from notescafe.api.deps import CurrentUser, Session
from notescafe.errors import DataProviderError
from notescafe.schemas.auth import AuthResult, ProfileExistence, ProfileResult, ProfileUpdateResult
from notescafe.schemas.profile import ProfileCreate, ProfileUpdate, UserProfile
from notescafe.services.auth_session import AuthSession

router = APIRouter(prefix="/profile", tags=["profile"])


def _raise_for_result(result: AuthResult) -> None:
    if not result.success:
        raise DataProviderError(result.code or "unknown", result.error)


def _form_errors(session: AuthSession, payload: dict[str, Any], *, partial: bool) -> JSONResponse | None:
    validation = session.validate_profile_data({to_snake(k): v for k, v in payload.items()}, partial=partial)
    if validation.is_valid:
        return None
    errors = {to_camel(field): message for field, message in validation.errors.items()}
    return JSONResponse({"errors": errors}, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


@router.get("", response_model=UserProfile)
async def get_profile(current_user: CurrentUser, session: Session) -> UserProfile:
    result = await session.get_user_profile(current_user.uid)
    _raise_for_result(result)
    return result.user_data


@router.get("/exists", response_model=ProfileExistence)
async def profile_exists(current_user: CurrentUser, session: Session) -> ProfileExistence:
    """Whether the student has completed profile setup yet."""
    return await session.check_user_exists(current_user.uid)


@router.put("", response_model=ProfileResult)
async def save_profile(
    current_user: CurrentUser,
    session: Session,
    payload: dict[str, Any] = Body(...),
):
    """
    Save the full profile (profile setup).

    Stamps both timestamps and marks the profile complete.
    """
    errors = _form_errors(session, payload, partial=False)
    if errors is not None:
        return errors

    try:
        profile = ProfileCreate.model_validate(payload)
    except ValidationError as e:
        raise RequestValidationError(e.errors())

    result = await session.save_user_profile(current_user.uid, profile)
    _raise_for_result(result)
    return result


@router.patch("", response_model=ProfileUpdateResult)
async def update_profile(
    current_user: CurrentUser,
    session: Session,
    payload: dict[str, Any] = Body(...),
):
    """
    Update some profile fields.

    Only the fields sent are touched; unknown fields are rejected and the
    profile-complete flag cannot be changed here.
    """
    errors = _form_errors(session, payload, partial=True)
    if errors is not None:
        return errors

    try:
        changes = ProfileUpdate.model_validate(payload)
    except ValidationError as e:
        raise RequestValidationError(e.errors())

    result = await session.update_user_profile(current_user.uid, changes)
    _raise_for_result(result)
    return result
