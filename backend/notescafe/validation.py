"""Pure form validators shared by the profile, auth and upload flows."""

import re
from typing import Any

from pydantic import BaseModel

from notescafe.config import get_settings

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# At least 8 characters, 1 uppercase, 1 lowercase, 1 number
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)[a-zA-Z\d@$!%*?&]{8,}$")
INDIAN_MOBILE_PATTERN = re.compile(r"^[6-9]\d{9}$")


class FieldValidation(BaseModel):
    """Outcome of a single validator."""

    valid: bool
    error: str | None = None


def validate_email(email: str | None) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def validate_password(password: str | None) -> bool:
    return bool(password) and PASSWORD_PATTERN.match(password) is not None


def validate_phone_number(phone_number: str) -> bool:
    """A 10-digit Indian mobile number, separators allowed."""
    cleaned = re.sub(r"\D", "", phone_number)
    return INDIAN_MOBILE_PATTERN.match(cleaned) is not None


def validate_required(value: Any, field_name: str) -> FieldValidation:
    if not value or (isinstance(value, str) and value.strip() == ""):
        return FieldValidation(valid=False, error=f"{field_name} is required")
    return FieldValidation(valid=True)


def validate_min_length(value: str | None, min_length: int, field_name: str) -> FieldValidation:
    if value and len(value) < min_length:
        return FieldValidation(
            valid=False,
            error=f"{field_name} must be at least {min_length} characters",
        )
    return FieldValidation(valid=True)


def validate_file_upload(
    file: Any,
    max_size: int | None = None,
    allowed_types: tuple[str, ...] | list[str] | None = None,
) -> FieldValidation:
    """
    Check an uploaded file against size and type limits.

    ``file`` is anything exposing ``size`` and ``content_type`` (e.g. a
    Starlette ``UploadFile``). Limits default to the configured
    ``max_pdf_size_bytes`` and ``allowed_upload_types``.
    """
    if file is None:
        return FieldValidation(valid=False, error="No file selected")

    settings = get_settings()
    if max_size is None:
        max_size = settings.max_pdf_size_bytes
    if allowed_types is None:
        allowed_types = settings.allowed_upload_types

    size = getattr(file, "size", None) or 0
    if size > max_size:
        max_mb = max_size / (1024 * 1024)
        return FieldValidation(valid=False, error=f"File size must be less than {max_mb:g}MB")

    if getattr(file, "content_type", None) not in allowed_types:
        return FieldValidation(valid=False, error="Only PDF files are allowed")

    return FieldValidation(valid=True)
