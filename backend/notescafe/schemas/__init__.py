"""Pydantic schemas for API request/response validation and stored documents."""

from notescafe.schemas.auth import (
    AuthResult,
    ConfirmationResult,
    FirebaseAuthRequest,
    Identity,
    MeResponse,
    OTPSendRequest,
    OTPSendResponse,
    OTPSendResult,
    OTPVerifyRequest,
    OTPVerifyResult,
    ProfileExistence,
    ProfileResult,
    ProfileUpdateResult,
    SessionUser,
    TokenResponse,
)
from notescafe.schemas.notes import Note, PDFCustomMetadata, PDFDescriptor
from notescafe.schemas.profile import ProfileCreate, ProfileUpdate, ProfileValidation, UserProfile
from notescafe.schemas.tasks import ProductivityStats, Task, TaskCreate, TaskCreated, TaskUpdate

__all__ = [
    # Auth
    "AuthResult",
    "ConfirmationResult",
    "FirebaseAuthRequest",
    "Identity",
    "MeResponse",
    "OTPSendRequest",
    "OTPSendResponse",
    "OTPSendResult",
    "OTPVerifyRequest",
    "OTPVerifyResult",
    "ProfileExistence",
    "ProfileResult",
    "ProfileUpdateResult",
    "SessionUser",
    "TokenResponse",
    # Profile
    "ProfileCreate",
    "ProfileUpdate",
    "ProfileValidation",
    "UserProfile",
    # Notes
    "Note",
    "PDFCustomMetadata",
    "PDFDescriptor",
    # Tasks
    "ProductivityStats",
    "Task",
    "TaskCreate",
    "TaskCreated",
    "TaskUpdate",
]
