"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Notes Cafe"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # Logging
    # If log_level_override is set it takes precedence over the per-environment default
    log_level_override: str | None = None

    @computed_field
    @property
    def log_level(self) -> str:
        """Verbose logging in development, errors only everywhere else."""
        if self.log_level_override:
            return self.log_level_override.upper()
        return "DEBUG" if self.environment == "development" else "ERROR"

    # Firebase
    firebase_api_key: str  # Required - Web API key of the Firebase project
    firebase_project_id: str = ""
    firebase_credentials_file: str | None = None  # Service account JSON; ambient credentials otherwise
    identity_toolkit_url: str = "https://identitytoolkit.googleapis.com/v1"
    phone_country_code: str = "+91"
    recaptcha_container_id: str = "recaptcha-container"

    # Document store
    # "memory" keeps everything in-process (local development and tests)
    document_store_backend: Literal["firestore", "memory"] = "firestore"

    # Auth / JWT
    jwt_secret_key: str  # Required - no default, must be set in .env
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7  # 7 days

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Cookies
    # Set to true when frontend and backend are on different domains
    cookie_cross_domain: bool = False

    # Uploads
    max_pdf_size_bytes: int = 10 * 1024 * 1024  # 10MB
    allowed_upload_types: list[str] = ["application/pdf"]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def sanitize_error(error: Exception, *, generic_message: str = "An internal error occurred.") -> str:
    """
    Return a user-safe error message.

    In development, returns the full exception string for debugging.
    In staging/production, returns a generic message to avoid leaking internals.
    """
    settings = get_settings()
    if settings.environment == "development":
        return str(error)
    return generic_message
