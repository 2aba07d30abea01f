"""API routes package."""

from notescafe.api.routes import auth, health, notes, pdf, planner, profile

__all__ = ["auth", "health", "notes", "pdf", "planner", "profile"]
