"""Repositories over the document store."""

from notescafe.repositories.notes import NotesRepository
from notescafe.repositories.planner import PlannerRepository, TaskSubscription
from notescafe.repositories.profiles import ProfileRepository

__all__ = ["NotesRepository", "PlannerRepository", "ProfileRepository", "TaskSubscription"]
