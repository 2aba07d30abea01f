"""Notes routes."""

from fastapi import APIRouter

from notescafe.api.deps import CurrentUser, Notes
from notescafe.schemas.notes import Note

router = APIRouter(prefix="/notes", tags=["notes"])


@router.get("", response_model=list[Note])
async def search_notes(current_user: CurrentUser, notes: Notes, q: str | None = None) -> list[Note]:
    """
    List the current user's active notes.

    q: case-insensitive search in title, content and tags
    """
    return await notes.search_notes(current_user.uid, q or "")


@router.get("/{note_id}", response_model=Note)
async def get_note(note_id: str, current_user: CurrentUser, notes: Notes) -> Note:
    """Get a single note. Unknown ids are a 404."""
    return await notes.get_note(note_id)
