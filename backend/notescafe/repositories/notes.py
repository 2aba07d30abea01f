"""
Notes and PDF library.

Notes live at ``notes/{note_id}``. PDFs are grouped by subject:
``subjects/{subject_id}`` holds the subject name and
``subjects/{subject_id}/pdfs/{pdf_id}`` one uploaded file each.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any

from notescafe.db.store import DocumentSnapshot, DocumentStore
from notescafe.errors import DataProviderError
from notescafe.schemas.notes import PDFCustomMetadata, PDFDescriptor, Note

logger = logging.getLogger(__name__)

NOTES_COLLECTION = "notes"
SUBJECTS_COLLECTION = "subjects"
PDFS_SUBCOLLECTION = "pdfs"


# =============================================================================
# PDF DESCRIPTOR HELPERS
# =============================================================================


def humanize_filename(filename: str) -> str:
    """``indian-polity_notes.pdf`` -> ``indian polity notes``."""
    stem = re.sub(r"\.pdf$", "", filename, flags=re.IGNORECASE)
    return re.sub(r"[-_]", " ", stem)


def format_pdf_title(filename: str) -> str:
    """``indian-polity_notes.pdf`` -> ``Indian Polity Notes``."""
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), humanize_filename(filename))


def coerce_timestamp(value: Any) -> datetime:
    """
    Normalize a stored upload time to an aware datetime.

    Accepts Firestore timestamps (datetime subclasses), ISO-8601 strings and
    epoch milliseconds. Naive values are taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    else:
        raise ValueError(f"Unsupported timestamp value: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_pdf_descriptor(subject: DocumentSnapshot, pdf: DocumentSnapshot) -> PDFDescriptor:
    """Join a subject document with one of its PDF documents."""
    subject_data = subject.to_dict()
    pdf_data = pdf.to_dict()

    name = pdf_data["name"]
    uploaded_at = coerce_timestamp(pdf_data.get("uploadedAt"))

    return PDFDescriptor(
        id=pdf.id,
        name=name,
        title=format_pdf_title(name),
        url=pdf_data.get("url"),
        size=pdf_data.get("size"),
        created_at=uploaded_at,
        updated_at=uploaded_at,
        subject=subject_data.get("name"),
        subject_id=subject.id,
        description=f"PDF document: {humanize_filename(name)}",
        full_path=pdf_data.get("url"),
        custom_metadata=PDFCustomMetadata(
            uploaded_by=pdf_data.get("uploadedBy"),
            cloudinary_id=pdf_data.get("cloudinaryId"),
        ),
    )


# =============================================================================
# REPOSITORY
# =============================================================================


class NotesRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def get_note(self, note_id: str) -> Note:
        """Fetch one note. Raises DataProviderError("not-found") when absent."""
        snapshot = await self.store.get(f"{NOTES_COLLECTION}/{note_id}")
        if not snapshot.exists:
            raise DataProviderError("not-found", "Note not found")
        return Note.model_validate({**snapshot.to_dict(), "id": snapshot.id})

    async def search_notes(self, user_id: str, term: str = "") -> list[Note]:
        """
        Active notes of one user whose title, content or tags contain ``term``.

        Matching is case-insensitive and happens after the read; an empty term
        returns every active note.
        """
        snapshots = await self.store.query(
            NOTES_COLLECTION,
            filters=[("userId", "==", user_id), ("isActive", "==", True)],
        )
        needle = term.strip().lower()
        notes = []
        for snapshot in snapshots:
            data = snapshot.to_dict()
            if needle and not self._note_matches(data, needle):
                continue
            notes.append(Note.model_validate({**data, "id": snapshot.id}))
        return notes

    @staticmethod
    def _note_matches(data: dict[str, Any], needle: str) -> bool:
        title = str(data.get("title") or "").lower()
        content = str(data.get("content") or "").lower()
        tags = [str(tag).lower() for tag in data.get("tags") or []]
        return needle in title or needle in content or any(needle in tag for tag in tags)

    async def list_all_pdfs(self) -> list[PDFDescriptor]:
        """
        Every PDF of every subject, newest upload first.

        Subjects are read one after another; within a subject PDFs come back
        ordered by ``uploadedAt`` descending and the combined list is re-sorted
        by creation time. A PDF document that cannot be turned into a
        descriptor is logged and skipped.
        """
        subjects = await self.store.query(SUBJECTS_COLLECTION)

        all_pdfs: list[PDFDescriptor] = []
        for subject in subjects:
            pdfs = await self.store.query(
                f"{SUBJECTS_COLLECTION}/{subject.id}/{PDFS_SUBCOLLECTION}",
                order_by="uploadedAt",
                descending=True,
            )
            for pdf in pdfs:
                try:
                    all_pdfs.append(build_pdf_descriptor(subject, pdf))
                except Exception as e:
                    logger.warning("Skipping PDF %s in subject %s: %s", pdf.id, subject.id, e)

        all_pdfs.sort(key=lambda descriptor: descriptor.created_at, reverse=True)
        return all_pdfs
