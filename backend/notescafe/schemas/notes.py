"""Note and PDF schemas."""

from datetime import datetime

from pydantic import ConfigDict

from notescafe.schemas.base import BaseSchema

PDF_CONTENT_TYPE = "application/pdf"
PDF_STORAGE_BUCKET = "cloudinary"


class Note(BaseSchema):
    """A stored note. The field set is open; the document id is merged in on read."""

    model_config = ConfigDict(extra="allow")

    id: str


class PDFCustomMetadata(BaseSchema):
    uploaded_by: str | None = None
    cloudinary_id: str | None = None


class PDFDescriptor(BaseSchema):
    """
    Read-only description of one uploaded PDF.

    Not stored as such: built from a subject document and one of the documents
    in its ``pdfs`` sub-collection.
    """

    id: str
    name: str
    title: str
    url: str | None = None
    size: int | None = None
    created_at: datetime
    updated_at: datetime
    content_type: str = PDF_CONTENT_TYPE
    pages: int | None = None
    subject: str | None = None
    subject_id: str
    description: str
    full_path: str | None = None
    bucket: str = PDF_STORAGE_BUCKET
    custom_metadata: PDFCustomMetadata
