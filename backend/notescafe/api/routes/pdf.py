"""PDF library listing, aggregated across all subjects."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from notescafe.api.deps import Notes
from notescafe.config import sanitize_error
from notescafe.errors import log_error
from notescafe.schemas.notes import PDFDescriptor

router = APIRouter(tags=["pdf"])


@router.get("/pdf", response_model=list[PDFDescriptor])
async def list_pdfs(notes: Notes):
    """
    Every uploaded PDF, newest first.

    Public: the PDF library is the same for every student.
    """
    try:
        return await notes.list_all_pdfs()
    except Exception as e:
        log_error(e, "Error fetching PDFs")
        return JSONResponse(
            {"message": "Error fetching PDFs", "error": sanitize_error(e)},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


@router.api_route("/pdf", methods=["POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def pdf_method_not_allowed() -> JSONResponse:
    return JSONResponse(
        {"message": "Method not allowed"},
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        headers={"Allow": "GET"},
    )
