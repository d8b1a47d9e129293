"""PDF routes - render a snapshot without creating a resume version"""

import asyncio
import base64

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from resume_builder.dependencies import get_pdf_service
from resume_builder.exceptions import ExternalServiceError
from resume_builder.middleware.auth import get_current_user
from resume_builder.models.user import User
from resume_builder.schemas.resume import ResumeSnapshot
from resume_builder.services.pdf_service import PDFService
from resume_builder.utils.logger import get_logger

router = APIRouter()
logger = get_logger()


async def _render(pdf_service: PDFService, snapshot: ResumeSnapshot) -> bytes:
    try:
        return await asyncio.to_thread(pdf_service.render, snapshot)
    except Exception as e:
        logger.error(f"[PDF] Render failed: {type(e).__name__}: {e}")
        raise ExternalServiceError("Failed to generate PDF") from e


@router.post("/generate")
async def generate_pdf(
    snapshot: ResumeSnapshot,
    current_user: User = Depends(get_current_user),
    pdf_service: PDFService = Depends(get_pdf_service),
):
    """Render and upload; the file is stored under the caller's id."""
    logical_id = f"exports/{current_user.id}/{snapshot.resume_id or 'draft'}"
    try:
        return await pdf_service.generate_and_upload(snapshot, logical_id)
    except Exception as e:
        logger.error(f"[PDF] Generate failed: {type(e).__name__}: {e}")
        raise ExternalServiceError("Failed to generate PDF") from e


@router.post("/download")
async def download_pdf(
    snapshot: ResumeSnapshot,
    current_user: User = Depends(get_current_user),
    pdf_service: PDFService = Depends(get_pdf_service),
):
    pdf_bytes = await _render(pdf_service, snapshot)
    file_name = f"resume_{snapshot.resume_id or 'draft'}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


@router.post("/base64")
async def pdf_base64(
    snapshot: ResumeSnapshot,
    current_user: User = Depends(get_current_user),
    pdf_service: PDFService = Depends(get_pdf_service),
):
    pdf_bytes = await _render(pdf_service, snapshot)
    return {
        "pdfBase64": base64.b64encode(pdf_bytes).decode("ascii"),
        "fileSize": len(pdf_bytes),
    }
