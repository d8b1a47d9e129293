"""Resume lifecycle routes: CRUD, versioned PDF generation and public sharing"""

from fastapi import APIRouter, Depends, Query

from resume_builder.dependencies import get_resume_service
from resume_builder.middleware.auth import get_current_user
from resume_builder.models.user import User
from resume_builder.schemas.resume import ResumeCreate, ResumeUpdate, VersionShareUpdate
from resume_builder.services.resume_service import ResumeService, MAX_PAGE_SIZE

router = APIRouter()


def _with_versions(resume) -> dict:
    return {
        **resume.to_detail_dict(),
        "versions": [v.to_dict() for v in resume.versions],
    }


@router.post("", status_code=201)
async def create_resume(
    body: ResumeCreate,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
):
    resume = await service.create_resume(
        current_user.id,
        body.title,
        template=body.template,
        is_active=body.is_active,
        description=body.description,
    )
    return {"success": True, "resume": _with_versions(resume)}


@router.get("")
async def list_resumes(
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
):
    resumes = await service.list_resumes(current_user.id)
    return {"resumes": [r.to_dict() for r in resumes]}


@router.get("/paginated")
async def list_resumes_paginated(
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
):
    result = await service.list_resumes_page(current_user.id, page, size)
    return result.to_dict()


@router.get("/search")
async def search_resumes(
    title: str = Query("", max_length=255),
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
):
    resumes = await service.search_by_title(current_user.id, title)
    return {"resumes": [r.to_dict() for r in resumes]}


@router.get("/statistics")
async def resume_statistics(
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
):
    return await service.statistics(current_user.id)


@router.get("/public/{share_url:path}")
async def get_public_resume(
    share_url: str,
    service: ResumeService = Depends(get_resume_service),
):
    """Read-only view of a shared resume. No authentication."""
    resume = await service.get_public_resume(share_url)
    return {"resume": resume.to_detail_dict()}


@router.get("/{resume_id}")
async def get_resume(
    resume_id: str,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
):
    resume = await service.get_resume(resume_id, current_user.id)
    return {"resume": _with_versions(resume)}


@router.put("/{resume_id}")
async def update_resume(
    resume_id: str,
    body: ResumeUpdate,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
):
    resume = await service.update_resume(
        resume_id,
        current_user.id,
        title=body.title,
        is_active=body.is_active,
        template=body.template,
        description=body.description,
    )
    return {"success": True, "resume": resume.to_dict()}


@router.delete("/{resume_id}")
async def delete_resume(
    resume_id: str,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
):
    await service.delete_resume(resume_id, current_user.id)
    return {"success": True, "message": "Resume deleted"}


# ========== Versions ==========

@router.post("/{resume_id}/generate-pdf")
async def generate_pdf(
    resume_id: str,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
):
    version = await service.generate_version(resume_id, current_user.id)
    return {
        "pdfUrl": version.pdf_url,
        "publicShareUrl": version.public_share_url,
        "versionNumber": version.version_number,
    }


@router.get("/{resume_id}/versions")
async def list_versions(
    resume_id: str,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
):
    versions = await service.list_versions(resume_id, current_user.id)
    return {"versions": [v.to_dict() for v in versions]}


@router.put("/{resume_id}/versions/{version_id}/share")
async def set_version_sharing(
    resume_id: str,
    version_id: str,
    body: VersionShareUpdate,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
):
    version = await service.set_version_active(resume_id, version_id, current_user.id, body.is_active)
    return {"success": True, "version": version.to_dict()}


@router.delete("/{resume_id}/versions/{version_id}")
async def delete_version(
    resume_id: str,
    version_id: str,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
):
    await service.delete_version(resume_id, version_id, current_user.id)
    return {"success": True, "message": "Version deleted"}
