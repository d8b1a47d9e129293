"""
Resume lifecycle: creation, ownership checks, versioned PDF generation,
public share resolution and deletion with artifact release.
"""

import asyncio
import math
import weakref
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from resume_builder.config import get_settings
from resume_builder.exceptions import (
    ExternalServiceError,
    NotFoundError,
    UnauthorizedError,
    ValidationFailure,
)
from resume_builder.models import Resume, ResumeVersion
from resume_builder.schemas.resume import (
    PersonalInfoData,
    ResumeSnapshot,
    SkillData,
    SnapshotEducation,
    SnapshotWorkExperience,
)
from resume_builder.services.resume_repository import ResumeRepository
from resume_builder.utils.logger import get_logger

logger = get_logger("resume")

INITIAL_VERSION_TITLE = "Initial Version"
MAX_PAGE_SIZE = 100


def artifact_id(version_id: str) -> str:
    """Logical storage id for a version's PDF."""
    return f"resumes/{version_id}"


class VersionLockRegistry:
    """One asyncio.Lock per resume id, dropped once nobody holds a reference."""

    def __init__(self):
        self._locks = weakref.WeakValueDictionary()

    def lock_for(self, resume_id: str) -> asyncio.Lock:
        lock = self._locks.get(resume_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[resume_id] = lock
        return lock


version_locks = VersionLockRegistry()


@dataclass
class Page:
    items: List[Resume]
    total: int
    page: int
    size: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.size) if self.size else 0

    def to_dict(self):
        return {
            "items": [r.to_dict() for r in self.items],
            "total": self.total,
            "page": self.page,
            "size": self.size,
            "pages": self.pages,
        }


def snapshot_from_resume(resume: Resume) -> ResumeSnapshot:
    """Detach the renderable content of a resume whose sections are loaded."""
    info = resume.personal_info
    personal_info = None
    if info is not None:
        personal_info = PersonalInfoData(
            full_name=info.full_name,
            email=info.email,
            phone=info.phone,
            location=info.location,
            website=info.website,
            linkedin=info.linkedin,
            github=info.github,
            summary=info.summary,
        )

    return ResumeSnapshot(
        resume_id=resume.id,
        template=resume.template,
        personal_info=personal_info,
        work_experience=[
            SnapshotWorkExperience(
                job_title=w.job_title,
                company=w.company,
                location=w.location,
                start_month=w.start_month,
                start_year=w.start_year,
                end_month=w.end_month,
                end_year=w.end_year,
                is_present=bool(w.is_present),
                description=w.description,
                achievements=list(w.achievements or []),
                order=w.display_order or 0,
            )
            for w in resume.work_experience
        ],
        education=[
            SnapshotEducation(
                institution=e.institution,
                degree=e.degree,
                field_of_study=e.field_of_study,
                start_month=e.start_month,
                start_year=e.start_year,
                end_month=e.end_month,
                end_year=e.end_year,
                is_present=bool(e.is_present),
                gpa=str(e.gpa) if e.gpa is not None else None,
                achievements=list(e.achievements or []),
                order=e.display_order or 0,
            )
            for e in resume.education
        ],
        skills=[SkillData(name=s.name, level=s.level, category=s.category) for s in resume.skills],
    )


class ResumeService:
    def __init__(
        self,
        db: AsyncSession,
        pdf_service,
        storage,
        locks: Optional[VersionLockRegistry] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.repo = ResumeRepository(db)
        self.pdf_service = pdf_service
        self.storage = storage
        self.locks = locks or version_locks
        self.clock = clock or datetime.utcnow

    # ------------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------------

    @staticmethod
    def _require_owner(resume: Optional[Resume], requester_id: str) -> Resume:
        if resume is None:
            raise NotFoundError("Resume not found")
        if resume.user_id != requester_id:
            logger.warning(
                f"[Resume] User {requester_id} denied access to resume {resume.id}",
                extra={"user_id": requester_id, "resume_id": resume.id},
            )
            raise UnauthorizedError("Not authorized to access this resume")
        return resume

    # ------------------------------------------------------------------
    # Resume CRUD
    # ------------------------------------------------------------------

    async def create_resume(
        self,
        owner_id: str,
        title: str,
        template: Optional[str] = None,
        is_active: bool = True,
        description: Optional[str] = None,
    ) -> Resume:
        if await self.repo.get_user(owner_id) is None:
            raise NotFoundError("User not found")
        if not title or not title.strip():
            raise ValidationFailure("Title must not be empty")

        resume = Resume(
            id=str(uuid4()),
            user_id=owner_id,
            title=title,
            template=template,
            description=description,
            is_active=is_active,
            last_version_number=1,
        )
        resume.versions.append(
            ResumeVersion(version_number=1, title=INITIAL_VERSION_TITLE, is_active=True)
        )
        self.db.add(resume)
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        logger.info(
            f"[Resume] Created resume {resume.id} for user {owner_id}",
            extra={"resume_id": resume.id, "user_id": owner_id},
        )
        return await self.repo.get_aggregate(resume.id)

    async def get_resume(self, resume_id: str, requester_id: str) -> Resume:
        return self._require_owner(await self.repo.get_aggregate(resume_id), requester_id)

    async def list_resumes(self, owner_id: str) -> List[Resume]:
        return await self.repo.list_for_owner(owner_id)

    async def list_resumes_page(self, owner_id: str, page: int = 0, size: int = 10) -> Page:
        if page < 0:
            raise ValidationFailure("page must be >= 0")
        if size < 1 or size > MAX_PAGE_SIZE:
            raise ValidationFailure(f"size must be between 1 and {MAX_PAGE_SIZE}")
        items, total = await self.repo.page_for_owner(owner_id, page, size)
        return Page(items=items, total=total, page=page, size=size)

    async def update_resume(
        self,
        resume_id: str,
        requester_id: str,
        title: Optional[str] = None,
        is_active: Optional[bool] = None,
        template: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Resume:
        resume = self._require_owner(await self.repo.get(resume_id), requester_id)

        if title is not None:
            if not title.strip():
                raise ValidationFailure("Title must not be empty")
            resume.title = title
        if is_active is not None:
            resume.is_active = is_active
        if template is not None:
            resume.template = template
        if description is not None:
            resume.description = description

        await self.db.commit()
        await self.db.refresh(resume)
        logger.info(f"[Resume] Updated resume {resume_id}", extra={"resume_id": resume_id})
        return resume

    async def delete_resume(self, resume_id: str, requester_id: str) -> None:
        resume = self._require_owner(await self.repo.get_aggregate(resume_id), requester_id)

        for version in resume.versions:
            if version.pdf_url:
                await self._release_artifact(version.id)

        resume.versions.clear()
        await self.db.flush()
        await self.db.delete(resume)
        await self.db.commit()
        logger.info(f"[Resume] Deleted resume {resume_id}", extra={"resume_id": resume_id})

    async def search_by_title(self, owner_id: str, substring: str) -> List[Resume]:
        return await self.repo.search_titles(owner_id, substring or "")

    async def statistics(self, owner_id: str) -> dict:
        window = get_settings().recent_window_days
        since = self.clock() - timedelta(days=window)
        return {
            "totalResumes": await self.repo.count_for_owner(owner_id),
            "recentResumes": await self.repo.count_created_since(owner_id, since),
        }

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    async def generate_version(self, resume_id: str, requester_id: str) -> ResumeVersion:
        """Render the resume, store the PDF and record it as the next version."""
        async with self.locks.lock_for(resume_id):
            resume = self._require_owner(
                await self.repo.lock_for_versioning(resume_id), requester_id
            )
            existing_max = await self.repo.max_version_number(resume_id)
            next_number = max(resume.last_version_number or 0, existing_max) + 1

            version_id = str(uuid4())
            logical_id = artifact_id(version_id)
            snapshot = snapshot_from_resume(resume)

            try:
                pdf_bytes = await asyncio.to_thread(self.pdf_service.render, snapshot)
                pdf_url = await asyncio.to_thread(self.storage.upload, pdf_bytes, logical_id)
            except Exception as e:
                await self.db.rollback()
                logger.error(
                    f"[Resume] PDF generation failed for resume {resume_id}: {type(e).__name__}: {e}",
                    extra={"resume_id": resume_id, "error": str(e), "error_type": type(e).__name__},
                )
                raise ExternalServiceError("Failed to generate PDF") from e

            version = ResumeVersion(
                id=version_id,
                resume_id=resume_id,
                version_number=next_number,
                title=f"Version {next_number}",
                pdf_url=pdf_url,
                public_share_url=self.storage.public_url_for(logical_id),
                is_active=True,
            )
            resume.last_version_number = next_number
            self.db.add(version)
            try:
                await self.db.commit()
            except SQLAlchemyError:
                await self.db.rollback()
                # The upload already happened; do not leave it orphaned
                await self._release_artifact(version_id)
                raise

        logger.info(
            f"[Resume] Generated version {next_number} of resume {resume_id}",
            extra={"resume_id": resume_id, "version_id": version_id, "version_number": next_number},
        )
        return version

    async def list_versions(self, resume_id: str, requester_id: str) -> List[ResumeVersion]:
        self._require_owner(await self.repo.get(resume_id), requester_id)
        return await self.repo.list_versions(resume_id)

    async def set_version_active(
        self, resume_id: str, version_id: str, requester_id: str, is_active: bool
    ) -> ResumeVersion:
        self._require_owner(await self.repo.get(resume_id), requester_id)
        version = await self.repo.get_version(resume_id, version_id)
        if version is None:
            raise NotFoundError("Version not found")

        version.is_active = is_active
        await self.db.commit()
        await self.db.refresh(version)
        logger.info(
            f"[Resume] Version {version_id} sharing {'enabled' if is_active else 'disabled'}",
            extra={"resume_id": resume_id, "version_id": version_id},
        )
        return version

    async def delete_version(self, resume_id: str, version_id: str, requester_id: str) -> None:
        self._require_owner(await self.repo.get(resume_id), requester_id)
        version = await self.repo.get_version(resume_id, version_id)
        if version is None:
            raise NotFoundError("Version not found")

        if version.pdf_url:
            await self._release_artifact(version.id)
        await self.db.delete(version)
        await self.db.commit()
        logger.info(
            f"[Resume] Deleted version {version.version_number} of resume {resume_id}",
            extra={"resume_id": resume_id, "version_id": version_id},
        )

    async def get_public_resume(self, share_url: str) -> Resume:
        version = await self.repo.get_version_by_share_url(share_url)
        if version is None or not version.is_active:
            raise NotFoundError("Resume not found")
        resume = await self.repo.get_with_sections(version.resume_id)
        if resume is None:
            raise NotFoundError("Resume not found")
        return resume

    async def _release_artifact(self, version_id: str) -> None:
        """Best effort: a storage failure is logged and never raised."""
        logical_id = artifact_id(version_id)
        try:
            deleted = await asyncio.to_thread(self.storage.delete, logical_id)
        except Exception as e:
            logger.warning(
                f"[Resume] Could not release {logical_id}: {type(e).__name__}: {e}",
                extra={"version_id": version_id, "error": str(e)},
            )
            return
        if not deleted:
            logger.warning(
                f"[Resume] Nothing released for {logical_id}",
                extra={"version_id": version_id},
            )
