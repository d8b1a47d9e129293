"""FastAPI providers for services and adapters.

Adapters are process-wide singletons; services are built per request
around the request's database session. Tests swap any of these through
``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from resume_builder.config import get_settings
from resume_builder.database import get_db
from resume_builder.services.ai_service import AIService, CachedAIService
from resume_builder.services.cache import AICache
from resume_builder.services.pdf_service import PDFService
from resume_builder.services.resume_service import ResumeService
from resume_builder.services.section_service import SectionService
from resume_builder.services.storage_service import StorageService


@lru_cache()
def get_storage() -> StorageService:
    return StorageService()


def get_pdf_service(storage: StorageService = Depends(get_storage)) -> PDFService:
    return PDFService(storage=storage)


@lru_cache()
def get_ai_service() -> CachedAIService:
    settings = get_settings()
    cache = AICache(
        max_entries=settings.ai_cache_max_entries,
        ttl_seconds=settings.ai_cache_ttl_seconds,
    )
    return CachedAIService(AIService(), cache)


def get_resume_service(
    db: AsyncSession = Depends(get_db),
    pdf_service: PDFService = Depends(get_pdf_service),
    storage: StorageService = Depends(get_storage),
) -> ResumeService:
    return ResumeService(db, pdf_service, storage)


def get_section_service(db: AsyncSession = Depends(get_db)) -> SectionService:
    return SectionService(db)
