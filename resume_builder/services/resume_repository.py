"""Queries for the resume aggregate.

Every method states what it loads. Relationships are never fetched
implicitly, so a caller that needs sections asks for them by name.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from resume_builder.models import User, Resume, ResumeVersion

SECTION_LOADS = (
    selectinload(Resume.personal_info),
    selectinload(Resume.work_experience),
    selectinload(Resume.education),
    selectinload(Resume.skills),
)


class ResumeRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get(self, resume_id: str) -> Optional[Resume]:
        """Resume row only."""
        result = await self.db.execute(select(Resume).where(Resume.id == resume_id))
        return result.scalar_one_or_none()

    async def get_with_sections(self, resume_id: str) -> Optional[Resume]:
        """Resume with personal info, experience, education and skills."""
        result = await self.db.execute(
            select(Resume)
            .where(Resume.id == resume_id)
            .options(*SECTION_LOADS)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_aggregate(self, resume_id: str) -> Optional[Resume]:
        """Resume with every owned child, versions included."""
        result = await self.db.execute(
            select(Resume)
            .where(Resume.id == resume_id)
            .options(*SECTION_LOADS, selectinload(Resume.versions))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def lock_for_versioning(self, resume_id: str) -> Optional[Resume]:
        """Resume with sections, row-locked where the backend supports it."""
        result = await self.db.execute(
            select(Resume)
            .where(Resume.id == resume_id)
            .options(*SECTION_LOADS)
            .with_for_update(of=Resume)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_for_owner(self, owner_id: str) -> List[Resume]:
        result = await self.db.execute(
            select(Resume)
            .where(Resume.user_id == owner_id)
            .order_by(Resume.created_at.desc())
        )
        return list(result.scalars().all())

    async def page_for_owner(self, owner_id: str, page: int, size: int) -> Tuple[List[Resume], int]:
        total = await self.count_for_owner(owner_id)
        result = await self.db.execute(
            select(Resume)
            .where(Resume.user_id == owner_id)
            .order_by(Resume.created_at.desc(), Resume.id)
            .offset(page * size)
            .limit(size)
        )
        return list(result.scalars().all()), total

    async def search_titles(self, owner_id: str, substring: str) -> List[Resume]:
        result = await self.db.execute(
            select(Resume)
            .where(
                Resume.user_id == owner_id,
                func.lower(Resume.title).contains(substring.lower(), autoescape=True),
            )
            .order_by(Resume.created_at.desc())
        )
        return list(result.scalars().all())

    async def count_for_owner(self, owner_id: str) -> int:
        result = await self.db.execute(
            select(func.count(Resume.id)).where(Resume.user_id == owner_id)
        )
        return result.scalar() or 0

    async def count_created_since(self, owner_id: str, since: datetime) -> int:
        result = await self.db.execute(
            select(func.count(Resume.id)).where(
                Resume.user_id == owner_id,
                Resume.created_at >= since,
            )
        )
        return result.scalar() or 0

    async def list_versions(self, resume_id: str) -> List[ResumeVersion]:
        result = await self.db.execute(
            select(ResumeVersion)
            .where(ResumeVersion.resume_id == resume_id)
            .order_by(ResumeVersion.version_number.asc())
        )
        return list(result.scalars().all())

    async def get_version(self, resume_id: str, version_id: str) -> Optional[ResumeVersion]:
        result = await self.db.execute(
            select(ResumeVersion).where(
                ResumeVersion.id == version_id,
                ResumeVersion.resume_id == resume_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_version_by_share_url(self, share_url: str) -> Optional[ResumeVersion]:
        result = await self.db.execute(
            select(ResumeVersion).where(ResumeVersion.public_share_url == share_url)
        )
        return result.scalar_one_or_none()

    async def max_version_number(self, resume_id: str) -> int:
        result = await self.db.execute(
            select(func.max(ResumeVersion.version_number))
            .where(ResumeVersion.resume_id == resume_id)
        )
        return result.scalar() or 0
