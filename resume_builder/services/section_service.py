"""Owner-scoped editing of resume sections."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from resume_builder.exceptions import NotFoundError
from resume_builder.models import Resume, PersonalInfo, WorkExperience, Education, Skill
from resume_builder.schemas.resume import (
    PersonalInfoData,
    WorkExperienceData,
    WorkExperienceUpdate,
    EducationData,
    EducationUpdate,
    SkillData,
    SkillUpdate,
)
from resume_builder.services.resume_repository import ResumeRepository
from resume_builder.services.resume_service import ResumeService
from resume_builder.utils.logger import get_logger

logger = get_logger("sections")

REQUIRED_FIELDS = frozenset({
    "job_title", "company", "institution", "degree", "name",
    "start_month", "start_year", "is_present", "achievements",
})


def _entry_fields(data, partial: bool = False) -> dict:
    """Schema fields to column values; ``order`` is stored as ``display_order``.

    Partial updates only carry the fields the client sent, and never null
    out a required column.
    """
    fields = data.model_dump(exclude_unset=partial)
    if partial:
        fields = {k: v for k, v in fields.items() if v is not None or k not in REQUIRED_FIELDS}
    if "order" in fields:
        order = fields.pop("order")
        if order is not None:
            fields["display_order"] = order
    return fields


class SectionService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = ResumeRepository(db)

    async def _owned_resume(self, resume_id: str, requester_id: str) -> Resume:
        return ResumeService._require_owner(await self.repo.get(resume_id), requester_id)

    async def _owned_child(self, model, child_id: int, requester_id: str, label: str):
        child = await self.db.get(model, child_id)
        if child is None:
            raise NotFoundError(f"{label} not found")
        await self._owned_resume(child.resume_id, requester_id)
        return child

    async def _save(self, obj):
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    # ========== Personal info ==========
    async def upsert_personal_info(
        self, resume_id: str, requester_id: str, data: PersonalInfoData
    ) -> PersonalInfo:
        await self._owned_resume(resume_id, requester_id)
        result = await self.db.execute(select(PersonalInfo).where(PersonalInfo.resume_id == resume_id))
        info: Optional[PersonalInfo] = result.scalar_one_or_none()

        if info is None:
            info = PersonalInfo(resume_id=resume_id, **data.model_dump())
            self.db.add(info)
        else:
            for key, value in data.model_dump().items():
                setattr(info, key, value)

        logger.info(f"[Sections] Saved personal info for resume {resume_id}", extra={"resume_id": resume_id})
        return await self._save(info)

    # ========== Work experience ==========
    async def add_work_experience(
        self, resume_id: str, requester_id: str, data: WorkExperienceData
    ) -> WorkExperience:
        await self._owned_resume(resume_id, requester_id)
        entry = WorkExperience(resume_id=resume_id, **_entry_fields(data))
        self.db.add(entry)
        return await self._save(entry)

    async def update_work_experience(
        self, experience_id: int, requester_id: str, data: WorkExperienceUpdate
    ) -> WorkExperience:
        entry = await self._owned_child(WorkExperience, experience_id, requester_id, "Work experience")
        for key, value in _entry_fields(data, partial=True).items():
            setattr(entry, key, value)
        return await self._save(entry)

    async def delete_work_experience(self, experience_id: int, requester_id: str) -> None:
        entry = await self._owned_child(WorkExperience, experience_id, requester_id, "Work experience")
        await self.db.delete(entry)
        await self.db.commit()

    # ========== Education ==========
    async def add_education(
        self, resume_id: str, requester_id: str, data: EducationData
    ) -> Education:
        await self._owned_resume(resume_id, requester_id)
        entry = Education(resume_id=resume_id, **_entry_fields(data))
        self.db.add(entry)
        return await self._save(entry)

    async def update_education(
        self, education_id: int, requester_id: str, data: EducationUpdate
    ) -> Education:
        entry = await self._owned_child(Education, education_id, requester_id, "Education")
        for key, value in _entry_fields(data, partial=True).items():
            setattr(entry, key, value)
        return await self._save(entry)

    async def delete_education(self, education_id: int, requester_id: str) -> None:
        entry = await self._owned_child(Education, education_id, requester_id, "Education")
        await self.db.delete(entry)
        await self.db.commit()

    # ========== Skills ==========
    async def add_skill(self, resume_id: str, requester_id: str, data: SkillData) -> Skill:
        await self._owned_resume(resume_id, requester_id)
        skill = Skill(resume_id=resume_id, **data.model_dump())
        self.db.add(skill)
        return await self._save(skill)

    async def update_skill(self, skill_id: int, requester_id: str, data: SkillUpdate) -> Skill:
        skill = await self._owned_child(Skill, skill_id, requester_id, "Skill")
        for key, value in _entry_fields(data, partial=True).items():
            setattr(skill, key, value)
        return await self._save(skill)

    async def delete_skill(self, skill_id: int, requester_id: str) -> None:
        skill = await self._owned_child(Skill, skill_id, requester_id, "Skill")
        await self.db.delete(skill)
        await self.db.commit()
