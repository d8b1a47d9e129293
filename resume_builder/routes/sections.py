"""Section editing routes: personal info, work experience, education, skills"""

from fastapi import APIRouter, Depends

from resume_builder.dependencies import get_section_service
from resume_builder.middleware.auth import get_current_user
from resume_builder.models.user import User
from resume_builder.schemas.resume import (
    PersonalInfoData,
    WorkExperienceData,
    WorkExperienceUpdate,
    EducationData,
    EducationUpdate,
    SkillData,
    SkillUpdate,
)
from resume_builder.services.section_service import SectionService

router = APIRouter()


@router.put("/resumes/{resume_id}/personal-info")
async def upsert_personal_info(
    resume_id: str,
    body: PersonalInfoData,
    current_user: User = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
):
    info = await service.upsert_personal_info(resume_id, current_user.id, body)
    return {"success": True, "personalInfo": info.to_dict()}


# ========== Work experience ==========

@router.post("/resumes/{resume_id}/work-experience", status_code=201)
async def add_work_experience(
    resume_id: str,
    body: WorkExperienceData,
    current_user: User = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
):
    entry = await service.add_work_experience(resume_id, current_user.id, body)
    return {"success": True, "workExperience": entry.to_dict()}


@router.put("/work-experience/{experience_id}")
async def update_work_experience(
    experience_id: int,
    body: WorkExperienceUpdate,
    current_user: User = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
):
    entry = await service.update_work_experience(experience_id, current_user.id, body)
    return {"success": True, "workExperience": entry.to_dict()}


@router.delete("/work-experience/{experience_id}")
async def delete_work_experience(
    experience_id: int,
    current_user: User = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
):
    await service.delete_work_experience(experience_id, current_user.id)
    return {"success": True, "message": "Work experience deleted"}


# ========== Education ==========

@router.post("/resumes/{resume_id}/education", status_code=201)
async def add_education(
    resume_id: str,
    body: EducationData,
    current_user: User = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
):
    entry = await service.add_education(resume_id, current_user.id, body)
    return {"success": True, "education": entry.to_dict()}


@router.put("/education/{education_id}")
async def update_education(
    education_id: int,
    body: EducationUpdate,
    current_user: User = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
):
    entry = await service.update_education(education_id, current_user.id, body)
    return {"success": True, "education": entry.to_dict()}


@router.delete("/education/{education_id}")
async def delete_education(
    education_id: int,
    current_user: User = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
):
    await service.delete_education(education_id, current_user.id)
    return {"success": True, "message": "Education deleted"}


# ========== Skills ==========

@router.post("/resumes/{resume_id}/skills", status_code=201)
async def add_skill(
    resume_id: str,
    body: SkillData,
    current_user: User = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
):
    skill = await service.add_skill(resume_id, current_user.id, body)
    return {"success": True, "skill": skill.to_dict()}


@router.put("/skills/{skill_id}")
async def update_skill(
    skill_id: int,
    body: SkillUpdate,
    current_user: User = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
):
    skill = await service.update_skill(skill_id, current_user.id, body)
    return {"success": True, "skill": skill.to_dict()}


@router.delete("/skills/{skill_id}")
async def delete_skill(
    skill_id: int,
    current_user: User = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
):
    await service.delete_skill(skill_id, current_user.id)
    return {"success": True, "message": "Skill deleted"}
