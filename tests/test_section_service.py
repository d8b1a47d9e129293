from decimal import Decimal

import pytest

from resume_builder.exceptions import NotFoundError, UnauthorizedError
from resume_builder.schemas.resume import (
    EducationData,
    EducationUpdate,
    PersonalInfoData,
    SkillData,
    SkillUpdate,
    WorkExperienceData,
    WorkExperienceUpdate,
)
from resume_builder.services.resume_service import ResumeService
from resume_builder.services.section_service import SectionService


def _job(title, order=0):
    return WorkExperienceData(
        job_title=title, company="Acme", start_month=1, start_year=2019, order=order
    )


def test_work_experience_is_ordered_by_display_order(run_db, fake_pdf, fake_storage) -> None:
    async def scenario(session):
        resumes = ResumeService(session, fake_pdf, fake_storage)
        sections = SectionService(session)
        resume = await resumes.create_resume("owner", "Ordered")
        await sections.add_work_experience(resume.id, "owner", _job("Second", order=1))
        await sections.add_work_experience(resume.id, "owner", _job("First", order=0))
        await sections.add_work_experience(resume.id, "owner", _job("Also second", order=1))
        return await resumes.get_resume(resume.id, "owner")

    resume = run_db(scenario)
    assert [w.job_title for w in resume.work_experience] == ["First", "Second", "Also second"]


def test_partial_update_keeps_unsent_fields(run_db, fake_pdf, fake_storage) -> None:
    async def scenario(session):
        resumes = ResumeService(session, fake_pdf, fake_storage)
        sections = SectionService(session)
        resume = await resumes.create_resume("owner", "Edits")
        entry = await sections.add_work_experience(resume.id, "owner", _job("Engineer"))
        return await sections.update_work_experience(
            entry.id, "owner", WorkExperienceUpdate(is_present=True, achievements=["Shipped v2"], order=5)
        )

    entry = run_db(scenario)
    assert entry.job_title == "Engineer"
    assert entry.is_present is True
    assert entry.achievements == ["Shipped v2"]
    assert entry.display_order == 5


def test_personal_info_upsert_replaces_existing_row(run_db, fake_pdf, fake_storage) -> None:
    async def scenario(session):
        resumes = ResumeService(session, fake_pdf, fake_storage)
        sections = SectionService(session)
        resume = await resumes.create_resume("owner", "Contact")
        first = await sections.upsert_personal_info(resume.id, "owner", PersonalInfoData(full_name="Ada"))
        second = await sections.upsert_personal_info(
            resume.id, "owner", PersonalInfoData(full_name="Ada Lovelace", email="ada@example.com")
        )
        return first.id, second

    first_id, second = run_db(scenario)
    assert second.id == first_id
    assert second.full_name == "Ada Lovelace"
    assert second.email == "ada@example.com"


def test_education_and_skills_crud(run_db, fake_pdf, fake_storage) -> None:
    async def scenario(session):
        resumes = ResumeService(session, fake_pdf, fake_storage)
        sections = SectionService(session)
        resume = await resumes.create_resume("owner", "School")
        edu = await sections.add_education(
            resume.id,
            "owner",
            EducationData(institution="MIT", degree="BSc", start_month=9, start_year=2015, gpa=Decimal("3.80")),
        )
        edu = await sections.update_education(edu.id, "owner", EducationUpdate(field_of_study="Physics"))
        skill = await sections.add_skill(resume.id, "owner", SkillData(name="Python", level="Expert"))
        skill = await sections.update_skill(skill.id, "owner", SkillUpdate(category="Languages"))
        await sections.delete_skill(skill.id, "owner")
        with pytest.raises(NotFoundError):
            await sections.delete_skill(skill.id, "owner")
        return edu, skill, await resumes.get_resume(resume.id, "owner")

    edu, skill, resume = run_db(scenario)
    assert edu.field_of_study == "Physics"
    assert edu.to_dict()["gpa"] == "3.80"
    assert skill.category == "Languages"
    assert resume.skills == []


def test_sections_check_the_parent_owner(run_db, fake_pdf, fake_storage) -> None:
    async def scenario(session):
        resumes = ResumeService(session, fake_pdf, fake_storage)
        sections = SectionService(session)
        resume = await resumes.create_resume("owner", "Guarded")
        entry = await sections.add_work_experience(resume.id, "owner", _job("Engineer"))
        with pytest.raises(UnauthorizedError):
            await sections.add_skill(resume.id, "intruder", SkillData(name="Lockpicking"))
        with pytest.raises(UnauthorizedError):
            await sections.update_work_experience(entry.id, "intruder", WorkExperienceUpdate(company="Evil"))
        with pytest.raises(UnauthorizedError):
            await sections.delete_work_experience(entry.id, "intruder")
        with pytest.raises(NotFoundError):
            await sections.delete_work_experience(999999, "owner")

    run_db(scenario, users=("owner", "intruder"))
