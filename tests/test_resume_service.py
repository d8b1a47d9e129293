import asyncio
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from resume_builder.database import init_db
from resume_builder.exceptions import (
    ExternalServiceError,
    NotFoundError,
    UnauthorizedError,
    ValidationFailure,
)
from resume_builder.models import User
from resume_builder.schemas.resume import WorkExperienceData
from resume_builder.services.resume_service import ResumeService, VersionLockRegistry
from resume_builder.services.section_service import SectionService


def test_create_resume_starts_with_initial_version(run_db, fake_pdf, fake_storage) -> None:
    async def scenario(session):
        service = ResumeService(session, fake_pdf, fake_storage)
        resume = await service.create_resume("owner", "Backend Engineer", template="modern")
        return resume, await service.list_versions(resume.id, "owner")

    resume, versions = run_db(scenario)
    assert resume.title == "Backend Engineer"
    assert resume.last_version_number == 1
    assert [(v.version_number, v.title) for v in versions] == [(1, "Initial Version")]
    assert versions[0].pdf_url is None


def test_create_resume_for_unknown_owner_fails(run_db, fake_pdf, fake_storage) -> None:
    async def scenario(session):
        service = ResumeService(session, fake_pdf, fake_storage)
        with pytest.raises(NotFoundError):
            await service.create_resume("ghost", "Anything")
        return await service.list_resumes("ghost")

    assert run_db(scenario) == []


def test_version_numbers_increase_and_are_never_reused(run_db, fake_pdf, fake_storage) -> None:
    async def scenario(session):
        service = ResumeService(session, fake_pdf, fake_storage)
        resume = await service.create_resume("owner", "Data Engineer")
        await service.generate_version(resume.id, "owner")
        third = await service.generate_version(resume.id, "owner")
        await service.delete_version(resume.id, third.id, "owner")
        fourth = await service.generate_version(resume.id, "owner")
        versions = await service.list_versions(resume.id, "owner")
        return third, fourth, versions

    third, fourth, versions = run_db(scenario)
    assert third.version_number == 3
    assert fourth.version_number == 4
    assert [v.version_number for v in versions] == [1, 2, 4]
    assert fourth.title == "Version 4"
    assert fourth.public_share_url == f"https://cdn.example.test/resumes/{fourth.id}.pdf"
    assert f"resumes/{third.id}" in fake_storage.deleted


def test_generate_version_uses_loaded_sections(run_db, fake_pdf, fake_storage) -> None:
    async def scenario(session):
        service = ResumeService(session, fake_pdf, fake_storage)
        sections = SectionService(session)
        resume = await service.create_resume("owner", "SRE")
        await sections.add_work_experience(
            resume.id,
            "owner",
            WorkExperienceData(job_title="SRE", company="Acme", start_month=3, start_year=2020, is_present=True),
        )
        return await service.generate_version(resume.id, "owner")

    version = run_db(scenario)
    snapshot = fake_pdf.snapshots[-1]
    assert [w.company for w in snapshot.work_experience] == ["Acme"]
    assert f"resumes/{version.id}" in fake_storage.objects


def test_failed_upload_persists_nothing(run_db, fake_pdf, fake_storage) -> None:
    fake_storage.fail_upload = True

    async def scenario(session):
        service = ResumeService(session, fake_pdf, fake_storage)
        # rollback expires loaded instances, so keep the plain id
        resume_id = (await service.create_resume("owner", "QA")).id
        with pytest.raises(ExternalServiceError) as exc:
            await service.generate_version(resume_id, "owner")
        versions = await service.list_versions(resume_id, "owner")
        reloaded = await service.get_resume(resume_id, "owner")
        return exc.value, versions, reloaded

    error, versions, resume = run_db(scenario)
    assert error.message == "Failed to generate PDF"
    assert [v.version_number for v in versions] == [1]
    assert resume.last_version_number == 1


def test_foreign_requester_is_rejected(run_db, fake_pdf, fake_storage) -> None:
    async def scenario(session):
        service = ResumeService(session, fake_pdf, fake_storage)
        resume = await service.create_resume("owner", "Private")
        calls = [
            service.get_resume(resume.id, "intruder"),
            service.update_resume(resume.id, "intruder", title="Mine now"),
            service.generate_version(resume.id, "intruder"),
            service.list_versions(resume.id, "intruder"),
            service.delete_resume(resume.id, "intruder"),
        ]
        for call in calls:
            with pytest.raises(UnauthorizedError):
                await call
        return await service.get_resume(resume.id, "owner")

    resume = run_db(scenario, users=("owner", "intruder"))
    assert resume.title == "Private"
    assert [v.version_number for v in resume.versions] == [1]


def test_missing_resume_is_not_found(run_db, fake_pdf, fake_storage) -> None:
    async def scenario(session):
        service = ResumeService(session, fake_pdf, fake_storage)
        with pytest.raises(NotFoundError):
            await service.get_resume("does-not-exist", "owner")
        with pytest.raises(NotFoundError):
            await service.generate_version("does-not-exist", "owner")

    run_db(scenario)


def test_update_resume_is_partial(run_db, fake_pdf, fake_storage) -> None:
    async def scenario(session):
        service = ResumeService(session, fake_pdf, fake_storage)
        resume = await service.create_resume("owner", "Draft", template="classic", description="v1")
        updated = await service.update_resume(resume.id, "owner", is_active=False)
        with pytest.raises(ValidationFailure):
            await service.update_resume(resume.id, "owner", title="   ")
        return updated

    updated = run_db(scenario)
    assert updated.title == "Draft"
    assert updated.template == "classic"
    assert updated.is_active is False
    assert updated.updated_at >= updated.created_at


def test_public_share_follows_version_active_flag(run_db, fake_pdf, fake_storage) -> None:
    async def scenario(session):
        service = ResumeService(session, fake_pdf, fake_storage)
        resume = await service.create_resume("owner", "Shared")
        version = await service.generate_version(resume.id, "owner")

        shared = await service.get_public_resume(version.public_share_url)
        await service.set_version_active(resume.id, version.id, "owner", False)
        with pytest.raises(NotFoundError):
            await service.get_public_resume(version.public_share_url)
        with pytest.raises(NotFoundError):
            await service.get_public_resume("https://cdn.example.test/resumes/unknown.pdf")
        await service.set_version_active(resume.id, version.id, "owner", True)
        again = await service.get_public_resume(version.public_share_url)
        return resume, shared, again

    resume, shared, again = run_db(scenario)
    assert shared.id == resume.id
    assert again.id == resume.id


def test_delete_resume_survives_storage_failures(run_db, fake_pdf, fake_storage) -> None:
    async def scenario(session):
        service = ResumeService(session, fake_pdf, fake_storage)
        resume = await service.create_resume("owner", "Doomed")
        first = await service.generate_version(resume.id, "owner")
        second = await service.generate_version(resume.id, "owner")
        fake_storage.fail_delete = True
        await service.delete_resume(resume.id, "owner")
        with pytest.raises(NotFoundError):
            await service.get_resume(resume.id, "owner")
        with pytest.raises(NotFoundError):
            await service.get_public_resume(first.public_share_url)
        return first, second

    first, second = run_db(scenario)
    assert sorted(fake_storage.deleted) == sorted([f"resumes/{first.id}", f"resumes/{second.id}"])


def test_statistics_counts_recent_window(run_db, fake_pdf, fake_storage) -> None:
    async def scenario(session):
        service = ResumeService(session, fake_pdf, fake_storage)
        old = await service.create_resume("owner", "Old")
        await service.create_resume("owner", "Fresh")
        await service.create_resume("owner", "Fresher")
        old.created_at = datetime.utcnow() - timedelta(days=40)
        await session.commit()
        return await service.statistics("owner")

    assert run_db(scenario) == {"totalResumes": 3, "recentResumes": 2}


def test_search_and_pagination(run_db, fake_pdf, fake_storage) -> None:
    async def scenario(session):
        service = ResumeService(session, fake_pdf, fake_storage)
        for title in ("Python Developer", "Go developer", "Designer"):
            await service.create_resume("owner", title)
        await service.create_resume("other", "Python Lead")
        found = await service.search_by_title("owner", "DEVELOPER")
        page = await service.list_resumes_page("owner", page=1, size=2)
        with pytest.raises(ValidationFailure):
            await service.list_resumes_page("owner", page=0, size=0)
        return found, page

    found, page = run_db(scenario, users=("owner", "other"))
    assert sorted(r.title for r in found) == ["Go developer", "Python Developer"]
    assert page.total == 3
    assert page.pages == 2
    assert len(page.items) == 1


def test_concurrent_generation_gets_distinct_increasing_numbers(tmp_path, fake_pdf, fake_storage) -> None:
    calls = 6

    async def main():
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'concurrent.db'}")
        await init_db(bind=engine)
        session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        locks = VersionLockRegistry()
        try:
            async with session_factory() as session:
                session.add(User(id="owner", email="owner@example.com"))
                await session.commit()
                resume_id = (await ResumeService(session, fake_pdf, fake_storage, locks).create_resume("owner", "Busy")).id

            async def generate():
                async with session_factory() as session:
                    version = await ResumeService(session, fake_pdf, fake_storage, locks).generate_version(resume_id, "owner")
                    return version.version_number

            numbers = await asyncio.gather(*(generate() for _ in range(calls)))
            async with session_factory() as session:
                stored = await ResumeService(session, fake_pdf, fake_storage, locks).list_versions(resume_id, "owner")
            return numbers, [v.version_number for v in stored]
        finally:
            await engine.dispose()

    numbers, stored = asyncio.run(main())
    assert sorted(numbers) == list(range(2, calls + 2))
    assert stored == list(range(1, calls + 2))


def test_failed_commit_releases_upload_and_keeps_the_database_error(
    run_db, fake_pdf, fake_storage, monkeypatch
) -> None:
    async def scenario(session):
        service = ResumeService(session, fake_pdf, fake_storage)
        resume_id = (await service.create_resume("owner", "Flaky")).id

        async def failing_commit():
            raise SQLAlchemyError("commit failed")

        monkeypatch.setattr(session, "commit", failing_commit)
        fake_storage.fail_delete = True
        with pytest.raises(SQLAlchemyError, match="commit failed"):
            await service.generate_version(resume_id, "owner")

    run_db(scenario)
    assert len(fake_storage.deleted) == 1
    assert fake_storage.deleted[0].startswith("resumes/")
