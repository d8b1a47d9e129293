from resume_builder.schemas.resume import (
    PersonalInfoData,
    ResumeSnapshot,
    SkillData,
    SnapshotEducation,
    SnapshotWorkExperience,
)
from resume_builder.services.pdf_service import PDFService, format_date, format_date_range, format_skills


def test_format_date_range_examples() -> None:
    assert format_date_range(3, 2020, is_present=True) == "Mar 2020 - Present"
    assert format_date_range(1, 2019, 6, 2021) == "Jan 2019 - Jun 2021"
    assert format_date_range(1, 2019) == "Jan 2019"


def test_present_wins_over_end_date() -> None:
    assert format_date_range(5, 2018, 7, 2022, is_present=True) == "May 2018 - Present"


def test_out_of_range_month_renders_year_only() -> None:
    assert format_date(13, 2020) == "2020"
    assert format_date(0, 2020) == "2020"
    assert format_date(None, 2020) == ""


def test_format_skills_drops_empty_levels() -> None:
    skills = [SkillData(name="Python", level="Expert"), SkillData(name="SQL")]
    assert format_skills(skills) == "Python (Expert), SQL"


def test_render_produces_pdf_bytes() -> None:
    snapshot = ResumeSnapshot(
        resume_id="abc",
        personal_info=PersonalInfoData(
            full_name="Ada <Lovelace>", email="ada@example.com", summary="Analyst & engineer."
        ),
        work_experience=[
            SnapshotWorkExperience(
                job_title="Engineer",
                company="Analytical Engines",
                start_month=3,
                start_year=2020,
                is_present=True,
                achievements=["Wrote the first program"],
            )
        ],
        education=[SnapshotEducation(institution="Home", degree="Mathematics", start_month=1, start_year=1830)],
        skills=[SkillData(name="Mathematics", level="Expert")],
    )
    pdf = PDFService().render(snapshot)
    assert pdf.startswith(b"%PDF")


def test_render_empty_snapshot() -> None:
    assert PDFService().render(ResumeSnapshot()).startswith(b"%PDF")
