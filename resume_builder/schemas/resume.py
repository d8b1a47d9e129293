"""
Request schemas for resumes and their sections, plus the snapshot shape
handed to the PDF renderer.
"""
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


def _non_blank(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("must not be blank")
    return value


# ========== Resume ==========
class ResumeCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    template: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    is_active: bool = True

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value):
        return _non_blank(value)


class ResumeUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    template: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value):
        return _non_blank(value)


# ========== Sections ==========
class PersonalInfoData(BaseModel):
    full_name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=320)
    phone: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    website: Optional[str] = Field(None, max_length=500)
    linkedin: Optional[str] = Field(None, max_length=500)
    github: Optional[str] = Field(None, max_length=500)
    summary: Optional[str] = None


class WorkExperienceData(BaseModel):
    job_title: str = Field(..., min_length=1, max_length=255)
    company: str = Field(..., min_length=1, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    start_month: int = Field(..., ge=1, le=12)
    start_year: int = Field(..., ge=1900, le=2100)
    end_month: Optional[int] = Field(None, ge=1, le=12)
    end_year: Optional[int] = Field(None, ge=1900, le=2100)
    is_present: bool = False
    description: Optional[str] = None
    achievements: List[str] = Field(default_factory=list)
    order: int = 0


class WorkExperienceUpdate(BaseModel):
    job_title: Optional[str] = Field(None, min_length=1, max_length=255)
    company: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    start_month: Optional[int] = Field(None, ge=1, le=12)
    start_year: Optional[int] = Field(None, ge=1900, le=2100)
    end_month: Optional[int] = Field(None, ge=1, le=12)
    end_year: Optional[int] = Field(None, ge=1900, le=2100)
    is_present: Optional[bool] = None
    description: Optional[str] = None
    achievements: Optional[List[str]] = None
    order: Optional[int] = None


class EducationData(BaseModel):
    institution: str = Field(..., min_length=1, max_length=255)
    degree: str = Field(..., min_length=1, max_length=255)
    field_of_study: Optional[str] = Field(None, max_length=255)
    start_month: int = Field(..., ge=1, le=12)
    start_year: int = Field(..., ge=1900, le=2100)
    end_month: Optional[int] = Field(None, ge=1, le=12)
    end_year: Optional[int] = Field(None, ge=1900, le=2100)
    is_present: bool = False
    gpa: Optional[Decimal] = Field(None, ge=0, le=Decimal("9.99"), decimal_places=2)
    achievements: List[str] = Field(default_factory=list)
    order: int = 0


class EducationUpdate(BaseModel):
    institution: Optional[str] = Field(None, min_length=1, max_length=255)
    degree: Optional[str] = Field(None, min_length=1, max_length=255)
    field_of_study: Optional[str] = Field(None, max_length=255)
    start_month: Optional[int] = Field(None, ge=1, le=12)
    start_year: Optional[int] = Field(None, ge=1900, le=2100)
    end_month: Optional[int] = Field(None, ge=1, le=12)
    end_year: Optional[int] = Field(None, ge=1900, le=2100)
    is_present: Optional[bool] = None
    gpa: Optional[Decimal] = Field(None, ge=0, le=Decimal("9.99"), decimal_places=2)
    achievements: Optional[List[str]] = None
    order: Optional[int] = None


class SkillData(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    level: Optional[str] = Field(None, max_length=50)
    category: Optional[str] = Field(None, max_length=100)


class SkillUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    level: Optional[str] = Field(None, max_length=50)
    category: Optional[str] = Field(None, max_length=100)


class VersionShareUpdate(BaseModel):
    is_active: bool


# ========== PDF snapshot ==========
class SnapshotEntry(BaseModel):
    """Shared shape of dated entries (experience and education) in a snapshot."""
    start_month: Optional[int] = None
    start_year: Optional[int] = None
    end_month: Optional[int] = None
    end_year: Optional[int] = None
    is_present: bool = False
    achievements: List[str] = Field(default_factory=list)
    order: int = 0


class SnapshotWorkExperience(SnapshotEntry):
    job_title: str
    company: str
    location: Optional[str] = None
    description: Optional[str] = None


class SnapshotEducation(SnapshotEntry):
    institution: str
    degree: str
    field_of_study: Optional[str] = None
    gpa: Optional[str] = None


class ResumeSnapshot(BaseModel):
    """Everything the PDF renderer needs, detached from the database."""
    resume_id: Optional[str] = None
    template: Optional[str] = None
    personal_info: Optional[PersonalInfoData] = None
    work_experience: List[SnapshotWorkExperience] = Field(default_factory=list)
    education: List[SnapshotEducation] = Field(default_factory=list)
    skills: List[SkillData] = Field(default_factory=list)
