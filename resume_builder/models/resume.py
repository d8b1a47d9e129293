from sqlalchemy import (
    Column, Integer, String, DateTime, Text, Boolean, ForeignKey, JSON, Numeric,
)
from sqlalchemy.orm import relationship
from datetime import datetime
from uuid import uuid4
from resume_builder.database import Base


def _iso(value):
    return value.isoformat() if value else None


class Resume(Base):
    """Aggregate root: owns personal info, experience, education, skills and versions."""
    __tablename__ = "resumes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    template = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # High-water mark for version allocation, never decremented
    last_version_number = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="resumes")
    personal_info = relationship(
        "PersonalInfo", back_populates="resume", uselist=False, cascade="all, delete-orphan"
    )
    work_experience = relationship(
        "WorkExperience",
        back_populates="resume",
        cascade="all, delete-orphan",
        order_by=lambda: (WorkExperience.display_order, WorkExperience.id),
    )
    education = relationship(
        "Education",
        back_populates="resume",
        cascade="all, delete-orphan",
        order_by=lambda: (Education.display_order, Education.id),
    )
    skills = relationship("Skill", back_populates="resume", cascade="all, delete-orphan")
    versions = relationship(
        "ResumeVersion",
        back_populates="resume",
        cascade="all, delete-orphan",
        order_by="ResumeVersion.version_number",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "template": self.template,
            "description": self.description,
            "isActive": self.is_active,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def to_detail_dict(self):
        """Summary plus sections. Callers must have loaded the sections."""
        data = self.to_dict()
        data["personalInfo"] = self.personal_info.to_dict() if self.personal_info else None
        data["workExperience"] = [w.to_dict() for w in self.work_experience]
        data["education"] = [e.to_dict() for e in self.education]
        data["skills"] = [s.to_dict() for s in self.skills]
        return data


class PersonalInfo(Base):
    __tablename__ = "personal_info"

    id = Column(Integer, primary_key=True, index=True)
    resume_id = Column(String(36), ForeignKey("resumes.id", ondelete="CASCADE"), nullable=False, unique=True)
    full_name = Column(String(255))
    email = Column(String(320))
    phone = Column(String(50))
    location = Column(String(255))
    website = Column(String(500))
    linkedin = Column(String(500))
    github = Column(String(500))
    summary = Column(Text)

    resume = relationship("Resume", back_populates="personal_info")

    def to_dict(self):
        return {
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "location": self.location,
            "website": self.website,
            "linkedin": self.linkedin,
            "github": self.github,
            "summary": self.summary,
        }


class WorkExperience(Base):
    __tablename__ = "work_experience"

    id = Column(Integer, primary_key=True, index=True)
    resume_id = Column(String(36), ForeignKey("resumes.id", ondelete="CASCADE"), nullable=False, index=True)
    job_title = Column(String(255), nullable=False)
    company = Column(String(255), nullable=False)
    location = Column(String(255))
    start_month = Column(Integer, nullable=False)
    start_year = Column(Integer, nullable=False)
    end_month = Column(Integer)
    end_year = Column(Integer)
    is_present = Column(Boolean, default=False)
    description = Column(Text)
    achievements = Column(JSON, default=list)
    display_order = Column(Integer, default=0, nullable=False)

    resume = relationship("Resume", back_populates="work_experience")

    def to_dict(self):
        return {
            "id": self.id,
            "jobTitle": self.job_title,
            "company": self.company,
            "location": self.location,
            "startMonth": self.start_month,
            "startYear": self.start_year,
            "endMonth": self.end_month,
            "endYear": self.end_year,
            "isPresent": bool(self.is_present),
            "description": self.description,
            "achievements": list(self.achievements or []),
            "order": self.display_order,
        }


class Education(Base):
    __tablename__ = "education"

    id = Column(Integer, primary_key=True, index=True)
    resume_id = Column(String(36), ForeignKey("resumes.id", ondelete="CASCADE"), nullable=False, index=True)
    institution = Column(String(255), nullable=False)
    degree = Column(String(255), nullable=False)
    field_of_study = Column(String(255))
    start_month = Column(Integer, nullable=False)
    start_year = Column(Integer, nullable=False)
    end_month = Column(Integer)
    end_year = Column(Integer)
    is_present = Column(Boolean, default=False)
    gpa = Column(Numeric(3, 2))
    achievements = Column(JSON, default=list)
    display_order = Column(Integer, default=0, nullable=False)

    resume = relationship("Resume", back_populates="education")

    def to_dict(self):
        return {
            "id": self.id,
            "institution": self.institution,
            "degree": self.degree,
            "fieldOfStudy": self.field_of_study,
            "startMonth": self.start_month,
            "startYear": self.start_year,
            "endMonth": self.end_month,
            "endYear": self.end_year,
            "isPresent": bool(self.is_present),
            "gpa": str(self.gpa) if self.gpa is not None else None,
            "achievements": list(self.achievements or []),
            "order": self.display_order,
        }


class Skill(Base):
    __tablename__ = "skills"

    id = Column(Integer, primary_key=True, index=True)
    resume_id = Column(String(36), ForeignKey("resumes.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    level = Column(String(50))
    category = Column(String(100))

    resume = relationship("Resume", back_populates="skills")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "level": self.level,
            "category": self.category,
        }
