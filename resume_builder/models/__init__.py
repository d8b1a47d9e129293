# Database models package
from resume_builder.models.user import User
from resume_builder.models.resume import Resume, PersonalInfo, WorkExperience, Education, Skill
from resume_builder.models.resume_version import ResumeVersion

__all__ = [
    "User",
    "Resume",
    "PersonalInfo",
    "WorkExperience",
    "Education",
    "Skill",
    "ResumeVersion",
]
