from typing import Optional
from pydantic import BaseModel, Field


class AIRequest(BaseModel):
    """Free-text fragments of a resume; each AI operation reads the ones it needs."""
    personal_info: Optional[str] = None
    work_experience: Optional[str] = None
    skills: Optional[str] = None
    job_description: Optional[str] = Field(None, max_length=20000)
    job_title: Optional[str] = None
    company: Optional[str] = None
    description: Optional[str] = None
    resume_data: Optional[str] = Field(None, max_length=50000)
    experience_id: Optional[str] = None
    achievements: Optional[str] = None
    target_job_title: Optional[str] = None
    target_company: Optional[str] = None
