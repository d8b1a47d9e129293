"""AI enhancement routes - summaries, bullet points, job match, skill suggestions"""

from fastapi import APIRouter, Depends, Request

from resume_builder.dependencies import get_ai_service
from resume_builder.middleware.auth import get_current_user
from resume_builder.middleware.rate_limit import limiter, AI_RATE_LIMIT
from resume_builder.models.user import User
from resume_builder.schemas.ai import AIRequest
from resume_builder.services.ai_service import CachedAIService
from resume_builder.utils.logger import get_logger

router = APIRouter()
logger = get_logger()


async def _run(ai: CachedAIService, operation: str, body: AIRequest, user: User) -> dict:
    logger.info(f"[AI] {operation} for user={user.id}", extra={"operation": operation, "user_id": user.id})
    # ExternalServiceError propagates to the app-wide handler (502)
    return await ai.call(operation, body)


@router.post("/enhance-summary")
@limiter.limit(AI_RATE_LIMIT)
async def enhance_summary(
    request: Request,
    body: AIRequest,
    current_user: User = Depends(get_current_user),
    ai: CachedAIService = Depends(get_ai_service),
):
    return await _run(ai, "enhance_summary", body, current_user)


@router.post("/enhance-work-experience")
@limiter.limit(AI_RATE_LIMIT)
async def enhance_work_experience(
    request: Request,
    body: AIRequest,
    current_user: User = Depends(get_current_user),
    ai: CachedAIService = Depends(get_ai_service),
):
    return await _run(ai, "enhance_work_experience", body, current_user)


@router.post("/analyze-job-match")
@limiter.limit(AI_RATE_LIMIT)
async def analyze_job_match(
    request: Request,
    body: AIRequest,
    current_user: User = Depends(get_current_user),
    ai: CachedAIService = Depends(get_ai_service),
):
    return await _run(ai, "analyze_job_match", body, current_user)


@router.post("/suggest-skills")
@limiter.limit(AI_RATE_LIMIT)
async def suggest_skills(
    request: Request,
    body: AIRequest,
    current_user: User = Depends(get_current_user),
    ai: CachedAIService = Depends(get_ai_service),
):
    return await _run(ai, "suggest_skills", body, current_user)


@router.post("/generate-resume")
@limiter.limit(AI_RATE_LIMIT)
async def generate_resume(
    request: Request,
    body: AIRequest,
    current_user: User = Depends(get_current_user),
    ai: CachedAIService = Depends(get_ai_service),
):
    return await _run(ai, "generate_resume", body, current_user)
