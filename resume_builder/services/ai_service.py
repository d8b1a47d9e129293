"""AI Service - prompt assembly and chat completions for resume enhancement"""

import json
import time
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from resume_builder.config import get_settings
from resume_builder.exceptions import ExternalServiceError
from resume_builder.schemas.ai import AIRequest
from resume_builder.services.cache import AICache, payload_key
from resume_builder.utils.logger import get_logger

logger = get_logger("ai")

SYSTEM_PROMPT = "You are a professional resume writer and career advisor."

# Served when the job-match response cannot be parsed
FALLBACK_JOB_MATCH = {
    "matchScore": 75,
    "missingSkills": ["Communication", "Leadership"],
    "strengths": ["Professional experience matches job requirements"],
    "suggestions": ["Consider adding more specific technical skills"],
}


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()
    return text


def _string_list(value) -> list:
    if not isinstance(value, list):
        raise ValueError("expected a list")
    return [str(v) for v in value]


def parse_job_match(content: str) -> dict:
    """Parse a job-match completion, falling back to FALLBACK_JOB_MATCH on any problem."""
    try:
        data = json.loads(strip_code_fences(content))
        score = int(data["matchScore"])
        return {
            "matchScore": max(0, min(100, score)),
            "missingSkills": _string_list(data["missingSkills"]),
            "strengths": _string_list(data["strengths"]),
            "suggestions": _string_list(data["suggestions"]),
        }
    except (ValueError, KeyError, TypeError) as e:
        logger.warning(f"[AI] Job match response not parseable ({type(e).__name__}), using fallback")
        return {k: list(v) if isinstance(v, list) else v for k, v in FALLBACK_JOB_MATCH.items()}


def _optional_line(label: str, value: Optional[str]) -> str:
    return f"{label}: {value}" if value else ""


class AIService:
    def __init__(self, client=None, model: str = None, temperature: float = None):
        settings = get_settings()
        self._client = client
        self.model = model or settings.ai_model
        self.temperature = settings.ai_temperature if temperature is None else temperature

    @property
    def client(self):
        if self._client is None:
            settings = get_settings()
            self._client = AsyncOpenAI(api_key=settings.ai_api_key, base_url=settings.ai_base_url)
        return self._client

    async def enhance_summary(self, request: AIRequest) -> dict:
        prompt = f"""Based on the following information, write a professional summary (2-3 sentences) that would be perfect for a resume.
Focus on key achievements, skills, and career highlights. Make it engaging and professional.

Personal Info: {request.personal_info or ""}
Work Experience: {request.work_experience or ""}
Skills: {request.skills or ""}
{_optional_line("Target Job", request.job_description)}"""
        return await self._complete(prompt, max_tokens=500)

    async def enhance_work_experience(self, request: AIRequest) -> dict:
        prompt = f"""Enhance the following work experience into 3-5 powerful bullet points that demonstrate impact and achievements.
Use metrics where possible and start with strong action verbs. Return as JSON array only.

Job Title: {request.job_title or ""}
Company: {request.company or ""}
Current Description: {request.description or ""}
{_optional_line("Current Achievements", request.achievements)}
{_optional_line("Target Job Description", request.job_description)}"""
        return await self._complete(prompt, max_tokens=800)

    async def analyze_job_match(self, request: AIRequest) -> dict:
        prompt = f"""Analyze the following resume against the job description and provide a detailed match analysis.
Return a JSON object with:
- matchScore: number (0-100)
- missingSkills: array of skills mentioned in job but missing from resume
- strengths: array of strong matching points
- suggestions: array of improvement suggestions

Resume: {request.resume_data or ""}

Job Description: {request.job_description or ""}"""
        response = await self._complete(prompt, max_tokens=1000)
        return parse_job_match(response["content"])

    async def suggest_skills(self, request: AIRequest) -> dict:
        prompt = f"""Current Skills: {request.skills or ""}

Job Description: {request.job_description or ""}

Suggest 5-8 additional skills that would be valuable for this role but are not already listed.
Return as JSON array of skill names only."""
        return await self._complete(prompt, max_tokens=400)

    async def generate_resume(self, request: AIRequest) -> dict:
        # Composite generation currently produces the summary section
        return await self.enhance_summary(request)

    async def _complete(self, prompt: str, max_tokens: int) -> dict:
        start = time.monotonic()
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=min(max_tokens, get_settings().ai_max_tokens),
                temperature=self.temperature,
            )
            content = response.choices[0].message.content or ""
        except (OpenAIError, IndexError, AttributeError) as e:
            logger.error(f"[AI] Completion failed: {type(e).__name__}: {e}")
            raise ExternalServiceError("Failed to call AI API") from e

        elapsed_ms = round((time.monotonic() - start) * 1000)
        usage = getattr(response, "usage", None)
        logger.info(f"[AI] Completion finished in {elapsed_ms}ms", extra={"duration_ms": elapsed_ms})
        return {
            "content": content.strip(),
            "model": getattr(response, "model", None) or self.model,
            "tokensUsed": getattr(usage, "total_tokens", 0) if usage else 0,
            "responseTime": elapsed_ms,
        }


class CachedAIService:
    """Serves repeated identical requests from AICache instead of the API."""

    OPERATIONS = (
        "enhance_summary",
        "enhance_work_experience",
        "analyze_job_match",
        "suggest_skills",
        "generate_resume",
    )

    def __init__(self, service: AIService, cache: AICache):
        self.service = service
        self.cache = cache

    async def call(self, operation: str, request: AIRequest) -> dict:
        if operation not in self.OPERATIONS:
            raise ValueError(f"Unknown AI operation: {operation}")

        # generate_resume shares the summary prompt, so it shares its entries too
        cache_op = "enhance_summary" if operation == "generate_resume" else operation
        key = payload_key(cache_op, request.model_dump())

        cached = await self.cache.get(key)
        if cached is not None:
            logger.info(f"[AI] Cache hit for {operation}", extra={"operation": operation, "cache": "hit"})
            return cached

        result = await getattr(self.service, operation)(request)
        await self.cache.set(key, result)
        return result

    async def enhance_summary(self, request: AIRequest) -> dict:
        return await self.call("enhance_summary", request)

    async def enhance_work_experience(self, request: AIRequest) -> dict:
        return await self.call("enhance_work_experience", request)

    async def analyze_job_match(self, request: AIRequest) -> dict:
        return await self.call("analyze_job_match", request)

    async def suggest_skills(self, request: AIRequest) -> dict:
        return await self.call("suggest_skills", request)

    async def generate_resume(self, request: AIRequest) -> dict:
        return await self.call("generate_resume", request)
