from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from resume_builder.config import get_settings
from resume_builder.database import init_db
from resume_builder.exceptions import ResumeBuilderError
from resume_builder.middleware.correlation import CorrelationMiddleware
from resume_builder.middleware.rate_limit import limiter
from resume_builder.routes import ai, pdf, resumes, sections
from resume_builder.services.redis_client import init_redis, close_redis
from resume_builder.utils.logger import logger

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} {settings.app_version}...")
    await init_db()
    await init_redis()
    logger.info(f"Backend ready at http://{settings.backend_host}:{settings.backend_port}")
    yield
    await close_redis()


app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(ResumeBuilderError)
async def resume_builder_error_handler(request: Request, exc: ResumeBuilderError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.message}", extra={"path": request.url.path})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# CORS - Explicit origins from config
allowed_origins = [origin.strip() for origin in settings.allowed_origins.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Correlation-ID"],
)
app.add_middleware(CorrelationMiddleware)


# Health check endpoint (minimal response to prevent information disclosure)
@app.get("/health")
async def health_check():
    return {"status": "ok"}


# Register routes
app.include_router(resumes.router, prefix="/api/resumes", tags=["Resumes"])
app.include_router(sections.router, prefix="/api", tags=["Sections"])
app.include_router(ai.router, prefix="/api/ai", tags=["AI"])
app.include_router(pdf.router, prefix="/api/pdf", tags=["PDF"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "resume_builder.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        reload=settings.debug
    )
