from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional
import os

class Settings(BaseSettings):
    # App Settings
    app_name: str = "ResumeBuilder"
    app_version: str = "1.0.0"
    debug: bool = False

    # API Settings
    backend_host: str = "0.0.0.0"
    backend_port: int = int(os.getenv("PORT", "8000"))
    allowed_origins: str = "http://localhost:3000,http://localhost:5173"

    # Database - DATABASE_URL from the platform, fallback to SQLite for local
    database_url: Optional[str] = None

    # Authentication (bearer tokens issued by the identity provider)
    jwt_secret: str = ""
    jwks_url: str = ""

    # AI completion API (OpenAI-compatible, Groq by default)
    ai_api_key: str = ""
    ai_base_url: str = "https://api.groq.com/openai/v1"
    ai_model: str = "llama-3.1-8b-instant"
    ai_max_tokens: int = 1000
    ai_temperature: float = 0.7
    ai_cache_max_entries: int = 512
    ai_cache_ttl_seconds: int = 24 * 3600

    # Object storage
    aws_s3_bucket: str = "resume-builder"
    aws_s3_region: str = "us-east-1"
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    storage_public_base_url: str = ""

    # Redis (optional, AI result cache)
    redis_url: str = ""

    # Statistics
    recent_window_days: int = 30

    class Config:
        env_file = ".env"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # database_url is also populated straight from DATABASE_URL by pydantic
        db_url = self.database_url or os.getenv("DATABASE_URL")
        if db_url:
            # SQLAlchemy async needs postgresql+asyncpg://
            if db_url.startswith("postgres://"):
                db_url = db_url.replace("postgres://", "postgresql+asyncpg://", 1)
            elif db_url.startswith("postgresql://"):
                db_url = db_url.replace("postgresql://", "postgresql+asyncpg://", 1)
            self.database_url = db_url
        else:
            self.database_url = "sqlite+aiosqlite:///./resume_builder.db"

@lru_cache()
def get_settings() -> Settings:
    return Settings()
