"""Application configuration management."""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables."""

    PROJECT_NAME: str = "Vocabulary Article Quiz"
    API_V1_STR: str = "/api/v1"

    DATABASE_URL: str = Field(
        "sqlite:///./data/vocab_quiz.db",
        description="SQLAlchemy database URL",
    )

    REDIS_URL: AnyUrl = Field(
        "redis://localhost:6379/0", description="Redis connection string for Celery"
    )

    BACKEND_CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins",
    )

    OPENAI_API_KEY: Optional[str] = None
    OPENAI_ORG_ID: Optional[str] = None
    ANTHROPIC_API_KEY: Optional[str] = None
    PRIMARY_LLM_PROVIDER: str = Field("openai", description="Preferred LLM provider key")
    SECONDARY_LLM_PROVIDER: Optional[str] = Field(
        "anthropic", description="Fallback LLM provider key"
    )
    OPENAI_MODEL: str = Field("gpt-3.5-turbo", description="Default OpenAI chat model")
    OPENAI_API_BASE: Optional[AnyUrl] = Field(
        None, description="Override base URL for OpenAI-compatible endpoints"
    )
    ANTHROPIC_MODEL: str = Field("claude-3-5-sonnet", description="Default Anthropic model")
    ANTHROPIC_API_BASE: Optional[AnyUrl] = Field(
        None, description="Override base URL for Anthropic endpoints"
    )
    LLM_REQUEST_TIMEOUT_SECONDS: float = Field(15.0, description="Timeout for a single LLM HTTP call")
    LLM_TOTAL_TIMEOUT_SECONDS: float = Field(
        30.0, description="Hard deadline for one provider across all retry attempts"
    )
    LLM_MAX_RETRIES: int = Field(2, description="Attempts per provider before giving up")

    ARTICLE_MAX_TOKENS: int = Field(300, description="Completion token budget for one article")
    ARTICLE_MAX_CHARS: int = Field(
        4000, description="Generated articles longer than this are rejected as malformed"
    )
    ARTICLE_TEMPERATURE: float = 0.7

    ARTICLE_CACHE_TTL_SECONDS: int = Field(3600, description="Volatile article cache TTL")
    ARTICLE_CACHE_MAX_KEYS: int = Field(1000, description="Volatile article cache capacity")
    ARTICLE_DURABLE_MAX_AGE_SECONDS: int = Field(
        86400, description="Durable entries not accessed for this long are deleted"
    )
    ARTICLE_DURABLE_MAX_ENTRIES: int = Field(1000, description="Durable article cache capacity")
    ARTICLE_EVICTION_EVERY_N_INSERTS: int = Field(
        10, description="Run the eviction policy after this many durable inserts"
    )
    ARTICLE_SINGLE_FLIGHT: bool = Field(
        True, description="Serialize concurrent generation for the same word set"
    )

    QUIZ_DEFAULT_WORD_COUNT: int = 5
    DAILY_PROGRESS_DEFAULT_DAYS: int = 7

    CELERY_BROKER_URL: Optional[AnyUrl] = None
    CELERY_RESULT_BACKEND: Optional[AnyUrl] = None

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parent.parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


settings = get_settings()
