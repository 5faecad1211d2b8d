from functools import lru_cache

from pydantic import EmailStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from music_readiness.modules.quiz.variants import VARIANTS


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='forbid',
    )

    DATABASE_URL: str
    APP_ENV: str = 'development'
    CORS_ORIGINS: str = 'http://localhost:3000'
    LOG_LEVEL: str = 'INFO'

    QUIZ_DEFAULT_VARIANT: str = 'core'
    SUBMISSION_SOURCE: str = 'Music Readiness Score'
    RESULTS_CACHE_SIZE: int = 500

    ENRICHMENT_ENABLED: bool = True
    OPENAI_API_KEY: str | None = None
    OPENAI_API_BASE: str = 'https://api.openai.com/v1'
    OPENAI_MODEL: str = 'gpt-4.1-mini'
    OPENAI_PROJECT_ID: str | None = None
    OPENAI_TEXT_FORMAT: str | None = None
    OPENAI_TIMEOUT_MS: int = 45_000

    RESEND_API_KEY: str | None = None
    RESEND_API_BASE: str = 'https://api.resend.com'
    EMAIL_FROM: str = 'Music Readiness Quiz <quiz@example.com>'
    TEAM_EMAIL: EmailStr = 'team@example.com'
    APP_BASE_URL: str = 'http://localhost:3000'
    BOOKING_URL: str = 'http://localhost:3000/book'

    CELERY_BROKER_URL: str = 'redis://localhost:6379/0'
    CELERY_RESULT_BACKEND: str = 'redis://localhost:6379/1'
    CELERY_TASK_ALWAYS_EAGER: bool = False
    PARTIAL_DIGEST_INTERVAL_SECONDS: int = 86_400
    PARTIAL_DIGEST_MIN_AGE_MINUTES: int = 60

    RATE_LIMIT_MAX_REQUESTS: int = 30
    RATE_LIMIT_WINDOW_SECONDS: int = 60

    @field_validator('DATABASE_URL')
    @classmethod
    def validate_database_url(cls, value: str) -> str:
        if not value.startswith(('postgresql', 'sqlite')):
            raise ValueError('DATABASE_URL must point to PostgreSQL or SQLite')
        return value

    @field_validator('QUIZ_DEFAULT_VARIANT')
    @classmethod
    def validate_default_variant(cls, value: str) -> str:
        if value not in VARIANTS:
            raise ValueError(f"QUIZ_DEFAULT_VARIANT must be one of: {', '.join(VARIANTS)}")
        return value

    @field_validator('TEAM_EMAIL')
    @classmethod
    def normalize_team_email(cls, value: EmailStr) -> EmailStr:
        return str(value).strip().lower()

    @property
    def cors_origins(self) -> list[str]:
        return [item.strip() for item in self.CORS_ORIGINS.split(',') if item.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
