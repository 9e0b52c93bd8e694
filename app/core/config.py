from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List, Union

class Settings(BaseSettings):
    # Database Configuration - must be set via environment variable
    DATABASE_URL: str = ""

    # CORS Configuration
    ALLOWED_ORIGINS: Union[List[str], str] = ["http://localhost:3000"]

    # External API Keys
    ANTHROPIC_API_KEY: str = ""

    # Operator views such as /api/status/spending; those routes are disabled while unset
    OPERATOR_API_KEY: str = ""

    # AI models: the extraction model reads pages, photos and transcripts,
    # the utility model handles repair, dual-unit enhancement and translation
    EXTRACTION_MODEL: str = "claude-sonnet-4-20250514"
    UTILITY_MODEL: str = "claude-haiku-4-5-20251001"
    EXTRACTION_MAX_TOKENS: int = 2500
    PHOTO_EXTRACTION_MAX_TOKENS: int = 4000
    VIDEO_EXTRACTION_MAX_TOKENS: int = 3000
    ENHANCE_MAX_TOKENS: int = 2500
    REPAIR_MAX_TOKENS: int = 3000
    TRANSLATE_MAX_TOKENS: int = 3000
    AI_REQUEST_TIMEOUT_SECONDS: float = 120.0

    # Source fetching
    FETCH_TIMEOUT_SECONDS: float = 30.0
    MAX_PAGE_TEXT_CHARS: int = 15000
    MAX_TRANSCRIPT_CHARS: int = 12000
    MIN_TRANSCRIPT_LENGTH: int = 50
    MAX_PHOTOS: int = 4

    # Extraction pipeline policy
    MAX_STEP_LENGTH: int = 400
    MIN_STEP_LENGTH: int = 10
    TOO_FEW_STEPS_INGREDIENT_THRESHOLD: int = 5
    TOO_FEW_STEPS_MINIMUM: int = 3
    MAX_REPAIR_ATTEMPTS: int = 1
    DEFAULT_SERVINGS: int = 4

    # Cost accounting (USD per billable operation)
    COST_PER_URL_RECIPE: float = 0.03
    COST_PER_PHOTO_RECIPE: float = 0.06
    FAST_PATH_COST_FACTOR: float = 0.5
    VIDEO_COST_FACTOR: float = 1.5
    COST_PER_TRANSLATION: float = 0.01

    # Spending circuit breaker (USD)
    DAILY_SPENDING_LIMIT: float = 10.0
    MONTHLY_SPENDING_LIMIT: float = 100.0

    # Usage quotas
    INITIAL_FREE_RECIPES: int = 10
    FREE_RECIPES_PER_MONTH: int = 3
    BASIC_RECIPES_PER_MONTH: int = 20

    # Rate Limiting Configuration
    RATE_LIMIT_ENABLED: bool = True

    # General limit applied to every route
    DEFAULT_RATE_LIMIT: str = "100/minute"

    # Billable extraction endpoints (more restrictive)
    EXTRACTION_RATE_LIMIT: str = "10/minute"

    # Request size limits (in bytes); photos arrive inline as data URIs
    MAX_REQUEST_SIZE: int = 50 * 1024 * 1024  # 50MB

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_USAGE_EVENTS: bool = True
    AUDIT_LOG_DIR: str = "logs"

    @field_validator('ALLOWED_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',')]
        return v

    class Config:
        env_file = ".env"
        extra = "ignore"  # Ignore extra environment variables

settings = Settings()
