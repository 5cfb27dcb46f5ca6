from typing import List, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """
    Application configuration settings (Pydantic v2 style)
    """

    # Application settings
    APP_NAME: str = "Fundscope Analytics Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # MFAPI provider
    MFAPI_BASE_URL: str = "https://api.mfapi.in"
    SCHEME_FETCH_TIMEOUT: float = 15.0

    # Ingestion budget
    INGESTION_BATCH_SIZE: int = 50
    MAX_FUNDS_TO_INGEST: int = 500
    MIN_NAV_POINTS: int = 30

    # Fund heuristics (placeholders, not sourced figures)
    RISK_FREE_RATE: float = 6.0
    ALPHA_FRACTION: float = 0.1
    BETA_JITTER: bool = True
    AUM_PLACEHOLDER_MIN: int = 5000
    AUM_PLACEHOLDER_MAX: int = 55000

    # Insight generation (any OpenAI-compatible chat endpoint)
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: Optional[str] = None
    INSIGHT_MODEL: str = "gpt-4o"
    INSIGHT_TEMPERATURE: float = 0.7
    INSIGHT_MAX_TOKENS: int = 2000
    INSIGHT_TIMEOUT: float = 30.0
    INSIGHT_RETRY_ATTEMPTS: int = 3
    INSIGHT_RETRY_WAIT: float = 2.0

    # Recommendations
    RECOMMENDATION_LIMIT: int = 5

    # ✅ Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'LOG_LEVEL must be one of: {valid_levels}')
        return v.upper()

    @field_validator('INGESTION_BATCH_SIZE', 'MAX_FUNDS_TO_INGEST', 'MIN_NAV_POINTS', 'RECOMMENDATION_LIMIT')
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError('must be a positive integer')
        return v

    @field_validator('AUM_PLACEHOLDER_MAX')
    @classmethod
    def validate_aum_range(cls, v, info):
        lower = info.data.get('AUM_PLACEHOLDER_MIN', 0)
        if v <= lower:
            raise ValueError('AUM_PLACEHOLDER_MAX must be greater than AUM_PLACEHOLDER_MIN')
        return v


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
