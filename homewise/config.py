"""Application configuration."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_ENV: str = "development"
    API_V1_PREFIX: str = "/api"

    # Frontend
    FRONTEND_URL: str = "http://localhost:3000"

    # OpenAI
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o"
    OPENAI_SUMMARY_MODEL: str = "gpt-4o"
    OPENAI_FAST_MODEL: str = "gpt-4o-mini"
    OPENAI_MAX_TOKENS: int = 2048

    # Upstream data providers
    FRED_API_KEY: str = ""
    BLS_API_KEY: str = ""
    RAPIDAPI_KEY: str = ""
    UPSTREAM_TIMEOUT_SECONDS: float = 10.0

    # Orchestration
    SYNTHESIS_TIMEOUT_SECONDS: float = 15.0
    CHAT_MAX_TOOL_ITERATIONS: int = 5

    # Guardrail policy
    GUARDRAIL_MAX_MESSAGE_LENGTH: int = 2000
    GUARDRAIL_SHORT_MESSAGE_BYPASS: int = 5
    GUARDRAIL_DEVIATION_THRESHOLD: float = 0.20

    # Rate limiting
    RATE_LIMIT_DEFAULT: str = "200/hour"
    RATE_LIMIT_CHAT: str = "60/hour"

    # CORS
    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        if self.APP_ENV == "development":
            return ["*"]  # Allow all origins in development
        return [self.FRONTEND_URL, "http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
