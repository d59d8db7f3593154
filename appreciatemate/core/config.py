from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "AppreciateMate"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "postgresql+asyncpg://localhost:5432/appreciatemate"
    seed_on_startup: bool = True

    # Day boundaries, weekends and morning/evening windows are computed here
    local_timezone: str = "UTC"

    # AI suggestions
    anthropic_api_key: str = ""
    suggestion_model: str = "claude-3-5-haiku-20241022"
    llm_timeout_seconds: float = 20.0
    llm_max_tokens: int = 1024

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("local_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Reject timezone names zoneinfo can't resolve."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {value}")
        return value


settings = Settings()
