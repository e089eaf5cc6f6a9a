"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal, Self


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "IPA Analysis API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # API
    API_V1_PREFIX: str = "/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Security
    # IMPORTANT: must be set in .env file - no default for security
    JWT_SECRET_KEY: str = Field(..., description="JWT signing secret key (required)")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Likert scale bounds for closed answers
    LIKERT_MIN: int = 1
    LIKERT_MAX: int = 5

    # Open answers longer than this are rejected at the HTTP boundary
    OPEN_ANSWER_MAX_LENGTH: int = Field(default=5000, ge=1)

    # Pagination for admin list endpoints
    DEFAULT_PAGE_SIZE: int = Field(default=10, ge=1)
    MAX_PAGE_SIZE: int = Field(default=100, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_likert_bounds(self) -> Self:
        """Validate that the Likert scale has at least two points."""
        if self.LIKERT_MIN >= self.LIKERT_MAX:
            raise ValueError(
                f"LIKERT_MIN ({self.LIKERT_MIN}) must be lower than "
                f"LIKERT_MAX ({self.LIKERT_MAX})"
            )
        return self

    @model_validator(mode="after")
    def validate_page_sizes(self) -> Self:
        """Validate that the default page size fits under the maximum."""
        if self.DEFAULT_PAGE_SIZE > self.MAX_PAGE_SIZE:
            raise ValueError(
                f"DEFAULT_PAGE_SIZE ({self.DEFAULT_PAGE_SIZE}) must not exceed "
                f"MAX_PAGE_SIZE ({self.MAX_PAGE_SIZE})"
            )
        return self


# mypy doesn't understand that pydantic_settings loads required fields from env vars
settings = Settings()  # type: ignore[call-arg]
