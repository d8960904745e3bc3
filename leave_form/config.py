"""
Configuration management using Pydantic Settings.
Reads from environment variables.
"""

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    model_config = ConfigDict(env_file=".env", case_sensitive=False)

    # External leave-management API
    leave_api_base_url: str = Field(
        default="http://localhost:8080/api", alias="LEAVE_API_BASE_URL"
    )
    employees_api_base_url: str | None = Field(default=None, alias="EMPLOYEES_API_BASE_URL")
    http_timeout_seconds: float = Field(default=10.0, alias="HTTP_TIMEOUT_SECONDS")

    # Form rules
    hours_per_workday: float = Field(default=8, gt=0, alias="HOURS_PER_WORKDAY")

    # Draft store controls
    max_drafts: int = Field(default=1000, alias="MAX_DRAFTS")
    draft_ttl_seconds: int = Field(default=3600, alias="DRAFT_TTL_SECONDS")

    # Application Configuration
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Circuit Breaker Configuration
    circuit_breaker_failure_threshold: int = Field(
        default=5, alias="CIRCUIT_BREAKER_FAILURE_THRESHOLD"
    )
    circuit_breaker_timeout: int = Field(default=60, alias="CIRCUIT_BREAKER_TIMEOUT")


# Global settings instance
settings = Settings()
