"""
Application-specific settings.
"""
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Defines application-wide settings like project name, environment and logging.

    Security Note:
        - APP_BASE_URL is embedded in password-reset and verification links sent
          by email. It must point at a trusted, HTTPS origin in production so
          tokens are never delivered over plain HTTP.
    """
    PROJECT_NAME: str = "cardvault"
    VERSION: str = "0.1.0"
    APP_ENV: str = Field(default="development", pattern="^(development|test|staging|production)$")
    DEBUG: bool = False

    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    APP_BASE_URL: str = "http://localhost:8000"
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]

    @field_validator("APP_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        """Links are built as ``{APP_BASE_URL}/api/v1/...``."""
        return value.rstrip("/")

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()
