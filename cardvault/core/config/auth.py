"""Authentication settings: JWT signing, token lifetimes and password policy.
"""

import logging

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class AuthSettings(BaseSettings):
    """Defines settings for token issuance, session tracking and credential checks.

    Security Note:
        - JWT_SECRET_KEY signs every token the service issues. It must be a
          random value of at least 32 characters, stored outside version
          control and rotated regularly (OWASP A02:2021 - Cryptographic Failures).
        - Access tokens are short-lived to bound the blast radius of a leak;
          refresh tokens are long-lived but revocable through the session store.
    """

    # JWT settings
    JWT_SECRET_KEY: SecretStr = Field(default=SecretStr(""))
    JWT_ALGORITHM: str = Field(default="HS256", pattern="^HS(256|384|512)$")
    JWT_ISSUER: str = "cardvault"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=15, ge=1)
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(default=7, ge=1)
    PASSWORD_RESET_TOKEN_EXPIRE_MINUTES: int = Field(default=60, ge=1, le=1440)
    EMAIL_VERIFICATION_TOKEN_EXPIRE_HOURS: int = Field(default=24, ge=1, le=168)

    # Password policy
    PASSWORD_MIN_LENGTH: int = Field(default=8, ge=1)
    PASSWORD_MAX_LENGTH: int = Field(default=128, ge=8)
    PASSWORD_REQUIRE_LETTER: bool = True
    PASSWORD_REQUIRE_DIGIT: bool = True
    BCRYPT_WORK_FACTOR: int = Field(default=12, ge=4, le=31)

    # Send a verification link right after registration
    EMAIL_VERIFICATION_ON_REGISTER: bool = True

    @field_validator("JWT_SECRET_KEY")
    @classmethod
    def validate_secret_length(cls, value: SecretStr) -> SecretStr:
        """Rejects signing keys that are too short to resist brute force.

        An empty key is accepted here so that settings can be loaded for tooling
        (alembic, CLI); :meth:`Settings.validate_required_fields` refuses to
        start the API without one.
        """
        secret = value.get_secret_value()
        if secret and len(secret) < 32:
            logger.error("JWT_SECRET_KEY is shorter than 32 characters.")
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return value
