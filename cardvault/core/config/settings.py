"""Main application settings and configuration management.

This module composes all the application settings from the different modules
(app, database, redis, auth, email) into a single `Settings` class.

It loads settings from environment variables and .env files and validates them.
There is no module-level settings instance: the application factory builds one
with :func:`create_settings` and hands it (or the :class:`AuthConfig` derived
from it) to the components that need it.

Environment Support:
- Development: Uses .env, email test mode enabled
- Test: Uses .env.test, email test mode enabled
- Staging: Uses .env.staging, SMTP credentials required
- Production: Uses .env.production, SMTP credentials required
"""

import logging
import os
from datetime import timedelta
from pathlib import Path

from pydantic_settings import SettingsConfigDict

from cardvault.domain.value_objects.auth_config import AuthConfig
from cardvault.domain.value_objects.password import PasswordPolicy

from .app import AppSettings
from .auth import AuthSettings
from .database import DatabaseSettings
from .email import EmailSettings
from .redis import RedisSettings

logger = logging.getLogger(__name__)
logging.getLogger("passlib").setLevel(logging.ERROR)

_ENV_FILES = {
    "development": ".env",
    "test": ".env.test",
    "staging": ".env.staging",
    "production": ".env.production",
}


class Settings(AppSettings, DatabaseSettings, RedisSettings, AuthSettings, EmailSettings):
    """The main settings class that aggregates all application configurations.

    It inherits from all the specialized settings classes, providing a unified
    interface to all configuration parameters.

    Security Note:
        - Ensure all sensitive fields (JWT_SECRET_KEY, passwords) are securely
          stored and never logged or exposed (OWASP A02:2021).
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    def model_post_init(self, __context) -> None:
        # Emails are logged instead of sent outside staging/production
        if self.APP_ENV in ("development", "test"):
            self.EMAIL_TEST_MODE = True
        if self.APP_ENV == "development":
            self.DEBUG = True

    def validate_required_fields(self) -> None:
        """Validates that the fields the API cannot run without are set.

        Raises:
            ValueError: If a required field is missing or the SMTP
                configuration is unusable in staging/production.
        """
        required_fields = ["JWT_SECRET_KEY", "DATABASE_URL", "REDIS_URL"]
        missing_fields = []
        for field_name in required_fields:
            value = getattr(self, field_name, None)
            if hasattr(value, "get_secret_value"):
                value = value.get_secret_value()
            if not value:
                missing_fields.append(field_name)

        if missing_fields:
            error_msg = f"Missing required environment variables: {', '.join(missing_fields)}"
            logger.error(error_msg)
            raise ValueError(error_msg)

        self.validate_smtp_config()
        logger.info("All required environment variables are set.")

    def auth_config(self) -> AuthConfig:
        """Reduces the settings to the immutable value the auth services consume."""
        return AuthConfig(
            jwt_secret_key=self.JWT_SECRET_KEY.get_secret_value(),
            jwt_algorithm=self.JWT_ALGORITHM,
            jwt_issuer=self.JWT_ISSUER,
            access_token_ttl=timedelta(minutes=self.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_token_ttl=timedelta(days=self.REFRESH_TOKEN_EXPIRE_DAYS),
            password_reset_token_ttl=timedelta(minutes=self.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES),
            email_verification_token_ttl=timedelta(hours=self.EMAIL_VERIFICATION_TOKEN_EXPIRE_HOURS),
            password_policy=PasswordPolicy(
                min_length=self.PASSWORD_MIN_LENGTH,
                max_length=self.PASSWORD_MAX_LENGTH,
                require_letter=self.PASSWORD_REQUIRE_LETTER,
                require_digit=self.PASSWORD_REQUIRE_DIGIT,
            ),
            bcrypt_rounds=self.BCRYPT_WORK_FACTOR,
            send_verification_on_register=self.EMAIL_VERIFICATION_ON_REGISTER,
        )


def create_settings(**overrides) -> Settings:
    """Create a settings instance with environment-specific configuration.

    Args:
        **overrides: Field values that take precedence over the environment.

    Returns:
        Settings: Configured settings instance
    """
    env = os.getenv("APP_ENV", "development")
    env_file = _ENV_FILES.get(env, ".env")

    if env != "development" and Path(env_file).exists():
        logger.info("Loading environment configuration from %s", env_file)
        return Settings(_env_file=env_file, **overrides)
    if Path(".env").exists():
        logger.info("Loading environment configuration from .env (environment: %s)", env)
    else:
        logger.info("No .env file found, using environment variables only (environment: %s)", env)
    return Settings(**overrides)
