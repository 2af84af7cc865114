"""The immutable configuration value handed to the auth services at startup."""

from dataclasses import dataclass, field
from datetime import timedelta

from .password import PasswordPolicy
from .token import TokenType


@dataclass(frozen=True)
class AuthConfig:
    """Signing material, lifetimes and credential rules for the auth services.

    Built once from :class:`cardvault.core.config.Settings` (see
    ``Settings.auth_config``) and passed explicitly to ``TokenService``,
    ``CredentialValidator``, ``SessionService`` and ``AuthService``.
    """

    jwt_secret_key: str = field(repr=False)
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "cardvault"
    access_token_ttl: timedelta = timedelta(minutes=15)
    refresh_token_ttl: timedelta = timedelta(days=7)
    password_reset_token_ttl: timedelta = timedelta(minutes=60)
    email_verification_token_ttl: timedelta = timedelta(hours=24)
    password_policy: PasswordPolicy = field(default_factory=PasswordPolicy)
    bcrypt_rounds: int = 12
    send_verification_on_register: bool = True

    def __post_init__(self) -> None:
        if len(self.jwt_secret_key) < 32:
            raise ValueError("JWT secret key must be at least 32 characters long")

    def ttl_for(self, token_type: TokenType) -> timedelta:
        """Returns the lifetime of tokens of ``token_type``."""
        return {
            TokenType.ACCESS: self.access_token_ttl,
            TokenType.REFRESH: self.refresh_token_ttl,
            TokenType.PASSWORD_RESET: self.password_reset_token_ttl,
            TokenType.EMAIL_VERIFY: self.email_verification_token_ttl,
        }[token_type]
