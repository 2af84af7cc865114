"""Authentication domain services."""

from .auth_service import AuthService, LoginResult
from .credentials import CredentialValidator
from .session import SessionService
from .token import TokenService

__all__ = ["AuthService", "CredentialValidator", "LoginResult", "SessionService", "TokenService"]
