"""Immutable, self-validating value objects of the account domain."""

from .auth_config import AuthConfig
from .device_session import DeviceSession
from .email import Email
from .password import HashedPassword, Password, PasswordPolicy
from .token import TokenClaims, TokenPair, TokenType

__all__ = [
    "AuthConfig",
    "DeviceSession",
    "Email",
    "HashedPassword",
    "Password",
    "PasswordPolicy",
    "TokenClaims",
    "TokenPair",
    "TokenType",
]
