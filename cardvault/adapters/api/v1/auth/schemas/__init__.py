"""Authentication API schemas.

Request models only check shape (types, presence, length caps); email and
password rules are enforced by the domain so the API and the service agree
on them.
"""

from .requests import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResendVerificationRequest,
    ResetPasswordRequest,
    VerifyEmailRequest,
)
from .responses import AccountOut, AuthResponse, MessageResponse, SessionListOut, SessionOut, TokenPairOut

__all__ = [
    "AccountOut",
    "AuthResponse",
    "ChangePasswordRequest",
    "ForgotPasswordRequest",
    "LoginRequest",
    "MessageResponse",
    "RefreshRequest",
    "RegisterRequest",
    "ResendVerificationRequest",
    "ResetPasswordRequest",
    "SessionListOut",
    "SessionOut",
    "TokenPairOut",
    "VerifyEmailRequest",
]
