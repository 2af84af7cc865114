"""Request-payload Pydantic models for authentication endpoints."""

from typing import Annotated, Optional

from pydantic import BaseModel, Field

from cardvault.core.exceptions import PasswordMismatchError

# Upper bounds only; the domain applies the real rules.
EmailInput = Annotated[str, Field(max_length=320, examples=["john@example.com"])]
PasswordInput = Annotated[str, Field(max_length=1024, examples=["pass1234"])]
TokenInput = Annotated[str, Field(min_length=1, max_length=4096, examples=["eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9..."])]


class RegisterRequest(BaseModel):
    """Payload expected by ``POST /auth/register``."""

    email: EmailInput
    password: PasswordInput
    password_confirm: PasswordInput

    def ensure_passwords_match(self) -> None:
        """Raises ``PasswordMismatchError`` when the two entries differ."""
        if self.password != self.password_confirm:
            raise PasswordMismatchError()


class LoginRequest(BaseModel):
    """Payload expected by ``POST /auth/login``."""

    email: EmailInput
    password: PasswordInput


class RefreshRequest(BaseModel):
    """Payload expected by ``POST /auth/refresh``."""

    refresh_token: TokenInput


class ForgotPasswordRequest(BaseModel):
    """Payload expected by ``POST /auth/password-reset/request``."""

    email: EmailInput


class ResetPasswordRequest(BaseModel):
    """Payload expected by ``POST /auth/password-reset/confirm``."""

    token: TokenInput
    new_password: PasswordInput
    password_confirm: Optional[str] = Field(default=None, max_length=1024)

    def ensure_passwords_match(self) -> None:
        if self.password_confirm is not None and self.password_confirm != self.new_password:
            raise PasswordMismatchError()


class VerifyEmailRequest(BaseModel):
    """Payload expected by ``POST /auth/verify-email``."""

    token: TokenInput


class ResendVerificationRequest(BaseModel):
    """Payload expected by ``POST /auth/verify-email/resend``."""

    email: EmailInput


class ChangePasswordRequest(BaseModel):
    """Payload expected by ``POST /auth/change-password``."""

    current_password: PasswordInput
    new_password: PasswordInput
    password_confirm: Optional[str] = Field(default=None, max_length=1024)

    def ensure_passwords_match(self) -> None:
        if self.password_confirm is not None and self.password_confirm != self.new_password:
            raise PasswordMismatchError()
