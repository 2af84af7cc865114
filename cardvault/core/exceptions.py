"""Centralized, structured exception hierarchy for cardvault.

Each exception carries a machine-readable `code` for programmatic error
handling and a human-readable `message` for logging and user feedback.

The hierarchy is designed to:
- Provide clear, specific errors for the credential and token flows.
- Map cleanly to HTTP status codes in the API layer (see ``core.handlers``).
- Stay deliberately coarse where detail would help an attacker: every token
  failure surfaces as `InvalidTokenError`, every login failure as
  `InvalidCredentialsError`.
"""

from __future__ import annotations

from typing import Final, Sequence

__all__: Final = [
    "CardvaultError",
    "ValidationError",
    "InvalidEmailError",
    "InvalidPasswordError",
    "PasswordMismatchError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "EmailAlreadyExistsError",
    "SessionNotFoundError",
    "InfrastructureError",
    "TransactionFailureError",
    "CacheStoreError",
    "EmailDeliveryError",
    "TokenVerificationError",
    "MalformedTokenError",
    "ExpiredTokenError",
    "SignatureInvalidError",
    "WrongTokenTypeError",
]


class CardvaultError(Exception):
    """Base exception class for all custom errors in the application.

    Attributes:
        message (str): A human-readable error message, suitable for logging.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Validation errors (map to 400 Bad Request)
# ---------------------------------------------------------------------------


class ValidationError(CardvaultError):
    """Raised for general input validation failures."""

    def __init__(self, message: str, code: str = "validation_error"):
        super().__init__(message, code)


class InvalidEmailError(ValidationError):
    """Raised when an email address fails normalization or grammar checks."""

    def __init__(self, message: str = "Invalid email format", code: str = "invalid_email"):
        super().__init__(message, code)


class InvalidPasswordError(ValidationError):
    """Raised when a password does not satisfy the configured policy.

    All violated rules are collected in ``violations`` so a client can show
    them together rather than one per round trip.
    """

    def __init__(
        self,
        message: str = "Password does not meet the requirements",
        code: str = "invalid_password",
        violations: Sequence[str] = (),
    ):
        super().__init__(message, code)
        self.violations = list(violations)


class PasswordMismatchError(ValidationError):
    """Raised when ``password`` and ``password_confirm`` differ."""

    def __init__(self, message: str = "Passwords do not match", code: str = "password_mismatch"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Auth-related errors (map to 401 Unauthorized)
# ---------------------------------------------------------------------------


class AuthenticationError(CardvaultError):
    """Raised for general authentication failures."""

    def __init__(self, message: str, code: str = "authentication_error"):
        super().__init__(message, code)


class InvalidCredentialsError(AuthenticationError):
    """Raised when a login or password check fails.

    Covers unknown email, wrong password and deactivated account alike, so the
    response never tells a caller which of them applied.
    """

    def __init__(self, message: str = "Invalid email or password", code: str = "invalid_credentials"):
        super().__init__(message, code)


class InvalidTokenError(AuthenticationError):
    """Raised for any token that cannot be accepted.

    Malformed, expired, wrongly typed, badly signed, blacklisted, rotated-away
    and revoked tokens all map here.
    """

    def __init__(self, message: str = "Invalid or expired token", code: str = "invalid_token"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Conflict errors (map to 409 Conflict)
# ---------------------------------------------------------------------------


class EmailAlreadyExistsError(CardvaultError):
    """Raised when registering an email that already belongs to an account."""

    def __init__(self, message: str = "Email already registered", code: str = "email_already_exists"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Not found errors (map to 404 Not Found)
# ---------------------------------------------------------------------------


class SessionNotFoundError(CardvaultError):
    """Raised when a device session does not exist or belongs to another account.

    Both cases look the same to the caller, so session ids of other accounts
    cannot be discovered.
    """

    def __init__(self, message: str = "Session not found", code: str = "session_not_found"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Infrastructure errors (map to 500 Internal Server Error)
# ---------------------------------------------------------------------------


class InfrastructureError(CardvaultError):
    """Base class for failures of the stores and services the domain relies on."""

    def __init__(self, message: str, code: str = "infrastructure_error"):
        super().__init__(message, code)


class TransactionFailureError(InfrastructureError):
    """Wraps a primary-store failure that aborted a transaction."""

    def __init__(self, message: str = "Transaction failed", code: str = "transaction_failure"):
        super().__init__(message, code)


class CacheStoreError(InfrastructureError):
    """Wraps a failure of the ephemeral cache store backing sessions."""

    def __init__(self, message: str = "Cache store unavailable", code: str = "cache_store_error"):
        super().__init__(message, code)


class EmailDeliveryError(InfrastructureError):
    """Raised when an email cannot be rendered or delivered."""

    def __init__(self, message: str = "Email delivery failed", code: str = "email_delivery_error"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Token verification errors (internal to the token service)
# ---------------------------------------------------------------------------


class TokenVerificationError(CardvaultError):
    """Base class for the precise reasons a token failed verification.

    These never leave the domain layer: the orchestrator collapses them into
    `InvalidTokenError`. They exist so logs and tests can tell the cases apart.
    """

    def __init__(self, message: str, code: str = "token_verification_error"):
        super().__init__(message, code)


class MalformedTokenError(TokenVerificationError):
    def __init__(self, message: str = "Token is malformed", code: str = "token_malformed"):
        super().__init__(message, code)


class ExpiredTokenError(TokenVerificationError):
    def __init__(self, message: str = "Token has expired", code: str = "token_expired"):
        super().__init__(message, code)


class SignatureInvalidError(TokenVerificationError):
    def __init__(self, message: str = "Token signature is invalid", code: str = "token_signature_invalid"):
        super().__init__(message, code)


class WrongTokenTypeError(TokenVerificationError):
    def __init__(self, message: str = "Token type does not match", code: str = "token_wrong_type"):
        super().__init__(message, code)
