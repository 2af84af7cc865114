"""Token value objects for domain modeling.

These value objects give the signed tokens the service issues a typed shape:
a closed set of token purposes, the verified claims of a token, and the pair
of credentials returned by login and refresh.
"""

import base64
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, Optional


class TokenType(str, Enum):
    """The purpose a token was issued for.

    The type is bound into the signed claims of every token and checked on
    every verification, so a refresh token can never be presented where an
    access token is expected (and so on for every pair of purposes).
    """

    ACCESS = "access"
    REFRESH = "refresh"
    PASSWORD_RESET = "password_reset"
    EMAIL_VERIFY = "email_verify"


def generate_token_id() -> str:
    """Generate a cryptographically secure token id (256 bits, 43-char base64url)."""
    raw_bytes = secrets.token_bytes(32)
    return base64.urlsafe_b64encode(raw_bytes).rstrip(b"=").decode("ascii")


def mask_token_id(jti: str) -> str:
    """Return masked token id for safe logging."""
    return jti[:4] + "*" * max(len(jti) - 4, 0)


@dataclass(frozen=True)
class TokenClaims:
    """The verified claims of a signed token.

    Attributes:
        subject: The account id the token was issued to.
        token_type: The purpose of the token.
        issued_at: ``iat`` claim, timezone-aware UTC with microsecond precision.
        expires_at: ``exp`` claim, timezone-aware UTC.
        issuer: ``iss`` claim.
        token_id: ``jti`` claim, unique per token.
        session_id: Optional ``sid`` claim naming the device session an
            access or refresh token belongs to.
    """

    REQUIRED_CLAIMS: ClassVar[tuple] = ("sub", "type", "iat", "exp", "iss", "jti")

    subject: int
    token_type: TokenType
    issued_at: datetime
    expires_at: datetime
    issuer: str
    token_id: str
    session_id: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """Returns the JWT payload encoding these claims."""
        payload = {
            "sub": str(self.subject),
            "type": self.token_type.value,
            "iat": round(self.issued_at.timestamp(), 6),
            "exp": int(self.expires_at.timestamp()),
            "iss": self.issuer,
            "jti": self.token_id,
        }
        if self.session_id is not None:
            payload["sid"] = self.session_id
        return payload

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "TokenClaims":
        """Builds claims from a decoded payload.

        Raises:
            ValueError: If a claim is missing or has the wrong shape.
        """
        missing = [name for name in cls.REQUIRED_CLAIMS if name not in payload]
        if missing:
            raise ValueError(f"Missing required claims: {', '.join(missing)}")
        return cls(
            subject=int(payload["sub"]),
            token_type=TokenType(payload["type"]),
            issued_at=datetime.fromtimestamp(float(payload["iat"]), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
            issuer=str(payload["iss"]),
            token_id=str(payload["jti"]),
            session_id=str(payload["sid"]) if payload.get("sid") is not None else None,
        )

    def remaining_seconds(self, now: Optional[datetime] = None) -> int:
        """Seconds until expiry, never negative."""
        now = now or datetime.now(timezone.utc)
        return max(int((self.expires_at - now).total_seconds()), 0)

    def masked_id(self) -> str:
        return mask_token_id(self.token_id)


@dataclass(frozen=True)
class TokenPair:
    """An access/refresh token pair as returned by login and refresh.

    Attributes:
        access_token: Encoded access token.
        refresh_token: Encoded refresh token.
        expires_in: Access token lifetime in seconds.
        refresh_expires_in: Refresh token lifetime in seconds.
        token_type: Authorization scheme for the access token.
    """

    access_token: str = field(repr=False)
    refresh_token: str = field(repr=False)
    expires_in: int
    refresh_expires_in: int
    token_type: str = "Bearer"
