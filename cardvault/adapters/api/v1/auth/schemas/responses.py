"""Response Pydantic models for authentication endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from cardvault.domain.value_objects.device_session import DeviceSession
from cardvault.domain.value_objects.token import TokenPair


class AccountOut(BaseModel):
    """Public view of an account."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    email_verified: bool
    created_at: datetime
    last_login_at: Optional[datetime] = None


class TokenPairOut(BaseModel):
    """Access & refresh tokens with their lifetimes in seconds."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    refresh_expires_in: int

    @classmethod
    def from_domain(cls, pair: TokenPair) -> "TokenPairOut":
        return cls(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            token_type=pair.token_type,
            expires_in=pair.expires_in,
            refresh_expires_in=pair.refresh_expires_in,
        )


class AuthResponse(BaseModel):
    """Response returned by the login endpoint."""

    account: AccountOut
    tokens: TokenPairOut


class MessageResponse(BaseModel):
    message: str


class SessionOut(BaseModel):
    """A signed-in device of the current account."""

    id: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    device_info: str
    created_at: datetime
    last_activity: datetime
    is_current: bool = False

    @classmethod
    def from_domain(cls, session: DeviceSession, current_session_id: Optional[str] = None) -> "SessionOut":
        return cls(
            id=session.session_id,
            ip_address=session.ip_address,
            user_agent=session.user_agent,
            device_info=session.device_info,
            created_at=session.created_at,
            last_activity=session.last_activity,
            is_current=session.session_id == current_session_id,
        )


class SessionListOut(BaseModel):
    sessions: List[SessionOut]
    total: int
