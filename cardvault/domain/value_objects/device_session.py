"""Device session value object.

A device session is what a login creates: one per client that signed in,
carried through every rotation of its refresh token and ended by logout or by
an explicit revocation. Access and refresh tokens name it in their ``sid``
claim.
"""

import json
import secrets
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timezone
from typing import Optional

UNKNOWN_DEVICE = "Unknown"
MAX_DEVICE_INFO_LENGTH = 255


def generate_session_id() -> str:
    """Generate a random session id (256 bits, 64 hex characters)."""
    return secrets.token_hex(32)


def describe_device(user_agent: Optional[str]) -> str:
    """A short, human-readable description of the client behind ``user_agent``."""
    if not user_agent or not user_agent.strip():
        return UNKNOWN_DEVICE
    return user_agent.strip()[:MAX_DEVICE_INFO_LENGTH]


@dataclass(frozen=True)
class DeviceSession:
    """Metadata of one signed-in device.

    Attributes:
        session_id: Random id, also carried in the tokens' ``sid`` claim.
        account_id: Owner of the session.
        created_at: Login time, timezone-aware UTC.
        last_activity: Time of the login or of the latest refresh.
        ip_address: Client address seen at login, when known.
        user_agent: ``User-Agent`` header sent at login, when present.
        device_info: Readable device description derived from ``user_agent``.
    """

    session_id: str
    account_id: int
    created_at: datetime
    last_activity: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    device_info: str = UNKNOWN_DEVICE

    @classmethod
    def start(
        cls,
        account_id: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "DeviceSession":
        now = now or datetime.now(timezone.utc)
        return cls(
            session_id=generate_session_id(),
            account_id=account_id,
            created_at=now,
            last_activity=now,
            ip_address=ip_address,
            user_agent=user_agent,
            device_info=describe_device(user_agent),
        )

    def touched(self, now: Optional[datetime] = None) -> "DeviceSession":
        """A copy with ``last_activity`` moved to ``now``."""
        return replace(self, last_activity=now or datetime.now(timezone.utc))

    def to_json(self) -> str:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["last_activity"] = self.last_activity.isoformat()
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str) -> "DeviceSession":
        """Parses a stored session.

        Raises:
            ValueError: If ``raw`` is not a stored session.
        """
        try:
            data = json.loads(raw)
            return cls(
                session_id=str(data["session_id"]),
                account_id=int(data["account_id"]),
                created_at=datetime.fromisoformat(data["created_at"]),
                last_activity=datetime.fromisoformat(data["last_activity"]),
                ip_address=data.get("ip_address"),
                user_agent=data.get("user_agent"),
                device_info=data.get("device_info") or UNKNOWN_DEVICE,
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Stored session is invalid: {e}") from e
