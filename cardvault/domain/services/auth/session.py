import hashlib
import json
from datetime import datetime, timezone
from typing import List, Optional

from structlog import get_logger

from cardvault.domain.interfaces.services import ISessionStore
from cardvault.domain.value_objects.auth_config import AuthConfig
from cardvault.domain.value_objects.device_session import DeviceSession
from cardvault.domain.value_objects.token import TokenClaims, mask_token_id

logger = get_logger(__name__)


class SessionService:
    """Owns the session-store layout for refresh sessions and revocations.

    The store only offers single-key atomicity; everything here is built from
    single-key operations:

    - ``refresh_token:<sha256(token)>`` exists while the refresh token is live.
    - ``access_token_blacklist:<jti>`` marks an access token revoked early.
    - ``account_tokens_revoked_at:<account_id>`` rejects every token of the
      account issued before the stored timestamp.
    - ``used_token:<jti>`` marks a single-purpose token as consumed.
    - ``device_session:<session_id>`` holds the metadata of one signed-in
      device; tokens naming a missing device session are refused.
    - ``account_device_sessions:<account_id>`` is the set of the account's
      device session ids.

    Every key expires once the tokens it concerns would have expired anyway.

    Attributes:
        store (ISessionStore): The key/value cache.
        config (AuthConfig): Token lifetimes.
    """

    REFRESH_PREFIX = "refresh_token:"
    BLACKLIST_PREFIX = "access_token_blacklist:"
    WATERMARK_PREFIX = "account_tokens_revoked_at:"
    USED_TOKEN_PREFIX = "used_token:"
    DEVICE_SESSION_PREFIX = "device_session:"
    DEVICE_INDEX_PREFIX = "account_device_sessions:"

    def __init__(self, store: ISessionStore, config: AuthConfig):
        self.store = store
        self.config = config

    @classmethod
    def refresh_key(cls, token: str) -> str:
        """The key under which a refresh token's session entry is stored."""
        return cls.REFRESH_PREFIX + hashlib.sha256(token.encode()).hexdigest()

    @classmethod
    def blacklist_key(cls, jti: str) -> str:
        return cls.BLACKLIST_PREFIX + jti

    @classmethod
    def watermark_key(cls, account_id: int) -> str:
        return f"{cls.WATERMARK_PREFIX}{account_id}"

    @classmethod
    def used_token_key(cls, jti: str) -> str:
        return cls.USED_TOKEN_PREFIX + jti

    @classmethod
    def device_session_key(cls, session_id: str) -> str:
        return cls.DEVICE_SESSION_PREFIX + session_id

    @classmethod
    def device_index_key(cls, account_id: int) -> str:
        return f"{cls.DEVICE_INDEX_PREFIX}{account_id}"

    @property
    def _session_ttl(self) -> int:
        return int(self.config.refresh_token_ttl.total_seconds())

    # ------------------------------------------------------------------
    # Refresh sessions
    # ------------------------------------------------------------------

    async def store_refresh_session(self, token: str, claims: TokenClaims) -> None:
        """Records ``token`` as live for the rest of its lifetime."""
        meta = json.dumps(
            {
                "account_id": claims.subject,
                "session_id": claims.session_id,
                "issued_at": claims.issued_at.isoformat(),
            }
        )
        await self.store.set(self.refresh_key(token), meta, max(claims.remaining_seconds(), 1))
        logger.debug("Refresh session stored", account_id=claims.subject, jti=claims.masked_id())

    async def is_refresh_session_live(self, token: str) -> bool:
        return await self.store.exists(self.refresh_key(token))

    async def rotate(self, old_token: str, new_token: str, new_claims: TokenClaims) -> bool:
        """Replaces the session of ``old_token`` with one for ``new_token``.

        The delete and the set are two operations. The delete's result gates
        the set: when two requests race on the same old token, only the one
        whose delete removed the entry stores a new session, the other gets
        ``False`` and must refuse the refresh.

        Returns:
            bool: Whether this call consumed ``old_token``.
        """
        removed = await self.store.delete(self.refresh_key(old_token))
        if not removed:
            logger.warning(
                "Refresh session already consumed during rotation",
                account_id=new_claims.subject,
            )
            return False
        await self.store_refresh_session(new_token, new_claims)
        return True

    async def revoke_refresh_session(self, token: str) -> bool:
        """Deletes the session of ``token``; returns whether one existed."""
        return await self.store.delete(self.refresh_key(token))

    # ------------------------------------------------------------------
    # Device sessions
    # ------------------------------------------------------------------

    async def start_device_session(
        self,
        account_id: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> DeviceSession:
        """Records a new signed-in device for ``account_id``."""
        session = DeviceSession.start(account_id, ip_address=ip_address, user_agent=user_agent)
        await self.store.set(self.device_session_key(session.session_id), session.to_json(), self._session_ttl)
        await self.store.add_to_set(self.device_index_key(account_id), session.session_id, self._session_ttl)
        logger.info(
            "Device session started",
            account_id=account_id,
            session_id=mask_token_id(session.session_id),
            device=session.device_info,
        )
        return session

    async def get_device_session(self, session_id: str) -> Optional[DeviceSession]:
        raw = await self.store.get(self.device_session_key(session_id))
        if raw is None:
            return None
        try:
            return DeviceSession.from_json(raw)
        except ValueError:
            logger.error("Unreadable device session", session_id=mask_token_id(session_id))
            return None

    async def is_device_session_live(self, claims: TokenClaims) -> bool:
        """Whether the device session named by ``claims`` still exists.

        Tokens that name no device session are not bound to one and pass.
        """
        if claims.session_id is None:
            return True
        return await self.store.exists(self.device_session_key(claims.session_id))

    async def touch_device_session(self, session_id: str) -> Optional[DeviceSession]:
        """Moves the session's last activity to now and restarts its lifetime.

        Returns:
            Optional[DeviceSession]: The updated session, ``None`` if it is gone.
        """
        session = await self.get_device_session(session_id)
        if session is None:
            return None
        touched = session.touched()
        await self.store.set(self.device_session_key(session_id), touched.to_json(), self._session_ttl)
        await self.store.expire(self.device_index_key(session.account_id), self._session_ttl)
        return touched

    async def list_device_sessions(self, account_id: int) -> List[DeviceSession]:
        """The account's live device sessions, most recently active first.

        Ids left in the index by sessions that already expired are pruned.
        """
        sessions = []
        for session_id in await self.store.set_members(self.device_index_key(account_id)):
            session = await self.get_device_session(session_id)
            if session is None or session.account_id != account_id:
                await self.store.remove_from_set(self.device_index_key(account_id), session_id)
                continue
            sessions.append(session)
        return sorted(sessions, key=lambda s: s.last_activity, reverse=True)

    async def end_device_session(self, account_id: int, session_id: str) -> bool:
        """Deletes one device session; returns whether it existed."""
        removed = await self.store.delete(self.device_session_key(session_id))
        await self.store.remove_from_set(self.device_index_key(account_id), session_id)
        if removed:
            logger.info("Device session ended", account_id=account_id, session_id=mask_token_id(session_id))
        return removed

    async def end_all_device_sessions(self, account_id: int) -> int:
        """Deletes every device session of ``account_id``; returns how many existed."""
        ended = 0
        for session_id in await self.store.set_members(self.device_index_key(account_id)):
            if await self.store.delete(self.device_session_key(session_id)):
                ended += 1
        await self.store.delete(self.device_index_key(account_id))
        logger.info("All device sessions ended", account_id=account_id, count=ended)
        return ended

    # ------------------------------------------------------------------
    # Revocation
    # ------------------------------------------------------------------

    async def blacklist_access_token(self, jti: str, ttl: int) -> None:
        """Marks the access token ``jti`` revoked for ``ttl`` seconds.

        A non-positive ``ttl`` means the token already expired and nothing is
        written.
        """
        if ttl <= 0:
            return
        await self.store.set(self.blacklist_key(jti), "revoked", ttl)
        logger.info("Access token blacklisted", jti=mask_token_id(jti), ttl=ttl)

    async def is_access_token_blacklisted(self, jti: str) -> bool:
        return await self.store.exists(self.blacklist_key(jti))

    async def revoke_all_for_account(self, account_id: int, now: Optional[datetime] = None) -> None:
        """Rejects every token of ``account_id`` issued before ``now``.

        Refresh sessions are keyed by token hash and cannot be enumerated per
        account, so a timestamp watermark is stored instead and checked on
        every verification. It lives as long as a refresh token can. The
        account's device sessions are ended as well.
        """
        now = now or datetime.now(timezone.utc)
        await self.store.set(self.watermark_key(account_id), repr(now.timestamp()), self._session_ttl)
        logger.info("All tokens revoked for account", account_id=account_id)
        await self.end_all_device_sessions(account_id)

    async def is_revoked_by_watermark(self, claims: TokenClaims) -> bool:
        value = await self.store.get(self.watermark_key(claims.subject))
        if value is None:
            return False
        try:
            revoked_at = float(value)
        except ValueError:
            logger.error("Unreadable revocation watermark", account_id=claims.subject)
            return True
        return claims.issued_at.timestamp() < revoked_at

    async def consume_single_use(self, claims: TokenClaims) -> bool:
        """Marks a single-purpose token used.

        Returns:
            bool: True the first time, False on every replay.
        """
        first_use = await self.store.set_nx(
            self.used_token_key(claims.token_id), "used", max(claims.remaining_seconds(), 1)
        )
        if not first_use:
            logger.warning(
                "Single-use token replayed",
                account_id=claims.subject,
                token_type=claims.token_type.value,
                jti=claims.masked_id(),
            )
        return first_use
