"""
Redis Connection Module

Creates the asynchronous Redis client used as the session store and adapts it
to the :class:`ISessionStore` port.

The client is created once in the FastAPI lifespan (:func:`create_redis_client`)
and closed at shutdown; request handlers reach it through ``app.state``.

**Security Note**: Use ``rediss://`` (REDIS_SSL) when Redis is reached over an
untrusted network. Session entries only ever hold token hashes, token ids and
account ids, never raw tokens or passwords.
"""

from typing import Optional, Set

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from cardvault.core.config.settings import Settings
from cardvault.core.exceptions import CacheStoreError
from cardvault.domain.interfaces.services import ISessionStore

logger = structlog.get_logger(__name__)


def create_redis_client(settings: Settings) -> Redis:
    """Build a client with string responses from the configured URL."""
    client = Redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
    logger.debug("Redis client created", host=settings.REDIS_HOST, db=settings.REDIS_DB)
    return client


class RedisSessionStore(ISessionStore):
    """``ISessionStore`` over ``redis.asyncio``.

    Every method but ``add_to_set`` is a single Redis command, so each is atomic
    on its key.
    ``RedisError`` is re-raised as ``CacheStoreError``.
    """

    def __init__(self, client: Redis):
        self.client = client

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.client.get(key)
        except RedisError as e:
            raise self._failure("get", e) from e

    async def set(self, key: str, value: str, ttl: int) -> None:
        try:
            await self.client.set(key, value, ex=ttl)
        except RedisError as e:
            raise self._failure("set", e) from e

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self.client.exists(key))
        except RedisError as e:
            raise self._failure("exists", e) from e

    async def delete(self, key: str) -> bool:
        try:
            return await self.client.delete(key) > 0
        except RedisError as e:
            raise self._failure("delete", e) from e

    async def set_nx(self, key: str, value: str, ttl: int) -> bool:
        try:
            return bool(await self.client.set(key, value, ex=ttl, nx=True))
        except RedisError as e:
            raise self._failure("set_nx", e) from e

    async def expire(self, key: str, ttl: int) -> bool:
        try:
            return bool(await self.client.expire(key, ttl))
        except RedisError as e:
            raise self._failure("expire", e) from e

    async def ttl(self, key: str) -> Optional[int]:
        # -2: missing key, -1: key without expiry
        try:
            remaining = await self.client.ttl(key)
        except RedisError as e:
            raise self._failure("ttl", e) from e
        return remaining if remaining >= 0 else None

    async def add_to_set(self, key: str, member: str, ttl: int) -> None:
        # SADD and EXPIRE are separate commands
        try:
            await self.client.sadd(key, member)
            await self.client.expire(key, ttl)
        except RedisError as e:
            raise self._failure("add_to_set", e) from e

    async def remove_from_set(self, key: str, member: str) -> bool:
        try:
            return await self.client.srem(key, member) > 0
        except RedisError as e:
            raise self._failure("remove_from_set", e) from e

    async def set_members(self, key: str) -> Set[str]:
        try:
            return set(await self.client.smembers(key))
        except RedisError as e:
            raise self._failure("set_members", e) from e

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            raise self._failure("ping", e) from e

    @staticmethod
    def _failure(operation: str, error: RedisError) -> CacheStoreError:
        logger.error("Session store operation failed", operation=operation, error=str(error))
        return CacheStoreError(f"Cache store {operation} failed")
