from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from cardvault.core.exceptions import CacheStoreError
from cardvault.infrastructure.redis import RedisSessionStore


@pytest.fixture
def client():
    return AsyncMock()


@pytest.fixture
def store(client):
    return RedisSessionStore(client)


REDIS_COMMAND = {"set_nx": "set", "add_to_set": "sadd", "remove_from_set": "srem", "set_members": "smembers"}


@pytest.mark.asyncio
async def test_set_passes_ttl(store, client):
    await store.set("k", "v", 30)

    client.set.assert_awaited_once_with("k", "v", ex=30)


@pytest.mark.asyncio
async def test_set_nx_uses_nx_flag(store, client):
    client.set.return_value = None

    assert await store.set_nx("k", "v", 30) is False
    client.set.assert_awaited_once_with("k", "v", ex=30, nx=True)


@pytest.mark.asyncio
@pytest.mark.parametrize("deleted, expected", [(1, True), (0, False)])
async def test_delete_reports_existence(store, client, deleted, expected):
    client.delete.return_value = deleted

    assert await store.delete("k") is expected


@pytest.mark.asyncio
async def test_exists_is_boolean(store, client):
    client.exists.return_value = 1

    assert await store.exists("k") is True


@pytest.mark.asyncio
@pytest.mark.parametrize("remaining, expected", [(42, 42), (-1, None), (-2, None)])
async def test_ttl_maps_missing_and_persistent_keys_to_none(store, client, remaining, expected):
    client.ttl.return_value = remaining

    assert await store.ttl("k") == expected


@pytest.mark.asyncio
async def test_add_to_set_refreshes_set_lifetime(store, client):
    await store.add_to_set("s", "m", 60)

    client.sadd.assert_awaited_once_with("s", "m")
    client.expire.assert_awaited_once_with("s", 60)


@pytest.mark.asyncio
async def test_set_members_returns_a_set(store, client):
    client.smembers.return_value = ["a", "b"]

    assert await store.set_members("s") == {"a", "b"}


@pytest.mark.asyncio
@pytest.mark.parametrize("removed, expected", [(1, True), (0, False)])
async def test_remove_from_set_reports_membership(store, client, removed, expected):
    client.srem.return_value = removed

    assert await store.remove_from_set("s", "m") is expected


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "operation, args",
    [
        ("get", ("k",)),
        ("set", ("k", "v", 1)),
        ("exists", ("k",)),
        ("delete", ("k",)),
        ("set_nx", ("k", "v", 1)),
        ("expire", ("k", 1)),
        ("ttl", ("k",)),
        ("add_to_set", ("s", "m", 1)),
        ("remove_from_set", ("s", "m")),
        ("set_members", ("s",)),
        ("ping", ()),
    ],
)
async def test_redis_errors_become_cache_store_errors(store, client, operation, args):
    command = REDIS_COMMAND.get(operation, operation)
    getattr(client, command).side_effect = RedisConnectionError("down")

    with pytest.raises(CacheStoreError) as exc_info:
        await getattr(store, operation)(*args)

    assert isinstance(exc_info.value.__cause__, RedisConnectionError)
