import json
from datetime import datetime, timedelta, timezone

import pytest

from cardvault.domain.services.auth.session import SessionService
from cardvault.domain.value_objects.token import TokenType


@pytest.mark.asyncio
async def test_store_refresh_session_keys_by_token_hash(session_service, session_store, token_service):
    # Arrange
    token, claims = token_service.issue(5, TokenType.REFRESH)

    # Act
    await session_service.store_refresh_session(token, claims)

    # Assert
    key = SessionService.refresh_key(token)
    assert token not in key
    assert session_store.keys_with_prefix(SessionService.REFRESH_PREFIX) == [key]
    meta = json.loads(await session_store.get(key))
    assert meta["account_id"] == 5
    assert 0 < await session_store.ttl(key) <= 7 * 24 * 3600
    assert await session_service.is_refresh_session_live(token)


@pytest.mark.asyncio
async def test_rotate_replaces_session(session_service, token_service):
    old, old_claims = token_service.issue(5, TokenType.REFRESH)
    new, new_claims = token_service.issue(5, TokenType.REFRESH)
    await session_service.store_refresh_session(old, old_claims)

    assert await session_service.rotate(old, new, new_claims) is True

    assert not await session_service.is_refresh_session_live(old)
    assert await session_service.is_refresh_session_live(new)


@pytest.mark.asyncio
async def test_second_rotation_of_same_token_is_refused(session_service, token_service):
    old, old_claims = token_service.issue(5, TokenType.REFRESH)
    first, first_claims = token_service.issue(5, TokenType.REFRESH)
    second, second_claims = token_service.issue(5, TokenType.REFRESH)
    await session_service.store_refresh_session(old, old_claims)

    assert await session_service.rotate(old, first, first_claims) is True
    assert await session_service.rotate(old, second, second_claims) is False

    assert await session_service.is_refresh_session_live(first)
    assert not await session_service.is_refresh_session_live(second)


@pytest.mark.asyncio
async def test_revoke_refresh_session_reports_existence(session_service, token_service):
    token, claims = token_service.issue(5, TokenType.REFRESH)
    await session_service.store_refresh_session(token, claims)

    assert await session_service.revoke_refresh_session(token) is True
    assert await session_service.revoke_refresh_session(token) is False


@pytest.mark.asyncio
async def test_blacklist_access_token(session_service, session_store):
    await session_service.blacklist_access_token("jti-1", 60)

    assert await session_service.is_access_token_blacklisted("jti-1")
    assert not await session_service.is_access_token_blacklisted("jti-2")
    assert await session_store.get(SessionService.blacklist_key("jti-1")) == "revoked"


@pytest.mark.asyncio
@pytest.mark.parametrize("ttl", [0, -5])
async def test_blacklist_skips_expired_tokens(session_service, session_store, ttl):
    await session_service.blacklist_access_token("jti-1", ttl)

    assert session_store.data == {}


@pytest.mark.asyncio
async def test_watermark_rejects_tokens_issued_before_revocation(session_service, token_service):
    # Arrange
    before, before_claims = token_service.issue(5, TokenType.ACCESS)
    revoked_at = before_claims.issued_at + timedelta(microseconds=10)

    # Act
    await session_service.revoke_all_for_account(5, now=revoked_at)
    _, after_claims = token_service.issue(5, TokenType.ACCESS, now=revoked_at + timedelta(milliseconds=1))
    _, other_claims = token_service.issue(6, TokenType.ACCESS, now=before_claims.issued_at)

    # Assert
    assert await session_service.is_revoked_by_watermark(before_claims)
    assert not await session_service.is_revoked_by_watermark(after_claims)
    assert not await session_service.is_revoked_by_watermark(other_claims)


@pytest.mark.asyncio
async def test_unreadable_watermark_counts_as_revoked(session_service, session_store, token_service):
    _, claims = token_service.issue(5, TokenType.ACCESS)
    await session_store.set(SessionService.watermark_key(5), "not-a-number", 60)

    assert await session_service.is_revoked_by_watermark(claims)


@pytest.mark.asyncio
async def test_watermark_lives_as_long_as_refresh_tokens(session_service, session_store):
    await session_service.revoke_all_for_account(5, now=datetime.now(timezone.utc))

    ttl = await session_store.ttl(SessionService.watermark_key(5))
    assert 7 * 24 * 3600 - 5 <= ttl <= 7 * 24 * 3600


@pytest.mark.asyncio
async def test_consume_single_use_only_once(session_service, token_service):
    _, claims = token_service.issue(5, TokenType.PASSWORD_RESET)

    assert await session_service.consume_single_use(claims) is True
    assert await session_service.consume_single_use(claims) is False


@pytest.mark.asyncio
async def test_refresh_session_remembers_device_session(session_service, session_store, token_service):
    token, claims = token_service.issue(5, TokenType.REFRESH, session_id="device-1")

    await session_service.store_refresh_session(token, claims)

    meta = json.loads(await session_store.get(SessionService.refresh_key(token)))
    assert meta["session_id"] == "device-1"


@pytest.mark.asyncio
async def test_start_device_session_indexes_it_per_account(session_service, session_store):
    session = await session_service.start_device_session(5, ip_address="10.0.0.1", user_agent="curl/8.5")

    assert await session_service.get_device_session(session.session_id) == session
    assert await session_store.set_members(SessionService.device_index_key(5)) == {session.session_id}
    ttl = await session_store.ttl(SessionService.device_session_key(session.session_id))
    assert 7 * 24 * 3600 - 5 <= ttl <= 7 * 24 * 3600


@pytest.mark.asyncio
async def test_device_session_liveness_follows_claims(session_service, token_service):
    session = await session_service.start_device_session(5)
    _, bound = token_service.issue(5, TokenType.ACCESS, session_id=session.session_id)
    _, unbound = token_service.issue(5, TokenType.ACCESS)

    assert await session_service.is_device_session_live(bound)
    assert await session_service.is_device_session_live(unbound)

    await session_service.end_device_session(5, session.session_id)

    assert not await session_service.is_device_session_live(bound)
    assert await session_service.is_device_session_live(unbound)


@pytest.mark.asyncio
async def test_touch_moves_last_activity(session_service):
    session = await session_service.start_device_session(5)

    touched = await session_service.touch_device_session(session.session_id)

    assert touched.last_activity >= session.last_activity
    assert await session_service.get_device_session(session.session_id) == touched
    assert await session_service.touch_device_session("missing") is None


@pytest.mark.asyncio
async def test_list_prunes_expired_sessions(session_service, session_store):
    kept = await session_service.start_device_session(5)
    gone = await session_service.start_device_session(5)
    await session_store.delete(SessionService.device_session_key(gone.session_id))

    assert await session_service.list_device_sessions(5) == [kept]
    assert await session_store.set_members(SessionService.device_index_key(5)) == {kept.session_id}


@pytest.mark.asyncio
async def test_unreadable_device_session_is_ignored(session_service, session_store):
    await session_store.set(SessionService.device_session_key("bad"), "{not json", 60)

    assert await session_service.get_device_session("bad") is None


@pytest.mark.asyncio
async def test_end_device_session_reports_existence(session_service, session_store):
    session = await session_service.start_device_session(5)

    assert await session_service.end_device_session(5, session.session_id) is True
    assert await session_service.end_device_session(5, session.session_id) is False
    assert await session_store.set_members(SessionService.device_index_key(5)) == set()


@pytest.mark.asyncio
async def test_revoke_all_for_account_ends_device_sessions(session_service, session_store):
    await session_service.start_device_session(5)
    await session_service.start_device_session(5)
    other = await session_service.start_device_session(6)

    await session_service.revoke_all_for_account(5)

    assert await session_service.list_device_sessions(5) == []
    assert await session_service.list_device_sessions(6) == [other]
    assert session_store.keys_with_prefix(SessionService.DEVICE_INDEX_PREFIX) == [
        SessionService.device_index_key(6)
    ]
