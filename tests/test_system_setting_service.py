"""
Tests for runtime lockout parameters
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from redis import exceptions as redis_exceptions

from forum_access.core.cache import RedisCache
from forum_access.services.system_setting import (
    LOCK_MINUTES_KEY,
    MAX_ATTEMPTS_KEY,
    SystemSettingService,
)


@pytest.fixture
def setting_service():
    service = SystemSettingService(cache_backend=RedisCache(url=""))
    service.repository = AsyncMock()
    return service


def _values(mapping):
    async def get_value(db, key):
        return mapping.get(key)

    return get_value


@pytest.mark.asyncio
async def test_defaults_without_overrides(setting_service, mock_db):
    setting_service.repository.get_value.side_effect = _values({})

    policy = await setting_service.get_lockout_policy(mock_db)

    assert policy.max_attempts == 3
    assert policy.lock_duration == timedelta(minutes=30)


@pytest.mark.asyncio
async def test_overrides_are_applied(setting_service, mock_db):
    setting_service.repository.get_value.side_effect = _values({MAX_ATTEMPTS_KEY: "5", LOCK_MINUTES_KEY: " 10 "})

    policy = await setting_service.get_lockout_policy(mock_db)

    assert policy.max_attempts == 5
    assert policy.lock_duration == timedelta(minutes=10)


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["abc", "0", "-2", "1.5"])
async def test_invalid_overrides_fall_back(setting_service, mock_db, raw):
    setting_service.repository.get_value.side_effect = _values({MAX_ATTEMPTS_KEY: raw})

    policy = await setting_service.get_lockout_policy(mock_db)

    assert policy.max_attempts == 3


@pytest.mark.asyncio
async def test_cached_value_skips_database(mock_db):
    cache_backend = AsyncMock()
    cache_backend.get.return_value = "7"
    service = SystemSettingService(cache_backend=cache_backend)
    service.repository = AsyncMock()

    assert await service.get_positive_int(mock_db, MAX_ATTEMPTS_KEY, 3) == 7
    service.repository.get_value.assert_not_called()


@pytest.mark.asyncio
async def test_database_value_is_cached(mock_db):
    cache_backend = AsyncMock()
    cache_backend.get.return_value = None
    service = SystemSettingService(cache_backend=cache_backend)
    service.repository = AsyncMock()
    service.repository.get_value.return_value = "4"

    assert await service.get_value(mock_db, MAX_ATTEMPTS_KEY) == "4"
    cache_backend.set.assert_awaited_once()


@pytest.mark.asyncio
async def test_disabled_cache_is_inert():
    cache = RedisCache(url="")

    assert await cache.get("anything") is None
    assert await cache.set("anything", 1) is False


@pytest.mark.asyncio
async def test_undecodable_cached_value_is_a_miss(mock_db):
    cache_backend = RedisCache(url="redis://cache.invalid:6379/0")
    cache_backend._client = AsyncMock()
    cache_backend._client.get.return_value = "five"
    service = SystemSettingService(cache_backend=cache_backend)
    service.repository = AsyncMock()
    service.repository.get_value.side_effect = _values({})

    policy = await service.get_lockout_policy(mock_db)

    assert policy.max_attempts == 3
    assert policy.lock_duration == timedelta(minutes=30)
    assert service.repository.get_value.await_count == 2


@pytest.mark.asyncio
async def test_redis_read_error_is_a_miss():
    cache = RedisCache(url="redis://cache.invalid:6379/0")
    cache._client = AsyncMock()
    cache._client.get.side_effect = redis_exceptions.ConnectionError("connection reset")

    assert await cache.get("system_setting:monthly_key_max_attempts") is None
