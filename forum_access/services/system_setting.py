"""
System Setting Service
Runtime overrides for monthly key lockout parameters.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from forum_access.core.cache import RedisCache, cache
from forum_access.core.config import settings
from forum_access.core.lockout import LockoutPolicy
from forum_access.repositories.system_setting import system_setting_repository

logger = structlog.get_logger()

MAX_ATTEMPTS_KEY = "monthly_key_max_attempts"
LOCK_MINUTES_KEY = "monthly_key_lock_minutes"
CACHE_PREFIX = "system_setting:"


class SystemSettingService:
    def __init__(self, cache_backend: RedisCache = cache):
        self.repository = system_setting_repository
        self.cache = cache_backend

    async def get_value(self, db: AsyncSession, key: str) -> Optional[str]:
        cache_key = f"{CACHE_PREFIX}{key}"
        cached = await self.cache.get(cache_key)
        if cached is not None:
            return cached

        value = await self.repository.get_value(db, key)
        if value is not None and settings.SYSTEM_PARAMETER_CACHE_SECONDS > 0:
            await self.cache.set(cache_key, value, ttl_seconds=settings.SYSTEM_PARAMETER_CACHE_SECONDS)
        return value

    async def get_positive_int(self, db: AsyncSession, key: str, default: int) -> int:
        raw = await self.get_value(db, key)
        if raw is None:
            return default
        try:
            value = int(str(raw).strip())
        except ValueError:
            logger.warning("Ignoring non-integer system parameter", parameter=key, value=raw)
            return default
        if value < 1:
            logger.warning("Ignoring non-positive system parameter", parameter=key, value=value)
            return default
        return value

    async def get_lockout_policy(self, db: AsyncSession) -> LockoutPolicy:
        max_attempts = await self.get_positive_int(db, MAX_ATTEMPTS_KEY, settings.MONTHLY_KEY_MAX_ATTEMPTS)
        lock_minutes = await self.get_positive_int(db, LOCK_MINUTES_KEY, settings.MONTHLY_KEY_LOCK_MINUTES)
        return LockoutPolicy(max_attempts=max_attempts, lock_duration=timedelta(minutes=lock_minutes))


system_setting_service = SystemSettingService()
