"""
Parameter cache backed by Redis.

Values are stored as JSON under a short TTL. When Redis is not configured
(``REDIS_URL=""``) or cannot be reached, every lookup is a miss and the
caller reads from the database instead.
"""

import json
from typing import Any, Optional

import redis.asyncio as aioredis
import structlog

from forum_access.core.config import REDIS_CONFIG

logger = structlog.get_logger()


class RedisCache:
    def __init__(self, url: Optional[str] = None):
        self.url = REDIS_CONFIG["url"] if url is None else url
        self.enabled = bool(self.url)
        self._client: Optional[aioredis.Redis] = None

    async def _connect(self) -> Optional[aioredis.Redis]:
        if not self.enabled:
            return None
        if self._client is not None:
            return self._client

        client = aioredis.from_url(
            self.url,
            decode_responses=REDIS_CONFIG["decode_responses"],
            retry_on_timeout=REDIS_CONFIG["retry_on_timeout"],
            socket_connect_timeout=2,
            socket_timeout=3,
        )
        try:
            await client.ping()
        except aioredis.RedisError as exc:
            # Stay disabled for the rest of the process
            logger.warning("Redis unreachable, parameter cache disabled", error=str(exc))
            self.enabled = False
            await client.aclose()
            return None

        logger.info("Parameter cache connected")
        self._client = client
        return client

    async def get(self, key: str) -> Optional[Any]:
        """Cached value for ``key``, or None on a miss or Redis error"""
        client = await self._connect()
        if client is None:
            return None
        try:
            raw = await client.get(key)
            return None if raw is None else json.loads(raw)
        except (aioredis.RedisError, ValueError) as exc:
            logger.warning("Cache read failed, treating as miss", cache_key=key, error=str(exc))
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int = 60) -> bool:
        client = await self._connect()
        if client is None:
            return False
        try:
            await client.set(key, json.dumps(value, default=str), ex=ttl_seconds)
        except aioredis.RedisError as exc:
            logger.debug("Cache write failed", cache_key=key, error=str(exc))
            return False
        return True

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


cache = RedisCache()
