import json
import logging

import redis.asyncio as redis

from publisher.config import settings

logger = logging.getLogger(__name__)


class CacheManager:
    """
    Cache-aside manager backed by Redis.

    All public methods are safe to call when Redis is unavailable: reads
    return None and writes are skipped, so the service keeps answering
    from the database.
    """

    def __init__(self, url: str, timeout: float = 2) -> None:
        self.url = url
        self.timeout = timeout
        self._redis: redis.Redis | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        self._redis = redis.from_url(
            self.url,
            decode_responses=True,
            socket_connect_timeout=self.timeout,
            socket_timeout=self.timeout,
        )
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", self.url)
        except Exception as exc:  # pragma: no cover
            logger.warning("Redis ping failed, cache disabled: %s", exc)
            await self._redis.aclose()
            self._redis = None

    async def disconnect(self) -> None:
        """Close the connection pool.  Called once at application shutdown."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    # ------------------------------------------------------------------
    # Core cache operations
    # ------------------------------------------------------------------

    async def get(self, key: str) -> dict | list | None:
        """Return the cached value for *key*, or None on a miss / error."""
        if not self._redis:
            return None
        try:
            data = await self._redis.get(key)
        except Exception as exc:
            logger.debug("Cache GET error for key=%r: %s", key, exc)
            return None
        return json.loads(data) if data is not None else None

    async def set(self, key: str, value: dict | list, ttl: int | None = None) -> None:
        """
        Store *value* under *key* with an optional TTL (seconds).

        Failures are logged and never propagated.
        """
        if not self._redis:
            return
        try:
            await self._redis.set(key, json.dumps(value, default=str), ex=ttl)
        except Exception as exc:
            logger.debug("Cache SET error for key=%r: %s", key, exc)

    async def pop(self, key: str) -> dict | list | None:
        """Return the value under *key* and delete it in the same step."""
        if not self._redis:
            return None
        try:
            data = await self._redis.getdel(key)
        except Exception as exc:
            logger.debug("Cache GETDEL error for key=%r: %s", key, exc)
            return None
        return json.loads(data) if data is not None else None

    async def delete_pattern(self, pattern: str) -> None:
        """Delete all keys matching *pattern* using SCAN."""
        if not self._redis:
            return
        try:
            keys: list[str] = []
            async for key in self._redis.scan_iter(match=pattern):
                keys.append(key)
            if keys:
                await self._redis.delete(*keys)
                logger.debug("Cache invalidated %d key(s) matching %r", len(keys), pattern)
        except Exception as exc:
            logger.debug("Cache DELETE_PATTERN error for pattern=%r: %s", pattern, exc)

    # ------------------------------------------------------------------
    # Domain-level invalidation helpers
    # ------------------------------------------------------------------

    async def invalidate_article(self, article_id: int | None = None) -> None:
        """
        Purge caches made stale by an article or comment write.

        Article pages and category counts are always purged; the detail
        entries of *article_id* too when given.
        """
        await self.delete_pattern("articles:list:*")
        await self.delete_pattern("categories:*")
        if article_id is not None:
            await self.delete_pattern(f"articles:detail:{article_id}:*")

    async def invalidate_categories(self) -> None:
        await self.delete_pattern("categories:*")


cache = CacheManager(settings.REDIS_URL)
