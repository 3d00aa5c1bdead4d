"""JSON key-value store over Redis.

Thin adapter that namespaces keys, serializes values as JSON and applies a
default TTL. Errors from Redis propagate; callers that must degrade
gracefully (see :mod:`app.core.settings_cache`) handle them.
"""

import json
import logging
from typing import Any

from redis.asyncio import Redis

logger = logging.getLogger(__name__)


class KeyValueStore:
    """
    Namespaced JSON store.

    Physical key format: ``{prefix}{key}``. Patterns passed to :meth:`keys`
    and :meth:`delete_pattern` are logical too; results come back without
    the prefix so they can be fed straight to :meth:`delete`.
    """

    SCAN_COUNT = 100

    def __init__(self, redis: Redis, prefix: str = "", default_ttl: int | None = None):
        self.redis = redis
        self.prefix = prefix
        self.default_ttl = default_ttl

    def _make_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _strip_prefix(self, key: str) -> str:
        if self.prefix and key.startswith(self.prefix):
            return key[len(self.prefix) :]
        return key

    async def get(self, key: str) -> Any | None:
        """Return the decoded value, or ``None`` when missing or undecodable."""
        raw = await self.redis.get(self._make_key(key))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding non-JSON value stored at %s", key)
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value*; expires after *ttl* (or the default TTL) seconds when positive."""
        payload = json.dumps(value, default=str)
        effective_ttl = ttl if ttl is not None else self.default_ttl
        if effective_ttl and effective_ttl > 0:
            await self.redis.setex(self._make_key(key), effective_ttl, payload)
        else:
            await self.redis.set(self._make_key(key), payload)

    async def delete(self, *keys: str) -> int:
        """Delete *keys*; returns how many existed."""
        if not keys:
            return 0
        return await self.redis.delete(*(self._make_key(k) for k in keys))

    async def exists(self, key: str) -> bool:
        return await self.redis.exists(self._make_key(key)) > 0

    async def expire(self, key: str, ttl: int) -> bool:
        return bool(await self.redis.expire(self._make_key(key), ttl))

    async def ttl(self, key: str) -> int:
        """Remaining TTL in seconds (-1 = no expiry, -2 = missing)."""
        return await self.redis.ttl(self._make_key(key))

    async def keys(self, pattern: str) -> list[str]:
        """Logical keys matching the glob *pattern*, found with incremental SCAN."""
        return [
            self._strip_prefix(key)
            async for key in self.redis.scan_iter(
                match=self._make_key(pattern), count=self.SCAN_COUNT
            )
        ]

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching *pattern*; returns the count."""
        keys = await self.keys(pattern)
        if not keys:
            return 0
        return await self.delete(*keys)

    async def ping(self) -> bool:
        return bool(await self.redis.ping())  # type: ignore[misc]  # redis.asyncio typing quirk

    async def info(self, section: str | None = None) -> dict[str, Any]:
        """Server INFO, parsed by redis-py into a dict."""
        if section is None:
            return await self.redis.info()
        return await self.redis.info(section)
