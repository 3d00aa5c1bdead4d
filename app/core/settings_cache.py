"""Fail-soft cache for settings documents."""

import logging
from dataclasses import dataclass
from typing import Any

from app.constants import SETTINGS_CACHE_PREFIX, SETTINGS_CACHE_TTL
from app.core.kv_store import KeyValueStore
from app.core.results import OpResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache usage."""

    total_keys: int
    memory_used: str
    hit_rate: float


class SettingsCache:
    """
    Cache-aside layer for settings.

    Every logical key is stored under ``settings:``. The cache is advisory:
    no method raises. Reads degrade to ``None`` and writes report an
    :class:`OpResult` so a Redis outage costs latency, never correctness.
    """

    PREFIX = SETTINGS_CACHE_PREFIX
    DEFAULT_TTL = SETTINGS_CACHE_TTL

    def __init__(self, store: KeyValueStore, ttl: int = DEFAULT_TTL):
        self.store = store
        self.ttl = ttl

    def _make_key(self, key: str) -> str:
        return f"{self.PREFIX}{key}"

    # ------------------------------------------------------------------
    # Key builders
    # ------------------------------------------------------------------

    @staticmethod
    def platform_key(category: str) -> str:
        return f"platform:{category}"

    @staticmethod
    def tenant_key(tenant_id: str, category: str) -> str:
        return f"tenant:{tenant_id}:{category}"

    @staticmethod
    def user_key(user_id: str, category: str) -> str:
        return f"user:{user_id}:{category}"

    # ------------------------------------------------------------------
    # Cache operations
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` on miss or cache failure."""
        try:
            return await self.store.get(self._make_key(key))
        except Exception as e:
            logger.warning("Settings cache read failed (key=%s): %s", key, e)
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> OpResult:
        try:
            await self.store.set(self._make_key(key), value, ttl if ttl is not None else self.ttl)
            return OpResult.success()
        except Exception as e:
            logger.warning("Settings cache write failed (key=%s): %s", key, e)
            return OpResult.failure(e)

    async def invalidate(self, key: str) -> OpResult:
        """Drop *key* and every sub-key under ``key:*``."""
        try:
            full_key = self._make_key(key)
            await self.store.delete(full_key)
            await self.store.delete_pattern(f"{full_key}:*")
            return OpResult.success()
        except Exception as e:
            logger.warning("Settings cache invalidation failed (key=%s): %s", key, e)
            return OpResult.failure(e)

    async def invalidate_pattern(self, pattern: str) -> OpResult:
        """Drop every settings key matching the glob *pattern*."""
        try:
            deleted = await self.store.delete_pattern(self._make_key(pattern))
            logger.debug("Invalidated %s settings cache keys for %s", deleted, pattern)
            return OpResult.success()
        except Exception as e:
            logger.warning("Settings cache invalidation failed (pattern=%s): %s", pattern, e)
            return OpResult.failure(e)

    async def invalidate_all(self) -> OpResult:
        return await self.invalidate_pattern("*")

    async def is_available(self) -> bool:
        try:
            return await self.store.ping()
        except Exception:
            return False

    async def get_stats(self) -> CacheStats:
        """Number of settings keys, server memory and keyspace hit rate (percent)."""
        try:
            keys = await self.store.keys(self._make_key("*"))
            memory = await self.store.info("memory")
            stats = await self.store.info("stats")
        except Exception as e:
            logger.warning("Settings cache stats unavailable: %s", e)
            return CacheStats(total_keys=0, memory_used="N/A", hit_rate=0.0)

        hits = int(stats.get("keyspace_hits", 0))
        misses = int(stats.get("keyspace_misses", 0))
        lookups = hits + misses
        return CacheStats(
            total_keys=len(keys),
            memory_used=str(memory.get("used_memory_human", "N/A")),
            hit_rate=round(hits / lookups * 100, 2) if lookups else 0.0,
        )
