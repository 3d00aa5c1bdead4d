"""Who is connected: user sessions and tenant membership.

The broadcaster only ever talks to the :class:`ConnectionRegistry`
protocol. The in-memory implementation is per process; the Redis one is
shared, so presence stays correct behind several API workers.
"""

from collections import defaultdict
from typing import Protocol

from redis.asyncio import Redis


class ConnectionRegistry(Protocol):
    """Interface for live-connection bookkeeping."""

    async def register(
        self, connection_id: str, user_id: str, tenant_id: str | None = None
    ) -> None: ...

    async def unregister(
        self, connection_id: str, user_id: str, tenant_id: str | None = None
    ) -> bool:
        """Remove a session; ``True`` when it was the user's last one."""
        ...

    async def list_by_user(self, user_id: str) -> set[str]: ...

    async def is_online(self, user_id: str) -> bool: ...

    async def count_online(self, tenant_id: str | None = None) -> int: ...


class InMemoryConnectionRegistry:
    """Single-process registry."""

    def __init__(self) -> None:
        self._sessions: dict[str, set[str]] = defaultdict(set)
        self._tenant_users: dict[str, set[str]] = defaultdict(set)

    async def register(
        self, connection_id: str, user_id: str, tenant_id: str | None = None
    ) -> None:
        self._sessions[user_id].add(connection_id)
        if tenant_id:
            self._tenant_users[tenant_id].add(user_id)

    async def unregister(
        self, connection_id: str, user_id: str, tenant_id: str | None = None
    ) -> bool:
        sessions = self._sessions.get(user_id)
        if sessions is None:
            return False
        sessions.discard(connection_id)
        if sessions:
            return False

        del self._sessions[user_id]
        if tenant_id and tenant_id in self._tenant_users:
            self._tenant_users[tenant_id].discard(user_id)
            if not self._tenant_users[tenant_id]:
                del self._tenant_users[tenant_id]
        return True

    async def list_by_user(self, user_id: str) -> set[str]:
        return set(self._sessions.get(user_id, ()))

    async def is_online(self, user_id: str) -> bool:
        return bool(self._sessions.get(user_id))

    async def count_online(self, tenant_id: str | None = None) -> int:
        if tenant_id is None:
            return len(self._sessions)
        return len(self._tenant_users.get(tenant_id, ()))


class RedisConnectionRegistry:
    """
    Redis-backed registry shared by every API process.

    Key format:
        ws:sessions:{user_id}   set of connection ids
        ws:tenant:{tenant_id}   set of online user ids
        ws:online               set of online user ids
    """

    KEY_PREFIX = "ws"

    def __init__(self, redis: Redis):
        self.redis = redis

    def _sessions_key(self, user_id: str) -> str:
        return f"{self.KEY_PREFIX}:sessions:{user_id}"

    def _tenant_key(self, tenant_id: str) -> str:
        return f"{self.KEY_PREFIX}:tenant:{tenant_id}"

    @property
    def _online_key(self) -> str:
        return f"{self.KEY_PREFIX}:online"

    async def register(
        self, connection_id: str, user_id: str, tenant_id: str | None = None
    ) -> None:
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.sadd(self._sessions_key(user_id), connection_id)
            pipe.sadd(self._online_key, user_id)
            if tenant_id:
                pipe.sadd(self._tenant_key(tenant_id), user_id)
            await pipe.execute()

    async def unregister(
        self, connection_id: str, user_id: str, tenant_id: str | None = None
    ) -> bool:
        removed = await self.redis.srem(self._sessions_key(user_id), connection_id)
        if not removed:
            return False
        if await self.redis.scard(self._sessions_key(user_id)) > 0:
            return False

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.srem(self._online_key, user_id)
            if tenant_id:
                pipe.srem(self._tenant_key(tenant_id), user_id)
            await pipe.execute()
        return True

    async def list_by_user(self, user_id: str) -> set[str]:
        return set(await self.redis.smembers(self._sessions_key(user_id)))

    async def is_online(self, user_id: str) -> bool:
        return await self.redis.scard(self._sessions_key(user_id)) > 0

    async def count_online(self, tenant_id: str | None = None) -> int:
        if tenant_id is None:
            return await self.redis.scard(self._online_key)
        return await self.redis.scard(self._tenant_key(tenant_id))
