"""Live-update broadcaster.

Pushes settings change notifications to connected WebSocket sessions.
Sessions join a ``user:{id}`` room and, when the token carries one, a
``tenant:{id}`` room. Delivery is fire-and-forget and at-most-once: there
is no acknowledgement, retry or replay for clients that were offline.
Rooms hold only the sockets of this process; presence is shared through
the :class:`~app.realtime.registry.ConnectionRegistry`.
"""

import logging
import uuid
from collections import defaultdict
from datetime import UTC, datetime
from typing import Any

from fastapi import WebSocket

from app.constants import (
    EVENT_BRANDING_UPDATED,
    EVENT_SETTINGS_UPDATED,
    EVENT_USER_STATUS,
    TENANT_ROOM,
    USER_ROOM,
)
from app.core.results import OpResult
from app.realtime.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(UTC).isoformat()


class LiveUpdateBroadcaster:
    """Room-addressed push channel over WebSockets."""

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry
        self._connections: dict[str, WebSocket] = {}
        self._rooms: dict[str, set[str]] = defaultdict(set)

    @staticmethod
    def tenant_room(tenant_id: str) -> str:
        return TENANT_ROOM.format(tenant_id=tenant_id)

    @staticmethod
    def user_room(user_id: str) -> str:
        return USER_ROOM.format(user_id=user_id)

    @property
    def connection_count(self) -> int:
        """Sockets held by this process."""
        return len(self._connections)

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    async def connect(
        self, websocket: WebSocket, user_id: str, tenant_id: str | None = None
    ) -> str:
        """Track an accepted, authenticated socket and join its rooms.

        The socket joins no room unless the registry accepted it first.
        """
        connection_id = uuid.uuid4().hex
        was_online = await self.registry.is_online(user_id)
        await self.registry.register(connection_id, user_id, tenant_id)

        self._connections[connection_id] = websocket
        self._rooms[self.user_room(user_id)].add(connection_id)
        if tenant_id:
            self._rooms[self.tenant_room(tenant_id)].add(connection_id)

        logger.info("WebSocket connected: user=%s tenant=%s", user_id, tenant_id)
        if tenant_id and not was_online:
            await self.broadcast_to_tenant(
                tenant_id, EVENT_USER_STATUS, {"userId": user_id, "status": "online"}
            )
        return connection_id

    async def disconnect(
        self, connection_id: str, user_id: str, tenant_id: str | None = None
    ) -> None:
        """Forget a socket; announce the user offline when it was their last session."""
        self._drop(connection_id)
        went_offline = await self.registry.unregister(connection_id, user_id, tenant_id)

        logger.info("WebSocket disconnected: user=%s tenant=%s", user_id, tenant_id)
        if went_offline and tenant_id:
            await self.broadcast_to_tenant(
                tenant_id, EVENT_USER_STATUS, {"userId": user_id, "status": "offline"}
            )

    def _drop(self, connection_id: str) -> None:
        self._connections.pop(connection_id, None)
        for room in [name for name, members in self._rooms.items() if connection_id in members]:
            self._rooms[room].discard(connection_id)
            if not self._rooms[room]:
                del self._rooms[room]

    # =========================================================================
    # Delivery
    # =========================================================================

    async def _emit(self, room: str | None, event: str, data: dict[str, Any]) -> OpResult:
        """Send to every socket in *room*, or to every socket when *room* is None.

        A socket that fails to receive is dropped; the others still get the
        message.
        """
        message = {"event": event, "data": data}
        try:
            targets = list(self._rooms.get(room, ())) if room else list(self._connections)
            failed: list[str] = []
            for connection_id in targets:
                websocket = self._connections.get(connection_id)
                if websocket is None:
                    continue
                try:
                    await websocket.send_json(message)
                except Exception as e:
                    logger.warning("Dropping WebSocket %s after send failure: %s", connection_id, e)
                    failed.append(connection_id)

            for connection_id in failed:
                self._drop(connection_id)
        except Exception as e:
            logger.error("Broadcast of %s failed: %s", event, e)
            return OpResult.failure(e)

        if failed:
            return OpResult.failure(f"{len(failed)} of {len(targets)} deliveries failed")
        return OpResult.success()

    async def emit_settings_update(
        self,
        settings_type: str,
        data: dict[str, Any],
        tenant_id: str | None = None,
        user_id: str | None = None,
    ) -> OpResult:
        """Notify the tenant room (tenant settings) or everyone (platform settings).

        *user_id* is the actor, reported as ``updatedBy``.
        """
        payload = {"type": settings_type, "data": data, "updatedBy": user_id, "timestamp": _now()}
        room = self.tenant_room(tenant_id) if tenant_id else None
        return await self._emit(room, EVENT_SETTINGS_UPDATED, payload)

    async def emit_user_settings_update(
        self,
        settings_type: str,
        data: dict[str, Any],
        user_id: str,
        updated_by: str | None = None,
    ) -> OpResult:
        """Notify every session of one user (personal settings)."""
        payload = {
            "type": settings_type,
            "data": data,
            "updatedBy": updated_by or user_id,
            "timestamp": _now(),
        }
        return await self._emit(self.user_room(user_id), EVENT_SETTINGS_UPDATED, payload)

    async def emit_branding_update(self, tenant_id: str, branding: dict[str, Any]) -> OpResult:
        payload = {"tenantId": tenant_id, "branding": branding, "timestamp": _now()}
        return await self._emit(self.tenant_room(tenant_id), EVENT_BRANDING_UPDATED, payload)

    async def broadcast_to_tenant(
        self, tenant_id: str, event: str, data: dict[str, Any]
    ) -> OpResult:
        return await self._emit(self.tenant_room(tenant_id), event, data)

    async def broadcast_to_user(self, user_id: str, event: str, data: dict[str, Any]) -> OpResult:
        return await self._emit(self.user_room(user_id), event, data)

    # --- Per-category shortcuts ----------------------------------------------

    async def emit_payment_settings_update(
        self, data: dict[str, Any], user_id: str | None = None
    ) -> OpResult:
        return await self.emit_settings_update("payment_gateway", data, user_id=user_id)

    async def emit_email_settings_update(
        self, data: dict[str, Any], user_id: str | None = None
    ) -> OpResult:
        return await self.emit_settings_update("email", data, user_id=user_id)

    async def emit_security_settings_update(
        self, data: dict[str, Any], user_id: str | None = None
    ) -> OpResult:
        return await self.emit_settings_update("security", data, user_id=user_id)

    async def emit_team_settings_update(
        self, tenant_id: str, data: dict[str, Any], user_id: str | None = None
    ) -> OpResult:
        return await self.emit_settings_update("team", data, tenant_id, user_id)

    async def emit_billing_settings_update(
        self, tenant_id: str, data: dict[str, Any], user_id: str | None = None
    ) -> OpResult:
        return await self.emit_settings_update("billing", data, tenant_id, user_id)

    async def emit_integrations_settings_update(
        self, tenant_id: str, data: dict[str, Any], user_id: str | None = None
    ) -> OpResult:
        return await self.emit_settings_update("integrations", data, tenant_id, user_id)

    async def emit_availability_settings_update(
        self, user_id: str, data: dict[str, Any]
    ) -> OpResult:
        return await self.emit_user_settings_update("availability", data, user_id)

    async def emit_preferences_settings_update(
        self, user_id: str, data: dict[str, Any]
    ) -> OpResult:
        return await self.emit_user_settings_update("preferences", data, user_id)

    # =========================================================================
    # Presence
    # =========================================================================

    async def online_users_count(self, tenant_id: str | None = None) -> int:
        return await self.registry.count_online(tenant_id)

    async def is_user_online(self, user_id: str) -> bool:
        return await self.registry.is_online(user_id)
