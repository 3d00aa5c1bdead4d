"""WebSocket endpoint for live settings updates."""

import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from app.auth.dependencies import authenticate_token
from app.realtime.broadcaster import LiveUpdateBroadcaster
from app.schemas.auth import TokenUser

logger = logging.getLogger(__name__)

router = APIRouter()


def _bearer_token(websocket: WebSocket) -> str | None:
    scheme, _, credentials = websocket.headers.get("authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()


async def _authenticate(websocket: WebSocket, query_token: str | None) -> TokenUser | None:
    """First valid user from ``?token=``, then ``Authorization: Bearer``."""
    redis = getattr(websocket.app.state, "redis", None)
    for token in (query_token, _bearer_token(websocket)):
        if token:
            user = await authenticate_token(token, redis)
            if user is not None:
                return user
    return None


@router.websocket("/ws")
async def live_updates(websocket: WebSocket, token: str | None = Query(None)) -> None:
    """Authenticate with ``?token=`` or a bearer header, then receive pushed events.

    Messages are ``{"event": ..., "data": ...}``. Anything the client sends
    is ignored apart from ``ping``, which is answered with ``pong``.
    """
    user = await _authenticate(websocket, token)
    if user is None:
        logger.info("Rejected WebSocket handshake without a valid access token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Unauthorized")
        return

    broadcaster: LiveUpdateBroadcaster = websocket.app.state.broadcaster
    await websocket.accept()
    connection_id: str | None = None
    try:
        connection_id = await broadcaster.connect(websocket, user.id, user.tenant_id)
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        pass
    finally:
        if connection_id is not None:
            await broadcaster.disconnect(connection_id, user.id, user.tenant_id)
