"""
gateway/routers/realtime.py

WebSocket endpoint for real-time alert delivery.

Protocol:
1. Client connects to /ws/alerts
2. Client sends {"event": "authenticate", "token": "<access token>"}
3. Server replies {"event": "authenticated", "userId": ...}, or sends
   {"event": "error"} and closes with 1008 when the token is invalid
4. Server pushes {"event": "new-alert", "data": {...}} as alerts are created

Missed events are not replayed after a reconnect.
"""

import asyncio
import contextlib

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from gateway.auth import decode_token
from gateway.services.notification import Channel, ChannelState, NotificationBroadcaster

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Realtime"])


async def _pump(websocket: WebSocket, channel: Channel) -> None:
    """Forward queued messages to the socket until the channel closes."""
    async for message in channel.messages():
        await websocket.send_json(message)
    # Reached only when the broadcaster dropped the channel
    with contextlib.suppress(RuntimeError):
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)


async def _stop_pump(pump: asyncio.Task) -> None:
    """Cancel the pump and wait for it; a socket already gone is not an error."""
    pump.cancel()
    with contextlib.suppress(asyncio.CancelledError, Exception):
        await pump


@router.websocket("/ws/alerts")
async def alert_channel(websocket: WebSocket) -> None:
    broadcaster: NotificationBroadcaster = websocket.app.state.broadcaster

    await websocket.accept()
    channel = broadcaster.connect()
    pump = asyncio.create_task(_pump(websocket, channel))

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                channel.deliver({"event": "error", "message": "Malformed message"})
                continue

            if channel.state is ChannelState.DISCONNECTED:
                break

            if not isinstance(message, dict) or message.get("event") != "authenticate":
                channel.deliver({"event": "error", "message": "Unsupported event"})
                continue

            user = decode_token(str(message.get("token") or ""))
            if user is None:
                logger.warning("channel_auth_failed", channel_id=channel.id)
                await _stop_pump(pump)
                broadcaster.disconnect(channel)
                await websocket.send_json({"event": "error", "message": "Authentication failed"})
                await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
                return

            broadcaster.authenticate(channel, user.id)
            channel.deliver({"event": "authenticated", "userId": user.id})
    except WebSocketDisconnect:
        pass
    finally:
        await _stop_pump(pump)
        broadcaster.disconnect(channel)
