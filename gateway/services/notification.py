"""
gateway/services/notification.py

In-process fan-out of "new-alert" events to live client channels.

A channel starts CONNECTED, becomes AUTHENTICATED once its user identity is
verified, and ends DISCONNECTED (terminal; reconnecting creates a new channel).
There is no history and no replay: events published while a client is away
are lost.

Delivery modes:
- targeted: only channels authenticated as the alert's target user
- broadcast: every connected channel, clients filter by userId themselves

publish() never awaits. Each channel has a bounded queue; a channel whose
queue is full is dropped rather than slowing down the publisher.
All methods must be called from the event loop that owns the channels.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, Literal, Optional

import structlog

from gateway.constants import NEW_ALERT_EVENT
from gateway.schemas import AlertEvent

logger = structlog.get_logger(__name__)

DeliveryMode = Literal["targeted", "broadcast"]

_CLOSED = object()


class ChannelState(str, Enum):
    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"
    DISCONNECTED = "disconnected"


@dataclass(eq=False)
class Channel:
    """One live connection able to receive pushed messages."""

    queue: asyncio.Queue
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: ChannelState = ChannelState.CONNECTED
    user_id: Optional[int] = None

    def deliver(self, message: dict) -> bool:
        """Queue a message without blocking; False if the queue is full."""
        if self.state is ChannelState.DISCONNECTED:
            return False
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            return False
        return True

    async def messages(self) -> AsyncIterator[dict]:
        """Yield queued messages until the channel is disconnected."""
        while True:
            message = await self.queue.get()
            if message is _CLOSED or self.state is ChannelState.DISCONNECTED:
                return
            yield message

    def _close(self) -> None:
        self.state = ChannelState.DISCONNECTED
        try:
            self.queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # messages() sees the state on its next wakeup
            pass


class NotificationBroadcaster:
    """Fan-out of alert events to connected channels."""

    def __init__(self, mode: DeliveryMode = "targeted", queue_size: int = 100) -> None:
        self.mode = mode
        self._queue_size = queue_size
        self._channels: set[Channel] = set()
        self._by_user: dict[int, set[Channel]] = {}
        self._stats = {
            "total_published": 0,
            "total_deliveries": 0,
            "total_channels": 0,
            "dropped_channels": 0,
        }

    def connect(self) -> Channel:
        channel = Channel(queue=asyncio.Queue(maxsize=self._queue_size))
        self._channels.add(channel)
        self._stats["total_channels"] += 1
        logger.info("channel_connected", channel_id=channel.id)
        return channel

    def authenticate(self, channel: Channel, user_id: int) -> None:
        """Bind a channel to a verified user identity."""
        if channel.state is ChannelState.DISCONNECTED:
            raise ValueError(f"channel {channel.id} is disconnected")
        if channel.user_id is not None:
            self._unbind(channel)
        channel.user_id = user_id
        channel.state = ChannelState.AUTHENTICATED
        self._by_user.setdefault(user_id, set()).add(channel)
        logger.info("channel_authenticated", channel_id=channel.id, user_id=user_id)

    def disconnect(self, channel: Channel) -> None:
        if channel.state is ChannelState.DISCONNECTED:
            return
        self._unbind(channel)
        self._channels.discard(channel)
        channel._close()
        logger.info("channel_disconnected", channel_id=channel.id, user_id=channel.user_id)

    def publish(self, event: AlertEvent) -> int:
        """
        Queue a new-alert event on every recipient channel.

        Returns the number of channels the event was queued on.
        """
        message = {
            "event": NEW_ALERT_EVENT,
            "data": event.model_dump(mode="json", by_alias=True),
        }
        if self.mode == "broadcast":
            recipients = list(self._channels)
        else:
            recipients = list(self._by_user.get(event.user_id, ()))

        delivered = 0
        for channel in recipients:
            if channel.deliver(message):
                delivered += 1
            else:
                self._stats["dropped_channels"] += 1
                logger.warning("channel_dropped", channel_id=channel.id, reason="queue_full")
                self.disconnect(channel)

        self._stats["total_published"] += 1
        self._stats["total_deliveries"] += delivered
        logger.info(
            "alert_published",
            alert_id=event.id,
            user_id=event.user_id,
            mode=self.mode,
            delivered=delivered,
        )
        return delivered

    def channels_for(self, user_id: int) -> list[Channel]:
        return list(self._by_user.get(user_id, ()))

    def stats(self) -> dict:
        return {
            **self._stats,
            "mode": self.mode,
            "connected_channels": len(self._channels),
            "authenticated_users": len(self._by_user),
        }

    def _unbind(self, channel: Channel) -> None:
        if channel.user_id is None:
            return
        bound = self._by_user.get(channel.user_id)
        if bound is not None:
            bound.discard(channel)
            if not bound:
                del self._by_user[channel.user_id]
