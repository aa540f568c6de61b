"""Best-effort fan-out of relay status events to connected playgrounds."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any

from playground_relay.config import SUBSCRIBER_BUFFER_SIZE
from playground_relay.schemas import RelayStatus

logger = logging.getLogger(__name__)


@dataclass
class RelayEvent:
    """One named event with a JSON payload."""

    name: str
    data: dict[str, Any] = field(default_factory=dict)


class Subscription:
    """Handle for one listener; buffers events until it reads them."""

    def __init__(self, maxsize: int = SUBSCRIBER_BUFFER_SIZE):
        self._queue: asyncio.Queue[RelayEvent] = asyncio.Queue(maxsize=maxsize)

    def offer(self, event: RelayEvent) -> bool:
        """Buffer an event; False if the listener is not keeping up."""
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True

    async def get(self) -> RelayEvent:
        return await self._queue.get()


class Broadcaster:
    """Observer list of subscriptions.

    publish() never fails: a listener whose buffer is full misses the event
    and the miss is logged.
    """

    def __init__(self, buffer_size: int = SUBSCRIBER_BUFFER_SIZE):
        self._buffer_size = buffer_size
        self._subscriptions: list[Subscription] = []

    @property
    def listener_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self) -> Subscription:
        subscription = Subscription(self._buffer_size)
        self._subscriptions.append(subscription)
        logger.debug(f"Listener subscribed ({self.listener_count} active)")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            logger.debug(f"Listener unsubscribed ({self.listener_count} active)")

    def publish(self, name: str, data: dict[str, Any] | None = None) -> int:
        """Deliver an event to every current listener.

        Returns:
            Number of listeners that accepted the event
        """
        event = RelayEvent(name=name, data=dict(data or {}))
        delivered = 0
        for subscription in list(self._subscriptions):
            if subscription.offer(event):
                delivered += 1
            else:
                logger.warning(f"Dropped '{name}' event for a slow listener")
        return delivered

    def publish_status(self, status: RelayStatus, **extra: Any) -> int:
        """Publish a `status` event, e.g. {"status": "received", "id": ...}."""
        return self.publish("status", {"status": status.value, **extra})


def format_sse(name: str, data: dict[str, Any]) -> str:
    """Render one server-sent-events frame."""
    return f"event: {name}\ndata: {json.dumps(data)}\n\n"
