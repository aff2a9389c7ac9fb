"""
Change notifications for booking and availability writes.

Writers depend on the ChangeSink protocol only. The sink used at runtime is
chosen by settings.CHANGE_SINK and injected through a FastAPI dependency.
"""
from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Future
from typing import Any, Optional, Protocol
from uuid import UUID

import redis

from booking_calendar.schemas.change_event import ChangeAction, ChangeEvent, EntityType
from booking_calendar.services.websocket_manager import ConnectionManager

logger = logging.getLogger(__name__)


class ChangeSink(Protocol):
    def publish(self, event: ChangeEvent) -> None:
        ...


def change_message(event: ChangeEvent) -> dict[str, Any]:
    """Envelope sent to WebSocket clients."""
    return {"type": "change", "data": event.model_dump(mode="json")}


class WebSocketChangeSink:
    """Broadcasts straight to the sockets held by this process."""

    def __init__(
        self,
        manager: ConnectionManager,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._manager = manager
        self._loop = loop

    def publish(self, event: ChangeEvent) -> None:
        if self._loop is None or self._loop.is_closed():
            logger.warning(
                f"No event loop bound, {event.entity_type} {event.action} not broadcast"
            )
            return
        # Writers run in worker threads; hand the broadcast to the app loop
        future = asyncio.run_coroutine_threadsafe(
            self._manager.broadcast(change_message(event)), self._loop
        )
        future.add_done_callback(_log_broadcast_failure)


def _log_broadcast_failure(future: Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error(f"Change broadcast failed: {exc}", exc_info=exc)


class RedisChangeSink:
    """Publishes on a Redis channel; every API process relays it to its sockets."""

    def __init__(self, client: redis.Redis, channel: str) -> None:
        self._client = client
        self._channel = channel

    @classmethod
    def from_url(cls, url: str, channel: str) -> "RedisChangeSink":
        return cls(redis.Redis.from_url(url, decode_responses=True), channel)

    def publish(self, event: ChangeEvent) -> None:
        self._client.publish(self._channel, event.model_dump_json())
        logger.debug(f"Published {event.entity_type} {event.action} to {self._channel}")


def emit_change(
    sink: ChangeSink,
    *,
    entity_type: EntityType,
    action: ChangeAction,
    entity_id: UUID,
    entity: dict[str, Any] | None = None,
    actor_id: UUID | None = None,
) -> ChangeEvent:
    """Publish one event for a committed write.

    Delivery problems are logged; the write they describe is already durable
    and stays applied.
    """
    event = ChangeEvent(
        entity_type=entity_type,
        action=action,
        entity_id=entity_id,
        entity=entity,
        actor_id=actor_id,
    )
    try:
        sink.publish(event)
    except Exception as e:
        logger.error(
            f"Failed to publish {entity_type} {action} for {entity_id}: {e}", exc_info=True
        )
    return event
