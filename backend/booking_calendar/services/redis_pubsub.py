"""
Redis Pub/Sub relay for change events.
Listens to the changes channel and broadcasts every message to the WebSocket
clients connected to this process.
"""

import asyncio
import json
import logging
from typing import Optional

import redis.asyncio as aioredis
from redis.asyncio.client import PubSub

from booking_calendar.core.config import settings
from booking_calendar.schemas.change_event import ChangeEvent
from booking_calendar.services.change_events import change_message
from booking_calendar.services.websocket_manager import ConnectionManager, manager

logger = logging.getLogger(__name__)


class RedisPubSubService:
    """Relays change events published by any API process."""

    def __init__(
        self,
        connections: ConnectionManager = manager,
        channel: str = settings.CHANGES_CHANNEL,
    ):
        self.connections = connections
        self.channel = channel
        self.redis: Optional[aioredis.Redis] = None
        self.pubsub: Optional[PubSub] = None
        self._listener_task: Optional[asyncio.Task] = None

    async def connect(self):
        """Connect to Redis and subscribe to the changes channel."""
        try:
            self.redis = aioredis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
            )
            self.pubsub = self.redis.pubsub()
            await self.pubsub.subscribe(self.channel)
            logger.info(f"Redis Pub/Sub subscribed to '{self.channel}'")
            self._listener_task = asyncio.create_task(self._listen())
        except Exception as e:
            logger.error(f"Failed to connect to Redis Pub/Sub: {e}")
            raise

    async def disconnect(self):
        if self._listener_task:
            self._listener_task.cancel()
            try:
                await self._listener_task
            except asyncio.CancelledError:
                pass

        if self.pubsub:
            await self.pubsub.unsubscribe(self.channel)
            await self.pubsub.aclose()

        if self.redis:
            await self.redis.aclose()

        logger.info("Redis Pub/Sub disconnected")

    async def handle_message(self, raw: str) -> None:
        event = ChangeEvent.model_validate(json.loads(raw))
        await self.connections.broadcast(change_message(event))
        logger.debug(f"Relayed {event.entity_type} {event.action} {event.entity_id}")

    async def _listen(self):
        logger.info("Starting Redis Pub/Sub listener...")
        try:
            async for message in self.pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    await self.handle_message(message["data"])
                except Exception as e:
                    logger.error(f"Error processing change message: {e}", exc_info=True)
        except asyncio.CancelledError:
            logger.info("Redis Pub/Sub listener cancelled")
        except Exception as e:
            logger.error(f"Redis Pub/Sub listener error: {e}", exc_info=True)


# Global instance
redis_pubsub = RedisPubSubService()
