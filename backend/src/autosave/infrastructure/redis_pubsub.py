import asyncio
import json
import logging
from collections.abc import Callable, Coroutine
from typing import Any
from uuid import UUID

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]


def _channel_name(document_id: UUID) -> str:
    return f"doc:{document_id}:events"


async def publish_event(redis: Redis, document_id: UUID, event: dict[str, Any]) -> None:
    """Broadcast a JSON event to every editing session of the document."""
    await redis.publish(_channel_name(document_id), json.dumps(event, default=str))


async def subscribe(redis: Redis, document_id: UUID, handler: EventHandler) -> asyncio.Task:
    """Subscribe to document events. Returns a task that can be cancelled to unsubscribe."""
    channel = _channel_name(document_id)
    pubsub = redis.pubsub()
    await pubsub.subscribe(channel)

    async def _listen():
        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    event = json.loads(message["data"])
                except ValueError:
                    logger.warning("Ignoring malformed event on %s", channel)
                    continue
                await handler(event)
        except asyncio.CancelledError:
            pass
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()

    return asyncio.create_task(_listen())
