"""
Cross-instance relay.

Each instance pattern-subscribes to every server channel and hands events
published by *other* instances to its local connection manager. Events
this instance published were already dispatched locally and are skipped.
"""

import asyncio
import json
import logging

from redis.exceptions import RedisError

from dalchat.core import events
from dalchat.redis import keys
from dalchat.redis.client import get_redis, relay_connection
from dalchat.services import delivery
from dalchat.websocket.manager import manager

logger = logging.getLogger(__name__)


def handle_relayed(raw: str) -> int:
    """Dispatch one published envelope locally. Returns the number of feeds reached."""
    try:
        data = json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        logger.warning("Dropping malformed relay payload: %r", raw)
        return 0

    if data.get("origin") == delivery.INSTANCE_ID:
        return 0

    server_id = data.get("server_id")
    payload = data.get("payload")
    if not server_id or not isinstance(payload, dict):
        return 0

    delivered = delivery.dispatch_local(server_id, data.get("channel_id"), payload)
    if payload.get("type") == events.CHANNEL_DELETED:
        manager.drop_channel(server_id, payload.get("channel_id"))
    return delivered


async def relay_forever() -> None:
    pubsub = relay_connection.subscriber()
    if pubsub is None:
        return
    await pubsub.psubscribe(keys.SERVER_PATTERN)
    logger.info("Relay listening on %s", keys.SERVER_PATTERN)
    try:
        async for message in pubsub.listen():
            if message.get("type") != "pmessage":
                continue
            handle_relayed(message.get("data"))
    except (RedisError, OSError) as exc:
        relay_connection.mark_lost(exc)
    finally:
        await pubsub.aclose()


def start_relay() -> asyncio.Task | None:
    if get_redis() is None:
        return None
    return asyncio.create_task(relay_forever())
