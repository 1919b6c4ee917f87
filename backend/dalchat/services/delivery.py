"""
Event fan-out for live feeds.

Events are queued for local sockets synchronously, in the order the
mutations committed, and then published to Redis for other instances.
A Redis failure degrades to local-only delivery and never fails a request.
"""

import json
import logging
import uuid

from redis.exceptions import RedisError

from dalchat.redis import keys
from dalchat.redis.client import get_redis
from dalchat.websocket.manager import manager

logger = logging.getLogger(__name__)

# Identifies this process in relayed envelopes so it skips its own events
INSTANCE_ID = uuid.uuid4().hex


def envelope(server_id: str, channel_id: str | None, payload: dict) -> str:
    return json.dumps(
        {
            "origin": INSTANCE_ID,
            "server_id": server_id,
            "channel_id": channel_id,
            "payload": payload,
        }
    )


def dispatch_local(server_id: str, channel_id: str | None, payload: dict) -> int:
    if channel_id is None:
        return manager.dispatch_server(server_id, payload)
    return manager.dispatch_channel(server_id, channel_id, payload)


async def _publish(key: str, data: str) -> None:
    r = get_redis()
    if r is None:
        return
    try:
        await r.publish(key, data)
    except (RedisError, OSError) as exc:
        logger.warning("delivery.publish to %s failed: %s", key, exc)


async def publish_channel_event(server_id: str, channel_id: str, payload: dict) -> int:
    delivered = dispatch_local(server_id, channel_id, payload)
    await _publish(keys.channel_pubsub_key(server_id, channel_id), envelope(server_id, channel_id, payload))
    return delivered


async def publish_server_event(server_id: str, payload: dict) -> int:
    delivered = dispatch_local(server_id, None, payload)
    await _publish(keys.server_pubsub_key(server_id), envelope(server_id, None, payload))
    return delivered


async def publish_channel_deleted(server_id: str, channel_id: str, payload: dict) -> int:
    """Tell the whole server, then release the feeds that pointed at the channel."""
    delivered = await publish_server_event(server_id, payload)
    manager.drop_channel(server_id, channel_id)
    return delivered
