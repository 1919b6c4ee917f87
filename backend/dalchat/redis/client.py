"""
Redis connection behind the cross-instance relay.

``init_redis`` runs once at startup. With no ``REDIS_URL``, or a server that
does not answer, ``get_redis`` returns None and the app runs as a single
instance. ``redis_status`` is what the health report shows.
"""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from dalchat.config import settings

logger = logging.getLogger(__name__)

DISABLED = "disabled"
CONNECTED = "connected"
UNAVAILABLE = "unavailable"


class RelayConnection:
    def __init__(self) -> None:
        self.client: aioredis.Redis | None = None
        self.status = DISABLED

    async def connect(self, url: str) -> None:
        if not url:
            logger.info("No REDIS_URL set, events stay on this instance")
            self.status = DISABLED
            return

        client = aioredis.from_url(url, decode_responses=True)
        try:
            await client.ping()
        except (RedisError, OSError) as exc:
            logger.warning("Redis at %s did not answer (%s), events stay on this instance", url, exc)
            await client.aclose()
            self.status = UNAVAILABLE
            return

        self.client = client
        self.status = CONNECTED
        logger.info("Relaying events through Redis at %s", url)

    def subscriber(self) -> aioredis.client.PubSub | None:
        """A fresh pub/sub handle on the relay connection, if there is one."""
        if self.client is None:
            return None
        return self.client.pubsub()

    def mark_lost(self, exc: BaseException) -> None:
        logger.warning("Lost the Redis relay: %s", exc)
        self.status = UNAVAILABLE

    async def close(self) -> None:
        client, self.client = self.client, None
        self.status = DISABLED
        if client is not None:
            await client.aclose()


relay_connection = RelayConnection()


async def init_redis() -> None:
    await relay_connection.connect(settings.REDIS_URL)


async def close_redis() -> None:
    await relay_connection.close()


def get_redis() -> aioredis.Redis | None:
    return relay_connection.client


def redis_status() -> str:
    return relay_connection.status
