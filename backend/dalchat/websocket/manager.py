import asyncio
import json
import logging
from dataclasses import dataclass

from fastapi import WebSocket

from dalchat.core import events

logger = logging.getLogger(__name__)


class ClientConnection:
    """One accepted WebSocket with its own outbound queue.

    Every payload for the socket goes through ``enqueue`` and is written by
    the single ``pump`` task, so events reach the client in the order they
    were dispatched.
    """

    def __init__(self, websocket: WebSocket, user_id: str, client_key: str) -> None:
        self.websocket = websocket
        self.user_id = user_id
        self.client_key = client_key
        self.queue: asyncio.Queue[dict] = asyncio.Queue()

    def enqueue(self, payload: dict) -> None:
        self.queue.put_nowait(payload)

    async def pump(self) -> None:
        while True:
            payload = await self.queue.get()
            await self.websocket.send_text(json.dumps(payload))


@dataclass
class Subscription:
    connection: ClientConnection
    server_id: str
    channel_id: str


class ConnectionManager:
    """Tracks the live feed of every client session.

    Subscriptions are stored as {client_key: Subscription}, where the client
    key is the session token. A session therefore holds at most one feed:
    subscribing again, from the same socket or another one, replaces the
    previous feed instead of adding a second one.
    """

    def __init__(self) -> None:
        # client_key -> Subscription
        self._subscriptions: dict[str, Subscription] = {}

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, connection: ClientConnection, server_id: str, channel_id: str) -> Subscription:
        previous = self._subscriptions.get(connection.client_key)
        if previous is not None and previous.connection is not connection:
            # Same session, different socket: the old socket loses its feed
            previous.connection.enqueue(
                {
                    "type": events.SUBSCRIPTION_REPLACED,
                    "server_id": previous.server_id,
                    "channel_id": previous.channel_id,
                }
            )
        subscription = Subscription(connection, server_id, channel_id)
        self._subscriptions[connection.client_key] = subscription
        logger.info("Feed for user %s now on %s/%s", connection.user_id, server_id, channel_id)
        return subscription

    def unsubscribe(self, connection: ClientConnection) -> Subscription | None:
        """Drop the session's feed if it belongs to *connection*."""
        current = self._subscriptions.get(connection.client_key)
        if current is None or current.connection is not connection:
            return None
        return self._subscriptions.pop(connection.client_key)

    def subscription_for(self, client_key: str) -> Subscription | None:
        return self._subscriptions.get(client_key)

    def active_count(self) -> int:
        return len(self._subscriptions)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch_channel(self, server_id: str, channel_id: str, payload: dict) -> int:
        """Queue *payload* for every feed on one channel. Returns the count reached."""
        delivered = 0
        for sub in list(self._subscriptions.values()):
            if sub.server_id == server_id and sub.channel_id == channel_id:
                sub.connection.enqueue(payload)
                delivered += 1
        return delivered

    def dispatch_server(self, server_id: str, payload: dict) -> int:
        """Queue *payload* for every feed anywhere in one server."""
        delivered = 0
        for sub in list(self._subscriptions.values()):
            if sub.server_id == server_id:
                sub.connection.enqueue(payload)
                delivered += 1
        return delivered

    def drop_channel(self, server_id: str, channel_id: str) -> int:
        """Unsubscribe every feed on a channel that no longer exists."""
        stale = [
            key
            for key, sub in self._subscriptions.items()
            if sub.server_id == server_id and sub.channel_id == channel_id
        ]
        for key in stale:
            del self._subscriptions[key]
        return len(stale)


manager = ConnectionManager()
