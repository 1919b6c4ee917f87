"""
Poll-diff delivery for clients without a WebSocket.

``ChannelPoller`` fetches only messages newer than the last one it has seen
(by ``seq``), so nothing is re-rendered or re-transmitted. ``FeedController``
owns at most one poller and cancels it before starting the next, which is
what keeps a channel switch from leaving a stale feed behind.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx

from dalchat.client.api import ChatAPIError, ChatClient
from dalchat.config import settings

logger = logging.getLogger(__name__)

OnMessages = Callable[[str, str, list[dict]], Awaitable[None] | None]


class ChannelPoller:
    def __init__(
        self,
        client: ChatClient,
        server_id: str,
        channel_id: str,
        on_messages: OnMessages,
        interval: float | None = None,
    ) -> None:
        self.client = client
        self.server_id = server_id
        self.channel_id = channel_id
        self.on_messages = on_messages
        self.interval = settings.POLL_INTERVAL_SECONDS if interval is None else interval
        # None until the first fetch, which loads the full history
        self.last_seq: int | None = None

    async def poll_once(self) -> list[dict]:
        messages = await self.client.list_messages(self.server_id, self.channel_id, after=self.last_seq)
        if self.last_seq is not None:
            # A late response must never replay what was already handed out
            messages = [m for m in messages if m["seq"] > self.last_seq]
        if self.last_seq is None and not messages:
            self.last_seq = 0
        if messages:
            self.last_seq = messages[-1]["seq"]
            result = self.on_messages(self.server_id, self.channel_id, messages)
            if asyncio.iscoroutine(result):
                await result
        return messages

    async def run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except (ChatAPIError, httpx.HTTPError) as exc:
                # Try again on the next tick
                logger.warning("Poll of %s/%s failed: %s", self.server_id, self.channel_id, exc)
            except Exception:
                # last_seq already moved past the batch, so it is not handed out twice
                logger.exception("Message callback for %s/%s failed", self.server_id, self.channel_id)
            await asyncio.sleep(self.interval)


class FeedController:
    """Holds the single live feed of one client."""

    def __init__(self, client: ChatClient, on_messages: OnMessages, interval: float | None = None) -> None:
        self.client = client
        self.on_messages = on_messages
        self.interval = interval
        self.poller: ChannelPoller | None = None
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> tuple[str, str] | None:
        if self.poller is None:
            return None
        return self.poller.server_id, self.poller.channel_id

    async def switch(self, server_id: str, channel_id: str) -> ChannelPoller:
        await self.stop()
        self.poller = ChannelPoller(self.client, server_id, channel_id, self.on_messages, self.interval)
        self._task = asyncio.create_task(self.poller.run())
        return self.poller

    async def stop(self) -> None:
        task, self._task = self._task, None
        self.poller = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
