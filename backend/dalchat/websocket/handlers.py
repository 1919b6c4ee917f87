import asyncio
import json
import logging
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from dalchat.core import events
from dalchat.core.errors import ChatError
from dalchat.models.user import User
from dalchat.schemas.message import MessageResponse
from dalchat.services import message_log, registry, sessions
from dalchat.services import membership as membership_service
from dalchat.websocket.manager import ClientConnection, manager

logger = logging.getLogger(__name__)


async def _authenticate(websocket: WebSocket, db: Session) -> tuple[User, str] | None:
    """Expect the first message to be {"type": "auth", "token": "<session token>"}."""
    await websocket.accept()  # must accept before receive_text()
    try:
        raw = await websocket.receive_text()
        data = json.loads(raw)
    except Exception:
        await websocket.close(code=1008)
        return None

    if not isinstance(data, dict) or data.get("type") != events.AUTH:
        await websocket.close(code=1008)
        return None

    token = data.get("token") or ""
    try:
        user_id = sessions.resolve(db, token)
    except ChatError:
        await websocket.close(code=1008)
        return None

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        await websocket.close(code=1008)
        return None

    return user, token


def _subscribe(connection: ClientConnection, data: dict[str, Any], db: Session) -> None:
    """Validate and switch the session's feed.

    Runs without awaiting so that the ack and backlog are queued before any
    live event for the new channel can be dispatched.
    """
    server_id = str(data.get("server_id") or "")
    channel_id = str(data.get("channel_id") or "")
    after = data.get("after")
    if after is not None and (not isinstance(after, int) or after < 0):
        raise ValueError("after must be a non-negative integer")

    membership_service.require_member(db, server_id, connection.user_id)
    channel = registry.get_channel(db, server_id, channel_id)
    backlog = message_log.list_messages(db, server_id, channel_id, after=after) if after is not None else []

    manager.subscribe(connection, server_id, channel_id)
    connection.enqueue(
        {
            "type": events.SUBSCRIBED,
            "server_id": server_id,
            "channel_id": channel_id,
            "last_seq": channel.last_seq,
        }
    )
    for message in backlog:
        connection.enqueue(
            {
                "type": events.MESSAGE_NEW,
                "server_id": server_id,
                "channel_id": channel_id,
                "message": MessageResponse.model_validate(message).model_dump(mode="json"),
            }
        )


async def feed_ws_handler(websocket: WebSocket, db: Session) -> None:
    """Full lifecycle handler for a client's live feed socket."""
    authenticated = await _authenticate(websocket, db)
    if authenticated is None:
        return
    user, token = authenticated

    connection = ClientConnection(websocket, user.id, client_key=token)
    sender = asyncio.create_task(connection.pump())
    logger.info("WebSocket connected (user %s)", user.id)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data: dict[str, Any] = json.loads(raw)
            except json.JSONDecodeError:
                continue
            if not isinstance(data, dict):
                continue

            event_type = data.get("type")

            try:
                if event_type == events.SUBSCRIBE:
                    _subscribe(connection, data, db)
                elif event_type == events.UNSUBSCRIBE:
                    manager.unsubscribe(connection)
                    connection.enqueue({"type": events.UNSUBSCRIBED})
                elif event_type == events.PING:
                    connection.enqueue({"type": events.PONG})
            except (ChatError, ValueError) as exc:
                connection.enqueue({"type": events.ERROR, "request": event_type, "error": str(exc)})
            except Exception as exc:
                logger.error("Error handling event %r from user %s: %s", event_type, user.id, exc, exc_info=True)

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected (user %s)", user.id)
    finally:
        manager.unsubscribe(connection)
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
        except Exception as exc:
            logger.warning("Feed sender for user %s ended with %s", user.id, exc)
