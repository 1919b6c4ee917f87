"""
Per-channel append-only message log.

Appends to a channel are linearized by the server lock: each accepted
message gets the next ``seq`` and a send time strictly after the previous
one, so ``seq`` order and time order always agree.
"""

import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from dalchat.config import settings
from dalchat.core.errors import ValidationError
from dalchat.core.locks import server_locks
from dalchat.core.permissions import Action
from dalchat.database import as_utc, utcnow
from dalchat.models.message import Message
from dalchat.services import membership as membership_service
from dalchat.services import registry

logger = logging.getLogger(__name__)

_TICK = timedelta(microseconds=1)


def append(
    db: Session,
    server_id: str,
    channel_id: str,
    user_id: str,
    username: str,
    text: str,
) -> Message:
    username = (username or "").strip()
    if not username or not text or not text.strip():
        raise ValidationError("Missing fields")
    if len(text) > settings.MESSAGE_MAX_LENGTH:
        raise ValidationError(f"Message is longer than {settings.MESSAGE_MAX_LENGTH} characters")

    with server_locks.hold(server_id):
        # Non-members are refused before any channel lookup
        membership = membership_service.require_member(db, server_id, user_id)
        membership_service.require_capability(membership, Action.SEND_MESSAGE)
        channel = registry.get_channel(db, server_id, channel_id)

        sent_at = utcnow()
        last_at = as_utc(channel.last_message_at)
        if last_at is not None and sent_at <= last_at:
            sent_at = last_at + _TICK

        channel.last_seq = (channel.last_seq or 0) + 1
        channel.last_message_at = sent_at
        message = Message(
            server_id=server_id,
            channel_id=channel_id,
            seq=channel.last_seq,
            user_id=user_id,
            username=username,
            text=text,
            time=sent_at,
        )
        db.add(message)
        db.commit()
        db.refresh(message)

    logger.debug("Message %s appended to %s/%s seq=%d", message.id, server_id, channel_id, message.seq)
    return message


def list_messages(
    db: Session,
    server_id: str,
    channel_id: str,
    after: int | None = None,
    limit: int | None = None,
) -> list[Message]:
    """Messages in append order. *after* returns only those with a greater seq."""
    membership_service.get_server(db, server_id)
    registry.get_channel(db, server_id, channel_id)

    query = db.query(Message).filter(
        Message.server_id == server_id,
        Message.channel_id == channel_id,
    )
    if after is not None:
        query = query.filter(Message.seq > after)
    query = query.order_by(Message.seq)
    if limit is not None:
        query = query.limit(limit)
    return query.all()
