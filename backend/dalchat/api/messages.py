from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dalchat.api.deps import get_current_user, require_server_member
from dalchat.core import events
from dalchat.database import get_db
from dalchat.models.server_membership import ServerMembership
from dalchat.models.user import User
from dalchat.schemas.message import MessageCreate, MessageEnvelope, MessageList, MessageResponse
from dalchat.services import delivery, message_log, registry

router = APIRouter(prefix="/servers/{server_id}/messages", tags=["messages"])


@router.get("/{channel_id}", response_model=MessageList)
async def get_channel_messages(
    server_id: str,
    channel_id: str,
    after: int | None = Query(default=None, ge=0, description="Only messages with a greater seq"),
    limit: int | None = Query(default=None, ge=1),
    membership: ServerMembership = Depends(require_server_member),
    db: Session = Depends(get_db),
) -> MessageList:
    """Full history in append order, or only what is new since ``after``."""
    messages = message_log.list_messages(db, server_id, channel_id, after=after, limit=limit)
    channel = registry.get_channel(db, server_id, channel_id)
    return MessageList(
        messages=[MessageResponse.model_validate(m) for m in messages],
        last_seq=channel.last_seq,
    )


@router.post("/{channel_id}", response_model=MessageEnvelope, status_code=201)
async def send_message(
    server_id: str,
    channel_id: str,
    message_in: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MessageEnvelope:
    message = message_log.append(
        db,
        server_id,
        channel_id,
        current_user.id,
        current_user.display_name,
        message_in.text,
    )
    response = MessageResponse.model_validate(message)

    # Feeds on this channel receive the message in append order.
    await delivery.publish_channel_event(
        server_id,
        channel_id,
        {
            "type": events.MESSAGE_NEW,
            "server_id": server_id,
            "channel_id": channel_id,
            "message": response.model_dump(mode="json"),
        },
    )
    return MessageEnvelope(message=response)
