from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dalchat.api.deps import get_current_user, require_server_member
from dalchat.core import events
from dalchat.database import get_db
from dalchat.models.server_membership import ServerMembership
from dalchat.models.user import User
from dalchat.schemas.base import SuccessResponse
from dalchat.schemas.channel import ChannelCreate, ChannelEnvelope, ChannelList, ChannelResponse
from dalchat.services import delivery, registry

router = APIRouter(prefix="/servers/{server_id}/channels", tags=["channels"])


@router.get("", response_model=ChannelList)
async def list_channels(
    server_id: str,
    membership: ServerMembership = Depends(require_server_member),
    db: Session = Depends(get_db),
) -> ChannelList:
    """Channels of this server in creation order. Membership required."""
    channels = registry.list_channels(db, server_id)
    return ChannelList(channels=[ChannelResponse.model_validate(c) for c in channels])


@router.post("", response_model=ChannelEnvelope, status_code=201)
async def create_channel(
    server_id: str,
    channel_in: ChannelCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ChannelEnvelope:
    """Create a channel in this server. Admin or owner only."""
    channel = registry.create_channel(db, server_id, channel_in.name, current_user.id)
    response = ChannelResponse.model_validate(channel)
    await delivery.publish_server_event(
        server_id,
        {"type": events.CHANNEL_CREATED, "server_id": server_id, "channel": response.model_dump(mode="json")},
    )
    return ChannelEnvelope(channel=response)


@router.delete("/{channel_id}", response_model=SuccessResponse)
async def delete_channel(
    server_id: str,
    channel_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    """Delete a channel and its messages. Admin or owner only; general is protected."""
    registry.delete_channel(db, server_id, channel_id, current_user.id)
    await delivery.publish_channel_deleted(
        server_id,
        channel_id,
        {"type": events.CHANNEL_DELETED, "server_id": server_id, "channel_id": channel_id},
    )
    return SuccessResponse()
