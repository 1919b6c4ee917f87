from pydantic import BaseModel, Field

from dalchat.schemas.base import SuccessResponse, UtcDatetime
from dalchat.schemas.channel import ChannelResponse


class ServerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class ServerResponse(BaseModel):
    id: str
    name: str
    owner_id: str
    created_at: UtcDatetime
    # Computed fields, injected per-request, not stored as columns
    member_count: int | None = None
    current_user_role: str | None = None

    model_config = {"from_attributes": True}


class ServerMembershipResponse(BaseModel):
    user_id: str
    display_name: str
    role: str
    joined_at: UtcDatetime

    model_config = {"from_attributes": True}


class ServerDetail(ServerResponse):
    channels: list[ChannelResponse] = []
    members: list[ServerMembershipResponse] = []


class ServerEnvelope(SuccessResponse):
    server: ServerResponse


class ServerDetailEnvelope(SuccessResponse):
    server: ServerDetail


class ServerList(SuccessResponse):
    servers: list[ServerResponse]


class MemberEnvelope(SuccessResponse):
    member: ServerMembershipResponse


class JoinResponse(MemberEnvelope):
    joined: bool


class MemberList(SuccessResponse):
    members: list[ServerMembershipResponse]


class RoleUpdate(BaseModel):
    role: str


class OwnershipTransfer(BaseModel):
    new_owner_id: str
