from pydantic import BaseModel, Field

from dalchat.schemas.base import SuccessResponse, UtcDatetime


class ChannelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class ChannelResponse(BaseModel):
    id: str
    server_id: str
    name: str
    position: int
    last_seq: int = 0
    created_at: UtcDatetime

    model_config = {"from_attributes": True}


class ChannelEnvelope(SuccessResponse):
    channel: ChannelResponse


class ChannelList(SuccessResponse):
    channels: list[ChannelResponse]
