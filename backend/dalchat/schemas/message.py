from pydantic import BaseModel

from dalchat.schemas.base import SuccessResponse, UtcDatetime


class MessageCreate(BaseModel):
    text: str


class MessageResponse(BaseModel):
    id: str
    server_id: str
    channel_id: str
    seq: int
    user_id: str
    username: str
    text: str
    time: UtcDatetime

    model_config = {"from_attributes": True}


class MessageEnvelope(SuccessResponse):
    message: MessageResponse


class MessageList(SuccessResponse):
    messages: list[MessageResponse]
    # Highest seq in the channel; pass back as ?after= to fetch only newer messages
    last_seq: int
