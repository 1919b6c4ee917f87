from pydantic import AliasChoices, BaseModel, EmailStr, Field

from dalchat.schemas.base import UtcDatetime


def _display_name():
    # The browser client posts camelCase; snake_case is accepted as well.
    return Field(..., max_length=50, validation_alias=AliasChoices("displayName", "display_name"))


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    display_name: str = _display_name()


class UserLogin(BaseModel):
    email: str
    password: str


class UserUpdate(BaseModel):
    display_name: str = _display_name()


class UserResponse(BaseModel):
    id: str
    email: str
    display_name: str
    created_at: UtcDatetime

    model_config = {"from_attributes": True}
