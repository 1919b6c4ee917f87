from dalchat.schemas.base import SuccessResponse
from dalchat.schemas.user import UserResponse


class AuthResponse(SuccessResponse):
    token: str
    token_type: str = "bearer"
    user: UserResponse


class MeResponse(SuccessResponse):
    user: UserResponse
