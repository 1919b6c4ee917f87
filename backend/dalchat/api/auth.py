from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dalchat.api.deps import get_current_user, get_session_token
from dalchat.database import get_db
from dalchat.models.user import User
from dalchat.schemas.auth import AuthResponse, MeResponse
from dalchat.schemas.base import SuccessResponse
from dalchat.schemas.user import UserCreate, UserLogin, UserResponse, UserUpdate
from dalchat.services import identity, sessions

router = APIRouter(tags=["auth"])


@router.post("/signup", response_model=AuthResponse)
async def signup(user_in: UserCreate, db: Session = Depends(get_db)) -> AuthResponse:
    user = identity.register(db, user_in.email, user_in.password, user_in.display_name)
    token = sessions.create(db, user.id)
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(credentials: UserLogin, db: Session = Depends(get_db)) -> AuthResponse:
    user = identity.verify(db, credentials.email, credentials.password)
    token = sessions.create(db, user.id)
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    token: str = Depends(get_session_token),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    sessions.revoke(db, token)
    return SuccessResponse()


@router.get("/me", response_model=MeResponse)
async def get_me(current_user: User = Depends(get_current_user)) -> MeResponse:
    return MeResponse(user=UserResponse.model_validate(current_user))


@router.patch("/me", response_model=MeResponse)
async def update_me(
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MeResponse:
    user = identity.update_display_name(db, current_user.id, data.display_name)
    return MeResponse(user=UserResponse.model_validate(user))
