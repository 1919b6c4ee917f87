from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from dalchat.core.errors import Unauthorized
from dalchat.database import get_db
from dalchat.models.server_membership import ServerMembership
from dalchat.models.user import User
from dalchat.services import membership as membership_service
from dalchat.services import sessions

# auto_error=False so a missing header is a 401 in our error envelope
security = HTTPBearer(auto_error=False)


def get_session_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    if credentials is None or not credentials.credentials:
        raise Unauthorized()
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_session_token),
    db: Session = Depends(get_db),
) -> User:
    user_id = sessions.resolve(db, token)
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise Unauthorized()
    return user


def require_server_member(
    server_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ServerMembership:
    """
    Verifies the current user is a member of server_id.
    Returns the membership record (which carries the user's role).
    Raises NotFound if the server doesn't exist, NotMember otherwise.
    """
    return membership_service.require_member(db, server_id, current_user.id)
