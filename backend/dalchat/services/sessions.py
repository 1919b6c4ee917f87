"""
Session registry: opaque bearer tokens mapped to user ids.

All authentication decisions flow through ``resolve``; nothing else reads the
sessions table.
"""

import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from dalchat.config import settings
from dalchat.core.errors import Unauthorized
from dalchat.core.security import new_session_token
from dalchat.database import as_utc, utcnow
from dalchat.models.session import AuthSession

logger = logging.getLogger(__name__)


def _expiry(ttl: timedelta | None):
    if ttl is None:
        if settings.SESSION_TTL_MINUTES <= 0:
            return None
        ttl = timedelta(minutes=settings.SESSION_TTL_MINUTES)
    return utcnow() + ttl


def create(db: Session, user_id: str, ttl: timedelta | None = None) -> str:
    token = new_session_token()
    db.add(AuthSession(token=token, user_id=user_id, expires_at=_expiry(ttl)))
    db.commit()
    return token


def resolve(db: Session, token: str | None) -> str:
    """Return the user id behind *token* or raise Unauthorized."""
    if not token:
        raise Unauthorized()

    session = db.query(AuthSession).filter(AuthSession.token == token).first()
    if session is None:
        raise Unauthorized()

    expires_at = as_utc(session.expires_at)
    if expires_at is not None and expires_at <= utcnow():
        db.delete(session)
        db.commit()
        raise Unauthorized("Session expired")

    return session.user_id


def revoke(db: Session, token: str | None) -> None:
    """Remove *token*. Unknown tokens are ignored."""
    if not token:
        return
    db.query(AuthSession).filter(AuthSession.token == token).delete(synchronize_session=False)
    db.commit()


def purge_expired(db: Session) -> int:
    removed = (
        db.query(AuthSession)
        .filter(AuthSession.expires_at.is_not(None), AuthSession.expires_at <= utcnow())
        .delete(synchronize_session=False)
    )
    db.commit()
    if removed:
        logger.info("Purged %d expired sessions", removed)
    return removed
