"""
Identity store: user accounts and credential checks.

Only the bcrypt hash of a password is ever stored. ``verify`` reports an
unknown email and a wrong password with the same error so callers cannot
probe which addresses are registered.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dalchat.core import security
from dalchat.core.errors import Conflict, InvalidCredentials, NotFound, ValidationError
from dalchat.models.user import User

logger = logging.getLogger(__name__)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def register(db: Session, email: str, password: str, display_name: str) -> User:
    email = normalize_email(email)
    if not email:
        raise ValidationError("Email is required")

    # Duplicate email wins over any other problem with the request
    if db.query(User).filter(User.email == email).first():
        raise Conflict("Email already registered")

    display_name = (display_name or "").strip()
    if not password:
        raise ValidationError("Password is required")
    if len(password) < security.MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {security.MIN_PASSWORD_LENGTH} characters")
    if not display_name:
        raise ValidationError("Display name is required")

    user = User(
        email=email,
        hashed_password=security.hash_password(password),
        display_name=display_name,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent signup for the same address
        db.rollback()
        raise Conflict("Email already registered") from None
    db.refresh(user)

    logger.info("USER_REGISTERED | id=%s email=%s", user.id, user.email)
    return user


def verify(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == normalize_email(email)).first()
    hashed = user.hashed_password if user else None
    # An unknown email still pays for one bcrypt check
    if not security.verify_password(password or "", hashed):
        raise InvalidCredentials()
    return user


def get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFound("User not found")
    return user


def update_display_name(db: Session, user_id: str, display_name: str) -> User:
    """Rename a user. Member and message snapshots keep the old name."""
    display_name = (display_name or "").strip()
    if not display_name:
        raise ValidationError("Display name is required")

    user = get_user(db, user_id)
    user.display_name = display_name
    db.commit()
    db.refresh(user)
    return user
