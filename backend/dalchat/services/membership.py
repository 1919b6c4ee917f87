"""
Membership & role engine.

Every server-scoped operation starts from ``require_member``: a missing
server is NotFound, a missing membership is NotMember, and a membership
without the needed capability is InsufficientPermission.
"""

import logging

from sqlalchemy.orm import Session

from dalchat.core.errors import (
    InsufficientPermission,
    InvalidRole,
    NotFound,
    NotMember,
    ProtectedResource,
    ValidationError,
)
from dalchat.core.locks import server_locks
from dalchat.core.permissions import Action, can
from dalchat.models.server import Server
from dalchat.models.server_membership import (
    ROLE_ADMIN,
    ROLE_MEMBER,
    ROLE_OWNER,
    VALID_ROLES,
    ServerMembership,
)
from dalchat.models.user import User

logger = logging.getLogger(__name__)


def get_server(db: Session, server_id: str) -> Server:
    server = db.query(Server).filter(Server.id == server_id).first()
    if server is None:
        raise NotFound("Server not found")
    return server


def get_membership(db: Session, server_id: str, user_id: str) -> ServerMembership | None:
    return (
        db.query(ServerMembership)
        .filter(
            ServerMembership.server_id == server_id,
            ServerMembership.user_id == user_id,
        )
        .first()
    )


def require_member(db: Session, server_id: str, user_id: str) -> ServerMembership:
    get_server(db, server_id)
    membership = get_membership(db, server_id, user_id)
    if membership is None:
        raise NotMember()
    return membership


def require_capability(membership: ServerMembership, action: Action) -> None:
    if not can(membership.role, action):
        raise InsufficientPermission()


def list_members(db: Session, server_id: str) -> list[ServerMembership]:
    return (
        db.query(ServerMembership)
        .filter(ServerMembership.server_id == server_id)
        .order_by(ServerMembership.joined_at, ServerMembership.id)
        .all()
    )


def join(db: Session, server_id: str, user: User) -> tuple[ServerMembership, bool]:
    """Add *user* as a plain member. Returns (membership, created)."""
    with server_locks.hold(server_id):
        get_server(db, server_id)
        existing = get_membership(db, server_id, user.id)
        if existing is not None:
            return existing, False

        membership = ServerMembership(
            server_id=server_id,
            user_id=user.id,
            display_name=user.display_name,
            role=ROLE_MEMBER,
        )
        db.add(membership)
        db.commit()
        db.refresh(membership)

    logger.info("MEMBER_JOINED | server=%s user=%s", server_id, user.id)
    return membership, True


def set_role(
    db: Session,
    server_id: str,
    acting_user_id: str,
    target_user_id: str,
    new_role: str,
) -> ServerMembership:
    """Change a member's role. Owner only; ownership itself moves via transfer_ownership."""
    with server_locks.hold(server_id):
        actor = require_member(db, server_id, acting_user_id)
        require_capability(actor, Action.SET_ROLE)

        if new_role not in VALID_ROLES:
            raise InvalidRole(f"Role must be one of: {', '.join(VALID_ROLES)}")
        if new_role == ROLE_OWNER:
            raise InvalidRole("Use transfer-ownership to make someone the owner")

        target = get_membership(db, server_id, target_user_id)
        if target is None:
            raise NotFound("Member not found")
        if target.role == ROLE_OWNER:
            raise ProtectedResource("The server owner's role cannot be changed")

        previous = target.role
        target.role = new_role
        db.commit()
        db.refresh(target)

    logger.info(
        "ROLE_CHANGED | server=%s target=%s %s->%s by=%s",
        server_id,
        target_user_id,
        previous,
        new_role,
        acting_user_id,
    )
    return target


def transfer_ownership(db: Session, server_id: str, acting_user_id: str, new_owner_id: str) -> Server:
    """
    Hand the server to another existing member.
    The current owner is demoted to admin, so there is always exactly one owner.
    """
    with server_locks.hold(server_id):
        actor = require_member(db, server_id, acting_user_id)
        require_capability(actor, Action.TRANSFER_OWNERSHIP)

        if new_owner_id == acting_user_id:
            raise ValidationError("You are already the owner")

        new_owner = get_membership(db, server_id, new_owner_id)
        if new_owner is None:
            raise NotFound("New owner must be an existing member of this server")

        server = get_server(db, server_id)
        server.owner_id = new_owner_id
        actor.role = ROLE_ADMIN
        new_owner.role = ROLE_OWNER
        db.commit()
        db.refresh(server)

    logger.info("OWNERSHIP_TRANSFERRED | server=%s from=%s to=%s", server_id, acting_user_id, new_owner_id)
    return server
