"""
Server and channel registry.

A server is created with its owner as sole member and two channels,
``general`` and ``announcements``. ``general`` can never be deleted.
Channel ids are slugs of their names and unique within a server.
"""

import logging
import re
from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.orm import Session

from dalchat.core.errors import Conflict, NotFound, ProtectedResource, ValidationError
from dalchat.core.locks import server_locks
from dalchat.core.permissions import Action
from dalchat.models.channel import CHANNEL_ID_MAX_LENGTH, DEFAULT_CHANNELS, GENERAL_CHANNEL_ID, Channel
from dalchat.models.message import Message
from dalchat.models.server import Server
from dalchat.models.server_membership import ROLE_OWNER, ServerMembership
from dalchat.models.user import User
from dalchat.services import membership as membership_service

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


@dataclass
class ServerListing:
    server: Server
    member_count: int
    role: str | None = None


def slugify(name: str) -> str:
    """Lower-case *name* and replace whitespace runs with hyphens."""
    return _WHITESPACE.sub("-", (name or "").strip().lower())


def create_server(db: Session, name: str, owner: User) -> Server:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Server name is required")

    server = Server(name=name, owner_id=owner.id)
    db.add(server)
    db.flush()  # get server.id before adding channels and membership

    for position, channel_name in enumerate(DEFAULT_CHANNELS):
        db.add(
            Channel(
                server_id=server.id,
                id=slugify(channel_name),
                name=channel_name,
                position=position,
                created_by=owner.id,
            )
        )
    db.add(
        ServerMembership(
            server_id=server.id,
            user_id=owner.id,
            display_name=owner.display_name,
            role=ROLE_OWNER,
        )
    )
    db.commit()
    db.refresh(server)

    logger.info("SERVER_CREATED | id=%s name=%r owner=%s", server.id, server.name, owner.id)
    return server


def _member_counts(db: Session, server_ids: list[str]) -> dict[str, int]:
    if not server_ids:
        return {}
    rows = (
        db.query(ServerMembership.server_id, func.count(ServerMembership.id))
        .filter(ServerMembership.server_id.in_(server_ids))
        .group_by(ServerMembership.server_id)
        .all()
    )
    return {server_id: count for server_id, count in rows}


def list_servers_for(db: Session, user_id: str) -> list[ServerListing]:
    """All servers *user_id* belongs to, in creation order."""
    rows = (
        db.query(Server, ServerMembership.role)
        .join(ServerMembership, ServerMembership.server_id == Server.id)
        .filter(ServerMembership.user_id == user_id)
        .order_by(Server.created_at, Server.id)
        .all()
    )
    counts = _member_counts(db, [server.id for server, _ in rows])
    return [ServerListing(server, counts.get(server.id, 0), role) for server, role in rows]


def discover_servers(db: Session) -> list[ServerListing]:
    servers = db.query(Server).order_by(Server.created_at, Server.id).all()
    counts = _member_counts(db, [s.id for s in servers])
    return [ServerListing(s, counts.get(s.id, 0)) for s in servers]


def get_server(db: Session, server_id: str, user_id: str) -> tuple[Server, ServerMembership]:
    membership = membership_service.require_member(db, server_id, user_id)
    return membership.server, membership


def list_channels(db: Session, server_id: str) -> list[Channel]:
    return db.query(Channel).filter(Channel.server_id == server_id).order_by(Channel.position).all()


def get_channel(db: Session, server_id: str, channel_id: str) -> Channel:
    channel = db.query(Channel).filter(Channel.server_id == server_id, Channel.id == channel_id).first()
    if channel is None:
        raise NotFound("Channel not found")
    return channel


def create_channel(db: Session, server_id: str, name: str, acting_user_id: str) -> Channel:
    with server_locks.hold(server_id):
        membership = membership_service.require_member(db, server_id, acting_user_id)
        membership_service.require_capability(membership, Action.CREATE_CHANNEL)

        name = (name or "").strip()
        channel_id = slugify(name)
        if not channel_id:
            raise ValidationError("Channel name is required")
        if len(channel_id) > CHANNEL_ID_MAX_LENGTH:
            raise ValidationError("Channel name is too long")

        existing = db.query(Channel).filter(Channel.server_id == server_id, Channel.id == channel_id).first()
        if existing is not None:
            raise Conflict("A channel with this name already exists in the server")

        last_position = db.query(func.max(Channel.position)).filter(Channel.server_id == server_id).scalar()
        channel = Channel(
            server_id=server_id,
            id=channel_id,
            name=name,
            position=(last_position if last_position is not None else -1) + 1,
            created_by=acting_user_id,
        )
        db.add(channel)
        db.commit()
        db.refresh(channel)

    logger.info("CHANNEL_CREATED | server=%s channel=%s by=%s", server_id, channel_id, acting_user_id)
    return channel


def delete_channel(db: Session, server_id: str, channel_id: str, acting_user_id: str) -> None:
    """Delete a channel together with its message log."""
    with server_locks.hold(server_id):
        membership = membership_service.require_member(db, server_id, acting_user_id)
        # Checked before the role so the answer is the same for everyone
        if channel_id == GENERAL_CHANNEL_ID:
            raise ProtectedResource("The general channel cannot be deleted")
        membership_service.require_capability(membership, Action.DELETE_CHANNEL)

        channel = get_channel(db, server_id, channel_id)
        removed = (
            db.query(Message)
            .filter(Message.server_id == server_id, Message.channel_id == channel_id)
            .delete(synchronize_session=False)
        )
        db.delete(channel)
        db.commit()

    logger.info(
        "CHANNEL_DELETED | server=%s channel=%s messages=%d by=%s",
        server_id,
        channel_id,
        removed,
        acting_user_id,
    )
