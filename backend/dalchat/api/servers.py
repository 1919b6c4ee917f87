from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dalchat.api.deps import get_current_user, require_server_member
from dalchat.core import events
from dalchat.database import get_db
from dalchat.models.server_membership import ROLE_OWNER, ServerMembership
from dalchat.models.user import User
from dalchat.schemas.channel import ChannelResponse
from dalchat.schemas.server import (
    JoinResponse,
    MemberEnvelope,
    MemberList,
    OwnershipTransfer,
    RoleUpdate,
    ServerCreate,
    ServerDetail,
    ServerDetailEnvelope,
    ServerEnvelope,
    ServerList,
    ServerMembershipResponse,
    ServerResponse,
)
from dalchat.services import delivery, registry
from dalchat.services import membership as membership_service

router = APIRouter(prefix="/servers", tags=["servers"])


def _listing_response(listing: registry.ServerListing) -> ServerResponse:
    data = ServerResponse.model_validate(listing.server)
    data.member_count = listing.member_count
    data.current_user_role = listing.role
    return data


@router.get("", response_model=ServerList)
async def list_my_servers(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ServerList:
    """Return all servers the current user belongs to, oldest first."""
    listings = registry.list_servers_for(db, current_user.id)
    return ServerList(servers=[_listing_response(item) for item in listings])


@router.get("/discover", response_model=ServerList)
async def discover_servers(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ServerList:
    """Every server on this deployment, so users can pick one to join."""
    listings = registry.discover_servers(db)
    return ServerList(servers=[_listing_response(item) for item in listings])


@router.post("", response_model=ServerEnvelope, status_code=201)
async def create_server(
    data: ServerCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ServerEnvelope:
    """Create a new server. Creator becomes owner and first member."""
    server = registry.create_server(db, data.name, current_user)
    response = ServerResponse.model_validate(server)
    response.member_count = 1
    response.current_user_role = ROLE_OWNER
    return ServerEnvelope(server=response)


@router.get("/{server_id}", response_model=ServerDetailEnvelope)
async def get_server(
    server_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ServerDetailEnvelope:
    """Server with its channel list and roster. Membership required."""
    server, membership = registry.get_server(db, server_id, current_user.id)
    members = membership_service.list_members(db, server_id)
    detail = ServerDetail.model_validate(server)
    detail.channels = [ChannelResponse.model_validate(c) for c in registry.list_channels(db, server_id)]
    detail.members = [ServerMembershipResponse.model_validate(m) for m in members]
    detail.member_count = len(members)
    detail.current_user_role = membership.role
    return ServerDetailEnvelope(server=detail)


@router.post("/{server_id}/join", response_model=JoinResponse)
async def join_server(
    server_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> JoinResponse:
    """Join as a plain member. Joining twice is a no-op."""
    membership, created = membership_service.join(db, server_id, current_user)
    member = ServerMembershipResponse.model_validate(membership)
    if created:
        await delivery.publish_server_event(
            server_id,
            {"type": events.MEMBER_JOINED, "server_id": server_id, "member": member.model_dump(mode="json")},
        )
    return JoinResponse(member=member, joined=created)


@router.get("/{server_id}/members", response_model=MemberList)
async def list_members(
    server_id: str,
    membership: ServerMembership = Depends(require_server_member),
    db: Session = Depends(get_db),
) -> MemberList:
    """List all members of this server. Membership required."""
    members = membership_service.list_members(db, server_id)
    return MemberList(members=[ServerMembershipResponse.model_validate(m) for m in members])


@router.put("/{server_id}/members/{target_user_id}/role", response_model=MemberEnvelope)
async def update_member_role(
    server_id: str,
    target_user_id: str,
    body: RoleUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MemberEnvelope:
    """Promote or demote a member. Owner only. The owner's own role is fixed."""
    target = membership_service.set_role(db, server_id, current_user.id, target_user_id, body.role)
    member = ServerMembershipResponse.model_validate(target)
    await delivery.publish_server_event(
        server_id,
        {"type": events.MEMBER_ROLE_CHANGED, "server_id": server_id, "member": member.model_dump(mode="json")},
    )
    return MemberEnvelope(member=member)


@router.post("/{server_id}/transfer-ownership", response_model=ServerEnvelope)
async def transfer_ownership(
    server_id: str,
    body: OwnershipTransfer,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ServerEnvelope:
    """
    Transfer server ownership to another existing member.
    The current owner is demoted to admin.
    """
    server = membership_service.transfer_ownership(db, server_id, current_user.id, body.new_owner_id)
    for user_id in (current_user.id, body.new_owner_id):
        changed = membership_service.get_membership(db, server_id, user_id)
        await delivery.publish_server_event(
            server_id,
            {
                "type": events.MEMBER_ROLE_CHANGED,
                "server_id": server_id,
                "member": ServerMembershipResponse.model_validate(changed).model_dump(mode="json"),
            },
        )
    response = ServerResponse.model_validate(server)
    response.member_count = len(server.memberships)
    response.current_user_role = membership_service.get_membership(db, server_id, current_user.id).role
    return ServerEnvelope(server=response)
