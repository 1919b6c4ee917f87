"""
Single capability table for server roles.

Every permission question in the codebase goes through ``can(role, action)``
so endpoints cannot drift apart with their own allow-lists.
"""

from enum import Enum

from dalchat.models.server_membership import ROLE_ADMIN, ROLE_MEMBER, ROLE_MODERATOR, ROLE_OWNER

ROLE_RANK: dict[str, int] = {
    ROLE_OWNER: 3,
    ROLE_ADMIN: 2,
    ROLE_MODERATOR: 1,
    ROLE_MEMBER: 0,
}


class Action(str, Enum):
    READ = "read"
    SEND_MESSAGE = "send_message"
    CREATE_CHANNEL = "create_channel"
    DELETE_CHANNEL = "delete_channel"
    SET_ROLE = "set_role"
    TRANSFER_OWNERSHIP = "transfer_ownership"


# Least privileged role allowed to perform each action
_MINIMUM_ROLE: dict[Action, str] = {
    Action.READ: ROLE_MEMBER,
    Action.SEND_MESSAGE: ROLE_MEMBER,
    Action.CREATE_CHANNEL: ROLE_ADMIN,
    Action.DELETE_CHANNEL: ROLE_ADMIN,
    Action.SET_ROLE: ROLE_OWNER,
    Action.TRANSFER_OWNERSHIP: ROLE_OWNER,
}


def can(role: str | None, action: Action) -> bool:
    """Return True if *role* may perform *action*. Unknown roles may do nothing."""
    if role not in ROLE_RANK:
        return False
    return ROLE_RANK[role] >= ROLE_RANK[_MINIMUM_ROLE[action]]
