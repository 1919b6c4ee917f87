from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from dalchat.database import Base, utcnow

# Valid role values, most privileged first
ROLE_OWNER = "owner"
ROLE_ADMIN = "admin"
ROLE_MODERATOR = "moderator"
ROLE_MEMBER = "member"
VALID_ROLES = (ROLE_OWNER, ROLE_ADMIN, ROLE_MODERATOR, ROLE_MEMBER)


class ServerMembership(Base):
    """Join table between User and Server, with role information."""

    __tablename__ = "server_memberships"

    id = Column(Integer, primary_key=True, index=True)
    server_id = Column(String(32), ForeignKey("servers.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Snapshot of the user's display name when they joined; not kept in sync.
    display_name = Column(String(50), nullable=False)
    # role: "owner" | "admin" | "moderator" | "member"
    role = Column(String(20), nullable=False, default=ROLE_MEMBER)
    joined_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    server = relationship("Server", back_populates="memberships")
    user = relationship("User", back_populates="server_memberships")

    __table_args__ = (UniqueConstraint("server_id", "user_id", name="unique_server_member"),)
