from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from dalchat.database import Base, new_id, utcnow


class Server(Base):
    """A named community. Users join servers and see only the channels
    and members belonging to the servers they have joined."""

    __tablename__ = "servers"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    owner_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    owner = relationship("User", foreign_keys=[owner_id])
    memberships = relationship(
        "ServerMembership",
        back_populates="server",
        cascade="all, delete-orphan",
        order_by="ServerMembership.id",
    )
    channels = relationship(
        "Channel",
        back_populates="server",
        cascade="all, delete-orphan",
        order_by="Channel.position",
    )
