from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from dalchat.database import Base, utcnow

GENERAL_CHANNEL_ID = "general"
DEFAULT_CHANNELS = ("general", "announcements")
CHANNEL_ID_MAX_LENGTH = 100


class Channel(Base):
    __tablename__ = "channels"

    # Slug of the name; unique within a server by construction of the primary key.
    server_id = Column(String(32), ForeignKey("servers.id", ondelete="CASCADE"), primary_key=True)
    id = Column(String(CHANNEL_ID_MAX_LENGTH), primary_key=True)
    name = Column(String(100), nullable=False)
    # Creation order within the server
    position = Column(Integer, nullable=False, default=0)
    # Highest message seq handed out in this channel; never reused.
    last_seq = Column(Integer, nullable=False, default=0)
    last_message_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String(32), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    server = relationship("Server", back_populates="channels")
