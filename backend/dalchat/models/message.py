from sqlalchemy import Column, DateTime, ForeignKey, ForeignKeyConstraint, Index, Integer, String, UniqueConstraint

from dalchat.database import Base, new_id, utcnow


class Message(Base):
    __tablename__ = "messages"

    id = Column(String(32), primary_key=True, default=new_id)
    server_id = Column(String(32), nullable=False)
    channel_id = Column(String(100), nullable=False)
    # Per-channel position, assigned under the server lock
    seq = Column(Integer, nullable=False)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    # Display name at send time; history keeps the old name after a rename.
    username = Column(String(50), nullable=False)
    text = Column(String(2000), nullable=False)
    time = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        ForeignKeyConstraint(
            ["server_id", "channel_id"],
            ["channels.server_id", "channels.id"],
            ondelete="CASCADE",
        ),
        UniqueConstraint("server_id", "channel_id", "seq", name="unique_message_seq"),
        Index("ix_messages_channel_seq", "server_id", "channel_id", "seq"),
    )
