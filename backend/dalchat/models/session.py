from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from dalchat.database import Base, utcnow


class AuthSession(Base):
    """An opaque bearer token bound to one user. NULL expires_at never expires."""

    __tablename__ = "sessions"

    token = Column(String(64), primary_key=True)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="sessions")
