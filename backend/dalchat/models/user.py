from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from dalchat.database import Base, new_id, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    # Stored lower-cased; the login key.
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    # The only field that may change after signup.
    display_name = Column(String(50), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    sessions = relationship("AuthSession", back_populates="user", cascade="all, delete-orphan")
    server_memberships = relationship("ServerMembership", back_populates="user")
