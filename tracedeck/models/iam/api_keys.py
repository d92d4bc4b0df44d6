"""
Project API keys.

A key is a pair: the public key (stored in plain text, usable on its own as a
publishable credential) and the secret key, of which only a bcrypt hash and a
truncated display form are stored.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from tracedeck.db.base import Base
import uuid


class ApiKey(Base):
    __tablename__ = "api_keys"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        index=True,
        nullable=False,
        default=uuid.uuid4,
    )
    project_id = Column(
        UUID(as_uuid=True),
        ForeignKey("projects.project_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    public_key = Column(String, nullable=False, unique=True, index=True)
    hashed_secret_key = Column(String, nullable=False, unique=True)
    display_secret_key = Column(String, nullable=False)
    note = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=True)
    last_used_at = Column(DateTime(timezone=True), nullable=True)

    project = relationship("Project", back_populates="api_keys")
