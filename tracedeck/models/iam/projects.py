from sqlalchemy import Column, String, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from tracedeck.db.base import Base
import uuid


class Project(Base):
    __tablename__ = "projects"

    project_id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        index=True,
        nullable=False,
        default=uuid.uuid4,
    )
    name = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    memberships = relationship(
        "Membership", back_populates="project", cascade="all, delete-orphan"
    )
    api_keys = relationship(
        "ApiKey", back_populates="project", cascade="all, delete-orphan"
    )
