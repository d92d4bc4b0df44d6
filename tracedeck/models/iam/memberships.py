"""
Project membership: which dashboard users can see a project, and with which role.
"""

from sqlalchemy import Column, DateTime, ForeignKey, String, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from tracedeck.db.base import Base
from .enums import ProjectRole


class Membership(Base):
    __tablename__ = "memberships"

    project_id = Column(
        UUID(as_uuid=True),
        ForeignKey("projects.project_id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        primary_key=True,
    )
    role = Column(String, nullable=False, default=ProjectRole.VIEWER.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="memberships")
    project = relationship("Project", back_populates="memberships")

    __table_args__ = (
        CheckConstraint(
            role.in_([r.value for r in ProjectRole]),
            name="ck_membership_role",
        ),
    )
