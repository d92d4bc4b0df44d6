from sqlalchemy.sql import func
from sqlalchemy import Column, String, DateTime, Float, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from tracedeck.db.base import Base
import uuid


class ScoreModel(Base):
    """
    A named numeric evaluation attached to a trace, optionally narrowed down
    to one observation of that trace.
    """

    __tablename__ = "scores"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        index=True,
        nullable=False,
        default=uuid.uuid4,
    )
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    name = Column(String, nullable=False)
    value = Column(Float, nullable=False)
    comment = Column(String, nullable=True)

    trace_id = Column(
        UUID(as_uuid=True),
        ForeignKey("traces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    observation_id = Column(
        UUID(as_uuid=True),
        ForeignKey("observations.id", ondelete="SET NULL"),
        nullable=True,
    )

    trace = relationship("TraceModel", back_populates="scores")
