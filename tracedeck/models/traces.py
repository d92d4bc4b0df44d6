"""
Telemetry DB models: traces and the observations (LLM calls, spans, events)
recorded inside them.
"""

from sqlalchemy.sql import func
from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    Integer,
)
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship

from tracedeck.db.base import Base
import uuid


class TraceModel(Base):
    __tablename__ = "traces"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        index=True,
        nullable=False,
        default=uuid.uuid4,
    )
    external_id = Column(String, nullable=True)  # id assigned by the caller's system
    name = Column(String, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # End user of the instrumented application, free-form and optional
    user_id = Column(String, nullable=True, index=True)

    metadata_attributes = Column("metadata", JSONB, nullable=True)

    project_id = Column(
        UUID(as_uuid=True),
        ForeignKey("projects.project_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    observations = relationship(
        "ObservationModel",
        back_populates="trace",
        cascade="all, delete-orphan",
        order_by="ObservationModel.start_time",
    )
    scores = relationship(
        "ScoreModel", back_populates="trace", cascade="all, delete-orphan"
    )


class ObservationModel(Base):
    __tablename__ = "observations"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        index=True,
        nullable=False,
        default=uuid.uuid4,
    )
    trace_id = Column(
        UUID(as_uuid=True),
        ForeignKey("traces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parent_observation_id = Column(UUID(as_uuid=True), nullable=True)

    type = Column(String, nullable=False, default="GENERATION")  # SPAN | EVENT | GENERATION
    name = Column(String, nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)

    model = Column(String, nullable=True)
    prompt_tokens = Column(Integer, nullable=False, default=0)
    completion_tokens = Column(Integer, nullable=False, default=0)
    total_tokens = Column(Integer, nullable=False, default=0)

    metadata_attributes = Column("metadata", JSONB, nullable=True)

    trace = relationship("TraceModel", back_populates="observations")
