from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ScoreResponseModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    timestamp: datetime
    name: str
    value: float
    comment: str | None = None
    trace_id: UUID
    observation_id: UUID | None = None


class CreateScoreRequest(BaseModel):
    trace_id: UUID
    name: str = Field(..., min_length=1)
    value: float
    comment: str | None = None
    observation_id: UUID | None = None


class UpdateScoreRequest(BaseModel):
    value: float
    comment: str | None = None


class FilterOccurrence(BaseModel):
    key: str
    count: int


class FilterOption(BaseModel):
    key: str
    occurrences: list[FilterOccurrence]
