from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from tracedeck.models.pydantic_models.scores import ScoreResponseModel


class ObservationResponseModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    trace_id: UUID
    parent_observation_id: UUID | None = None
    type: str
    name: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    model: str | None = None
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    metadata: Any | None = Field(None, validation_alias="metadata_attributes")


class UsageTotals(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_observations(cls, observations) -> "UsageTotals":
        return cls(
            prompt_tokens=sum(o.prompt_tokens or 0 for o in observations),
            completion_tokens=sum(o.completion_tokens or 0 for o in observations),
            total_tokens=sum(o.total_tokens or 0 for o in observations),
        )


class TraceDetailResponseModel(BaseModel):
    id: UUID
    project_id: UUID
    external_id: str | None = None
    user_id: str | None = None
    name: str | None = None
    timestamp: datetime
    metadata: Any | None = None
    observations: list[ObservationResponseModel]
    scores: list[ScoreResponseModel]
    usage: UsageTotals

    @classmethod
    def from_orm_obj(cls, trace) -> "TraceDetailResponseModel":
        observations = [
            ObservationResponseModel.model_validate(o) for o in trace.observations
        ]
        return cls(
            id=trace.id,
            project_id=trace.project_id,
            external_id=trace.external_id,
            user_id=trace.user_id,
            name=trace.name,
            timestamp=trace.timestamp,
            metadata=trace.metadata_attributes,
            observations=observations,
            scores=[ScoreResponseModel.model_validate(s) for s in trace.scores],
            usage=UsageTotals.from_observations(observations),
        )
