"""
Models for the public per-user usage endpoint.

Field names are serialized in camelCase (``by_alias``) to match the rest of
the public API.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class GetUsersQuery(BaseModel):
    page: int = Field(1, gt=0)
    limit: int = Field(50, gt=0, le=100)

    model_config = ConfigDict(extra="ignore")


class ModelUsage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    model: str | None = None
    prompt_tokens: int = Field(..., ge=0, alias="promptTokens")
    completion_tokens: int = Field(..., ge=0, alias="completionTokens")
    total_tokens: int = Field(..., ge=0, alias="totalTokens")


class DailyUsage(BaseModel):
    date: datetime
    usage: list[ModelUsage]


class UserUsage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    metrics: list[DailyUsage] = Field(default_factory=list)


class PaginationMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total_items: int = Field(..., alias="totalItems")
    total_pages: int = Field(..., alias="totalPages")


class PaginatedUserUsage(BaseModel):
    data: list[UserUsage]
    meta: PaginationMeta
