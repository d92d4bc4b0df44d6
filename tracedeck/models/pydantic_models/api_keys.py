from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ApiKeyModel(BaseModel):
    """An API key as listed on the project settings page (no secret material)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime | None = None
    expires_at: datetime | None = None
    last_used_at: datetime | None = None
    note: str | None = None
    public_key: str
    display_secret_key: str


class CreateApiKeyRequest(BaseModel):
    note: str | None = Field(None, max_length=500)


class CreatedApiKeyModel(BaseModel):
    """Returned once on creation; the plain secret key is not retrievable afterwards."""

    id: UUID
    created_at: datetime | None = None
    note: str | None = None
    public_key: str
    secret_key: str
    display_secret_key: str
