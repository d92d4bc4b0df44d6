"""
Project API key management.

The plain secret key is only returned by the create call; afterwards only its
display form (prefix and last four characters) is available.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tracedeck.api.public.helpers.api_key_auth import generate_key_set
from tracedeck.api.v1.deps import get_project_member
from tracedeck.api.v1.helpers.permissions import ProjectScope, throw_if_no_access
from tracedeck.api.v1.helpers.responses import not_found_response, success_response
from tracedeck.db.session import get_db
from tracedeck.models.iam.api_keys import ApiKey
from tracedeck.models.pydantic_models.api_keys import (
    ApiKeyModel,
    CreateApiKeyRequest,
    CreatedApiKeyModel,
)
from tracedeck.models.pydantic_models.session import SessionUser
import logging

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=list[ApiKeyModel])
async def list_api_keys(
    project_id: UUID,
    current_user: SessionUser = Depends(get_project_member),
    db: AsyncSession = Depends(get_db),
):
    throw_if_no_access(current_user, project_id, ProjectScope.API_KEYS_READ)

    result = await db.execute(
        select(ApiKey)
        .where(ApiKey.project_id == project_id)
        .order_by(ApiKey.created_at.asc())
    )
    return [ApiKeyModel.model_validate(k) for k in result.scalars().all()]


@router.post("", response_model=CreatedApiKeyModel)
async def create_api_key(
    project_id: UUID,
    request: CreateApiKeyRequest,
    current_user: SessionUser = Depends(get_project_member),
    db: AsyncSession = Depends(get_db),
):
    throw_if_no_access(current_user, project_id, ProjectScope.API_KEYS_CREATE)

    public_key, secret_key, hashed_secret_key, display_secret_key = generate_key_set()
    api_key = ApiKey(
        project_id=project_id,
        public_key=public_key,
        hashed_secret_key=hashed_secret_key,
        display_secret_key=display_secret_key,
        note=request.note,
    )
    db.add(api_key)
    await db.commit()
    await db.refresh(api_key)

    logger.info(f"User {current_user.id} created API key {api_key.id} in {project_id}")

    return CreatedApiKeyModel(
        id=api_key.id,
        created_at=api_key.created_at,
        note=api_key.note,
        public_key=api_key.public_key,
        secret_key=secret_key,
        display_secret_key=api_key.display_secret_key,
    )


@router.delete("/{api_key_id}")
async def delete_api_key(
    project_id: UUID,
    api_key_id: UUID,
    current_user: SessionUser = Depends(get_project_member),
    db: AsyncSession = Depends(get_db),
):
    throw_if_no_access(current_user, project_id, ProjectScope.API_KEYS_DELETE)

    # the key must belong to the project the caller has access to
    result = await db.execute(
        select(ApiKey).where(ApiKey.id == api_key_id, ApiKey.project_id == project_id)
    )
    api_key = result.scalar_one_or_none()
    if api_key is None:
        raise not_found_response("API key not found")

    await db.delete(api_key)
    await db.commit()

    logger.info(f"User {current_user.id} deleted API key {api_key_id} in {project_id}")
    return success_response(message="API key deleted successfully")
