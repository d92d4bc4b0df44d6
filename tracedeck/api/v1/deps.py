from uuid import UUID

from fastapi import Depends, Path

from tracedeck.api.v1.helpers.authentication import get_current_user
from tracedeck.api.v1.helpers.permissions import throw_if_not_member
from tracedeck.models.pydantic_models.session import SessionUser


async def get_project_member(
    project_id: UUID = Path(..., description="Project the route operates on"),
    current_user: SessionUser = Depends(get_current_user),
) -> SessionUser:
    """Session user, provided they are a member of the project in the path."""
    throw_if_not_member(current_user, project_id)
    return current_user
