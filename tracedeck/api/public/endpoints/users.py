"""
Public API – per-user token usage analytics for the project of the API key.

Requires a secret-key credential; publishable keys are rejected. Responses use
the public API's flat JSON bodies rather than the dashboard's ``detail``
envelope.
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tracedeck.api.public.helpers.api_key_auth import (
    AccessLevel,
    verify_auth_header_and_return_scope,
)
from tracedeck.core.usage import compute_user_usage, paginate
from tracedeck.db.session import get_db, get_session_factory
from tracedeck.models.pydantic_models.usage import GetUsersQuery

logger = logging.getLogger(__name__)
router = APIRouter()

# Non-GET verbs are routed here too and answered with a 405 body.
_ACCEPTED_METHODS = ["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"]


@router.api_route("/users", methods=_ACCEPTED_METHODS)
async def users(
    request: Request,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """
    List the project's end users with their daily token usage per model.

    Query parameters: ``page`` (default 1) and ``limit`` (default 50, max 100).
    """
    auth_check = await verify_auth_header_and_return_scope(
        request.headers.get("Authorization"), db
    )
    if not auth_check.valid_key:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"success": False, "message": auth_check.error},
        )

    try:
        if request.method != "GET":
            logger.error(f"Method not allowed: {request.method} {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
                content={"message": "Method not allowed"},
            )

        if auth_check.scope.access_level != AccessLevel.ALL:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={
                    "success": False,
                    "message": "Access denied - need to use basic auth with secret key to GET users",
                },
            )

        query = GetUsersQuery.model_validate(dict(request.query_params))

        rows, total_items = await compute_user_usage(
            session_factory,
            project_id=auth_check.scope.project_id,
            page=query.page,
            limit=query.limit,
        )
        envelope = paginate(rows, query.page, query.limit, total_items)
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=envelope.model_dump(mode="json", by_alias=True),
        )
    except Exception as e:
        logger.exception(f"Failed to serve {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "message": "Invalid request data",
                "error": str(e),
            },
        )
