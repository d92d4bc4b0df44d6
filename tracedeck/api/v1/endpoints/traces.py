import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tracedeck.api.v1.deps import get_project_member
from tracedeck.api.v1.helpers.responses import not_found_response
from tracedeck.db.session import get_db
from tracedeck.models.pydantic_models.session import SessionUser
from tracedeck.models.pydantic_models.traces import TraceDetailResponseModel
from tracedeck.models.traces import TraceModel

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{trace_id}", response_model=TraceDetailResponseModel)
async def get_trace_by_id(
    project_id: UUID,
    trace_id: UUID,
    current_user: SessionUser = Depends(get_project_member),
    db: AsyncSession = Depends(get_db),
):
    """
    Retrieve a trace with its observations (ordered by start time), its scores
    and the token usage summed over all observations.
    """
    result = await db.execute(
        select(TraceModel)
        .options(
            selectinload(TraceModel.observations),
            selectinload(TraceModel.scores),
        )
        .where(and_(TraceModel.id == trace_id, TraceModel.project_id == project_id))
    )
    trace = result.scalar_one_or_none()
    if trace is None:
        raise not_found_response(f"Trace with ID {trace_id} not found or not accessible.")

    response = TraceDetailResponseModel.from_orm_obj(trace)
    logger.info(
        f"Retrieved trace {trace_id} with {len(response.observations)} observations "
        f"for project_id={project_id}"
    )
    return response
