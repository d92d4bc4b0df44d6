"""
Scores – evaluations attached to traces (and optionally to one observation).

Project-scoped listing lives under ``/projects/{project_id}/scores``; single
score operations under ``/scores/{score_id}`` resolve the project through the
score's trace and check that the caller is a member of it.
"""

import asyncio
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tracedeck.api.v1.deps import get_project_member
from tracedeck.api.v1.helpers.authentication import get_current_user
from tracedeck.api.v1.helpers.permissions import ProjectScope, throw_if_no_access
from tracedeck.api.v1.helpers.responses import (
    not_found_response,
    validation_error_response,
)
from tracedeck.db.session import get_db, get_session_factory
from tracedeck.models.iam.memberships import Membership
from tracedeck.models.pydantic_models.scores import (
    CreateScoreRequest,
    FilterOccurrence,
    FilterOption,
    ScoreResponseModel,
    UpdateScoreRequest,
)
from tracedeck.models.pydantic_models.session import SessionUser
from tracedeck.models.scores import ScoreModel
from tracedeck.models.traces import ObservationModel, TraceModel
import logging

logger = logging.getLogger(__name__)

project_router = APIRouter()
router = APIRouter()

MAX_LISTED_SCORES = 100


def _score_filter_conditions(
    project_id: UUID,
    trace_ids: list[UUID] | None,
    score_ids: list[UUID] | None,
    user_id: str | None,
) -> list:
    conditions = [TraceModel.project_id == project_id]
    if user_id:
        conditions.append(TraceModel.user_id == user_id)
    if trace_ids:
        conditions.append(ScoreModel.trace_id.in_(trace_ids))
    if score_ids:
        conditions.append(ScoreModel.id.in_(score_ids))
    return conditions


def _member_project_ids(user_id: UUID):
    return select(Membership.project_id).where(Membership.user_id == user_id)


async def _get_accessible_trace(
    trace_id: UUID, current_user: SessionUser, db: AsyncSession
) -> TraceModel:
    result = await db.execute(
        select(TraceModel).where(
            and_(
                TraceModel.id == trace_id,
                TraceModel.project_id.in_(_member_project_ids(current_user.id)),
            )
        )
    )
    trace = result.scalar_one_or_none()
    if trace is None:
        raise not_found_response("Trace not found")
    return trace


async def _get_accessible_score(
    score_id: UUID, current_user: SessionUser, db: AsyncSession
) -> tuple[ScoreModel, UUID]:
    """Load a score whose trace belongs to one of the caller's projects."""
    result = await db.execute(
        select(ScoreModel, TraceModel.project_id)
        .join(TraceModel, ScoreModel.trace_id == TraceModel.id)
        .where(
            and_(
                ScoreModel.id == score_id,
                TraceModel.project_id.in_(_member_project_ids(current_user.id)),
            )
        )
    )
    row = result.first()
    if row is None:
        raise not_found_response("Score not found")
    return row[0], row[1]


# ── project-scoped ────────────────────────────────────────────────────────


@project_router.get("", response_model=list[ScoreResponseModel])
async def list_scores(
    project_id: UUID,
    trace_id: list[UUID] | None = Query(None),
    id: list[UUID] | None = Query(None),
    user_id: str | None = Query(None, description="End user id on the trace"),
    current_user: SessionUser = Depends(get_project_member),
    db: AsyncSession = Depends(get_db),
):
    """Most recent scores of the project, newest first."""
    # TODO: replace the fixed cap with offset pagination once the dashboard table pages
    result = await db.execute(
        select(ScoreModel)
        .join(TraceModel, ScoreModel.trace_id == TraceModel.id)
        .where(and_(*_score_filter_conditions(project_id, trace_id, id, user_id)))
        .order_by(ScoreModel.timestamp.desc())
        .limit(MAX_LISTED_SCORES)
    )
    return [ScoreResponseModel.model_validate(s) for s in result.scalars().all()]


async def _count_by(
    session_factory: async_sessionmaker, column, conditions: list
) -> list[FilterOccurrence]:
    async with session_factory() as session:
        result = await session.execute(
            select(column, func.count())
            .select_from(ScoreModel)
            .join(TraceModel, ScoreModel.trace_id == TraceModel.id)
            .where(and_(*conditions))
            .group_by(column)
        )
        return [FilterOccurrence(key=str(key), count=count) for key, count in result.all()]


@project_router.get("/filter-options", response_model=list[FilterOption])
async def available_filter_options(
    project_id: UUID,
    trace_id: list[UUID] | None = Query(None),
    id: list[UUID] | None = Query(None),
    user_id: str | None = Query(None),
    current_user: SessionUser = Depends(get_project_member),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """Distinct score ids and trace ids matching the filters, with counts."""
    conditions = _score_filter_conditions(project_id, trace_id, id, user_id)
    ids, trace_ids = await asyncio.gather(
        _count_by(session_factory, ScoreModel.id, conditions),
        _count_by(session_factory, ScoreModel.trace_id, conditions),
    )
    return [
        FilterOption(key="id", occurrences=ids),
        FilterOption(key="traceId", occurrences=trace_ids),
    ]


# ── single score ──────────────────────────────────────────────────────────


@router.get("/{score_id}", response_model=ScoreResponseModel)
async def get_score(
    score_id: UUID,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    score, _ = await _get_accessible_score(score_id, current_user, db)
    return ScoreResponseModel.model_validate(score)


@router.post("", response_model=ScoreResponseModel)
async def create_score(
    request: CreateScoreRequest,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    trace = await _get_accessible_trace(request.trace_id, current_user, db)
    throw_if_no_access(current_user, trace.project_id, ProjectScope.SCORES_CUD)

    if request.observation_id is not None:
        observation = await db.scalar(
            select(ObservationModel.id).where(
                ObservationModel.id == request.observation_id,
                ObservationModel.trace_id == trace.id,
            )
        )
        if observation is None:
            raise validation_error_response(
                [f"Observation {request.observation_id} is not part of trace {trace.id}"]
            )

    score = ScoreModel(
        trace_id=trace.id,
        observation_id=request.observation_id,
        name=request.name,
        value=request.value,
        comment=request.comment,
    )
    db.add(score)
    await db.commit()
    await db.refresh(score)
    return ScoreResponseModel.model_validate(score)


@router.put("/{score_id}", response_model=ScoreResponseModel)
async def update_score(
    score_id: UUID,
    request: UpdateScoreRequest,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    score, project_id = await _get_accessible_score(score_id, current_user, db)
    throw_if_no_access(current_user, project_id, ProjectScope.SCORES_CUD)

    score.value = request.value
    if "comment" in request.model_fields_set:
        score.comment = request.comment
    await db.commit()
    await db.refresh(score)
    return ScoreResponseModel.model_validate(score)


@router.delete("/{score_id}", response_model=ScoreResponseModel)
async def delete_score(
    score_id: UUID,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    score, project_id = await _get_accessible_score(score_id, current_user, db)
    throw_if_no_access(current_user, project_id, ProjectScope.SCORES_CUD)

    deleted = ScoreResponseModel.model_validate(score)
    await db.delete(score)
    await db.commit()

    logger.info(f"User {current_user.id} deleted score {score_id}")
    return deleted
