"""
Per-end-user token usage for a project.

For every distinct end user seen on the project's traces, returns a list of
days (most recent first), each with the token counts per model used that day.
Users whose traces carry no token usage are still listed, with no metrics.

The page of users and the total user count are read concurrently on two
separate sessions, without a shared transaction: under concurrent writes the
two may reflect slightly different snapshots.

Note the count treats traces without a user id as one extra (synthetic) user,
while the listing itself only contains real user ids.
"""

import asyncio
import logging
import math
from uuid import UUID

from sqlalchemy import JSON, String, bindparam, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.ext.asyncio import async_sessionmaker

from tracedeck.models.pydantic_models.usage import (
    PaginatedUserUsage,
    PaginationMeta,
    UserUsage,
)

logger = logging.getLogger(__name__)

NULL_USER_BUCKET = "COUNT_NULL"

USER_USAGE_QUERY = (
    text(
        """
        WITH model_usage AS (
            SELECT
                t.user_id,
                DATE_TRUNC('day', o.start_time) AS observation_day,
                o.model,
                SUM(o.prompt_tokens) AS prompt_tokens,
                SUM(o.completion_tokens) AS completion_tokens,
                SUM(o.total_tokens) AS total_tokens
            FROM traces t
            LEFT JOIN observations o ON o.trace_id = t.id
            WHERE o.start_time IS NOT NULL
              AND t.project_id = :project_id
            GROUP BY 1, 2, 3
        ),
        daily_usage AS (
            SELECT
                user_id,
                observation_day,
                json_agg(
                    json_build_object(
                        'model', model,
                        'promptTokens', prompt_tokens,
                        'completionTokens', completion_tokens,
                        'totalTokens', total_tokens
                    )
                    ORDER BY model
                ) AS daily_usage_json
            FROM model_usage
            WHERE prompt_tokens > 0
               OR completion_tokens > 0
               OR total_tokens > 0
            GROUP BY 1, 2
        ),
        all_users AS (
            SELECT DISTINCT user_id
            FROM traces
            WHERE project_id = :project_id
              AND user_id IS NOT NULL
        )
        SELECT
            all_users.user_id,
            COALESCE(
                json_agg(
                    json_build_object(
                        'date', daily_usage.observation_day,
                        'usage', daily_usage.daily_usage_json
                    )
                    ORDER BY daily_usage.observation_day DESC
                ) FILTER (WHERE daily_usage.observation_day IS NOT NULL),
                CAST('[]' AS json)
            ) AS metrics
        FROM all_users
        LEFT JOIN daily_usage ON all_users.user_id = daily_usage.user_id
        GROUP BY 1
        ORDER BY 1
        LIMIT :limit OFFSET :offset
        """
    )
    .bindparams(bindparam("project_id", type_=PG_UUID(as_uuid=True)))
    .columns(user_id=String, metrics=JSON)
)

DISTINCT_USER_COUNT_QUERY = text(
    f"""
    SELECT
        COUNT(DISTINCT CASE WHEN user_id IS NULL THEN '{NULL_USER_BUCKET}' ELSE user_id END)
    FROM traces
    WHERE project_id = :project_id
    """
).bindparams(bindparam("project_id", type_=PG_UUID(as_uuid=True)))


async def _fetch_user_usage_page(
    session_factory: async_sessionmaker, project_id: UUID, page: int, limit: int
) -> list[UserUsage]:
    async with session_factory() as session:
        result = await session.execute(
            USER_USAGE_QUERY,
            {"project_id": project_id, "limit": limit, "offset": (page - 1) * limit},
        )
        return [
            UserUsage(user_id=row.user_id, metrics=row.metrics or [])
            for row in result
        ]


async def _count_distinct_users(
    session_factory: async_sessionmaker, project_id: UUID
) -> int:
    async with session_factory() as session:
        count = await session.scalar(
            DISTINCT_USER_COUNT_QUERY, {"project_id": project_id}
        )
        return int(count or 0)


async def compute_user_usage(
    session_factory: async_sessionmaker, project_id: UUID, page: int, limit: int
) -> tuple[list[UserUsage], int]:
    """Return one page of per-user usage and the total number of distinct users."""
    rows, total_distinct_users = await asyncio.gather(
        _fetch_user_usage_page(session_factory, project_id, page, limit),
        _count_distinct_users(session_factory, project_id),
    )
    logger.debug(
        f"Computed usage for {len(rows)} users (page={page}, limit={limit}, "
        f"total={total_distinct_users}) in project {project_id}"
    )
    return rows, total_distinct_users


def paginate(
    rows: list[UserUsage], page: int, limit: int, total_items: int
) -> PaginatedUserUsage:
    return PaginatedUserUsage(
        data=rows,
        meta=PaginationMeta(
            page=page,
            limit=limit,
            total_items=total_items,
            total_pages=math.ceil(total_items / limit),
        ),
    )
