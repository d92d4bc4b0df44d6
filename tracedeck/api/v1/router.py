"""
Dashboard router assembly.

Every route here authenticates with a session JWT; project-scoped routes
additionally require membership of the project in the path.
"""

from fastapi import APIRouter

from tracedeck.api.v1.endpoints import api_keys, scores, traces
from tracedeck.api.v1.endpoints.iam import users as iam_users

api_router = APIRouter()

api_router.include_router(
    api_keys.router, prefix="/projects/{project_id}/api-keys", tags=["api-keys"]
)
api_router.include_router(
    scores.project_router, prefix="/projects/{project_id}/scores", tags=["scores"]
)
api_router.include_router(scores.router, prefix="/scores", tags=["scores"])
api_router.include_router(
    traces.router, prefix="/projects/{project_id}/traces", tags=["traces"]
)

# login is public, the rest of IAM checks the session per endpoint
api_router.include_router(iam_users.router, prefix="/iam", tags=["iam"])
