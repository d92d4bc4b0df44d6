"""
Public API router assembly.

Public endpoints authenticate with project API keys (see
``helpers/api_key_auth.py``) instead of dashboard sessions, so they are kept
apart from the ``/api/v1`` routers.
"""

from fastapi import APIRouter

from tracedeck.api.public.endpoints import users

public_api_router = APIRouter()
public_api_router.include_router(users.router, tags=["public"])
