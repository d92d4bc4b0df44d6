"""
IAM – dashboard login and session retrieval.

No signup: the first user is auto-provisioned at startup (see bootstrap.py).
"""

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tracedeck.api.v1.helpers.authentication import (
    create_access_token,
    get_current_user,
    get_session,
    invalidate_session_cache,
    load_session_user,
    verify_password,
)
from tracedeck.api.v1.helpers.responses import unauthorized_response
from tracedeck.config import settings
from tracedeck.db.session import get_db
from tracedeck.models.iam.users import User
from tracedeck.models.pydantic_models.session import Session, SessionUser

router = APIRouter(prefix="/users", tags=["Users"])


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str
    session: Session


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Authenticate with email + password and receive a session JWT."""
    result = await db.execute(select(User).where(User.email == request.email))
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        raise unauthorized_response("Invalid email or password")

    if not verify_password(request.password, user.hashed_password):
        raise unauthorized_response("Invalid email or password")

    user.last_login = datetime.now(timezone.utc)
    await db.commit()
    await invalidate_session_cache(user.user_id)

    expires_delta = timedelta(hours=settings.session_expire_hours)
    access_token = create_access_token(
        data={"sub": str(user.user_id)}, expires_delta=expires_delta
    )

    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        session=Session(
            user=await load_session_user(user.user_id, db),
            expires=datetime.now(timezone.utc) + expires_delta,
        ),
    )


@router.get("/session", response_model=Session)
async def read_session(session: Session = Depends(get_session)):
    """Return the current session; ``user`` is null if the user was deleted."""
    return session


@router.get("/me", response_model=SessionUser)
async def get_me(current_user: SessionUser = Depends(get_current_user)):
    return current_user
