"""
Dashboard session authentication.

Sessions are HS256 JWTs issued at login. The resolved ``SessionUser`` (with its
project memberships) is cached in Valkey under ``user:{id}`` until the token
expires.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
from fastapi import Depends, Request
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tracedeck.api.v1.helpers.responses import unauthorized_response
from tracedeck.config import settings
from tracedeck.db.session import get_db
from tracedeck.db.valkey import delete_key, get_key, set_key
from tracedeck.models.iam.memberships import Membership
from tracedeck.models.iam.users import User
from tracedeck.models.pydantic_models.session import Session, SessionUser
import logging

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def hash_password(plain_password: str) -> str:
    return bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt()).decode(
        "utf-8"
    )


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(
        plain_password.encode("utf-8"), hashed_password.encode("utf-8")
    )


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(hours=settings.session_expire_hours)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def _session_cache_key(user_id) -> str:
    return f"user:{user_id}"


async def invalidate_session_cache(user_id: UUID) -> None:
    await delete_key(_session_cache_key(user_id))


async def load_session_user(user_id, db: AsyncSession) -> SessionUser | None:
    result = await db.execute(
        select(User)
        .options(selectinload(User.memberships).selectinload(Membership.project))
        .where(User.user_id == user_id)
    )
    user = result.scalar_one_or_none()
    if user is None:
        return None
    if not user.is_active:
        raise unauthorized_response("Invalid or inactive user")
    return SessionUser.from_orm_obj(user)


async def resolve_session(
    jwt_token: str, db: AsyncSession, use_cache: bool = True
) -> Session:
    try:
        payload = jwt.decode(jwt_token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        raise unauthorized_response("Invalid JWT")

    user_id = payload.get("sub")
    if user_id is None:
        raise unauthorized_response("No user id found in token")
    try:
        user_id = UUID(user_id)
    except ValueError:
        raise unauthorized_response("Invalid user id in token")

    expires = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    cache_key = _session_cache_key(user_id)

    cached_data = await get_key(cache_key) if use_cache else None
    if cached_data:
        session_user = SessionUser.model_validate_json(cached_data)
        if session_user.id == user_id:
            # the cached memberships are reused, the user row is always re-read
            is_active = await db.scalar(
                select(User.is_active).where(User.user_id == user_id)
            )
            if is_active:
                return Session(user=session_user, expires=expires)
        await delete_key(cache_key)

    session_user = await load_session_user(user_id, db)
    if session_user is None:
        # token outlived its user
        logger.info(f"Session token for deleted user {user_id}")
        return Session(user=None, expires=expires)

    if use_cache:
        ttl_seconds = int((expires - datetime.now(timezone.utc)).total_seconds())
        if ttl_seconds > 0:
            await set_key(cache_key, session_user.model_dump_json(), ttl=ttl_seconds)

    return Session(user=session_user, expires=expires)


async def get_session(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Session:
    auth_header: str | None = request.headers.get("Authorization")
    if not auth_header or not auth_header.lower().startswith("bearer "):
        raise unauthorized_response("No authentication method found")
    return await resolve_session(auth_header[7:], db)


async def get_current_user(session: Session = Depends(get_session)) -> SessionUser:
    if session.user is None:
        raise unauthorized_response("User no longer exists")
    return session.user
