"""
API key authentication for the public API.

Two credential forms are accepted on the ``Authorization`` header:

* ``Basic base64(public_key:secret_key)``: full access to the key's project.
* ``Bearer public_key``: publishable key only; restricted access. Endpoints
  that read project data must reject it.

Verification never raises for bad credentials; it returns an
``ApiKeyVerification`` whose ``error`` is meant to be shown to the caller.
"""

import base64
import binascii
import secrets
from datetime import datetime, timezone
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tracedeck.api.v1.helpers.authentication import hash_password, verify_password
from tracedeck.config import settings
from tracedeck.models.iam.api_keys import ApiKey
import logging

logger = logging.getLogger(__name__)


class AccessLevel(str, Enum):
    ALL = "all"
    RESTRICTED = "restricted"


class AccessScope(BaseModel):
    model_config = ConfigDict(frozen=True)

    project_id: UUID
    access_level: AccessLevel


class ApiKeyVerification(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid_key: bool
    scope: AccessScope | None = None
    error: str | None = None

    @classmethod
    def invalid(cls, error: str) -> "ApiKeyVerification":
        return cls(valid_key=False, error=error)


def generate_key_set() -> tuple[str, str, str, str]:
    """Return ``(public_key, secret_key, hashed_secret_key, display_secret_key)``."""
    public_key = f"{settings.public_key_prefix}{secrets.token_hex(16)}"
    secret_key = f"{settings.secret_key_prefix}{secrets.token_hex(16)}"
    hashed_secret_key = hash_password(secret_key)
    display_secret_key = f"{settings.secret_key_prefix}...{secret_key[-4:]}"
    return public_key, secret_key, hashed_secret_key, display_secret_key


def _secret_matches(secret_key: str, hashed_secret_key: str) -> bool:
    try:
        return verify_password(secret_key, hashed_secret_key)
    except ValueError:
        # bcrypt refuses inputs longer than 72 bytes
        return False


def _is_expired(api_key: ApiKey) -> bool:
    return api_key.expires_at is not None and api_key.expires_at < datetime.now(
        timezone.utc
    )


async def _find_api_key(public_key: str, db: AsyncSession) -> ApiKey | None:
    result = await db.execute(select(ApiKey).where(ApiKey.public_key == public_key))
    return result.scalar_one_or_none()


def _decode_basic_credentials(credentials: str) -> tuple[str, str] | None:
    try:
        decoded = base64.b64decode(credentials, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    public_key, sep, secret_key = decoded.partition(":")
    if not sep or not public_key or not secret_key:
        return None
    return public_key, secret_key


async def verify_auth_header_and_return_scope(
    authorization: str | None, db: AsyncSession
) -> ApiKeyVerification:
    if not authorization:
        return ApiKeyVerification.invalid("No authorization header")

    scheme, _, credentials = authorization.strip().partition(" ")
    scheme = scheme.lower()
    credentials = credentials.strip()

    if scheme == "basic":
        decoded = _decode_basic_credentials(credentials)
        if decoded is None:
            return ApiKeyVerification.invalid("Invalid authorization header")
        public_key, secret_key = decoded

        api_key = await _find_api_key(public_key, db)
        if api_key is None:
            return ApiKeyVerification.invalid("Invalid public key")
        if not _secret_matches(secret_key, api_key.hashed_secret_key):
            return ApiKeyVerification.invalid("Invalid credentials")
        if _is_expired(api_key):
            return ApiKeyVerification.invalid("API key has expired")

        scope = AccessScope(project_id=api_key.project_id, access_level=AccessLevel.ALL)
        api_key.last_used_at = datetime.now(timezone.utc)
        await db.commit()

        return ApiKeyVerification(valid_key=True, scope=scope)

    if scheme == "bearer" and credentials:
        api_key = await _find_api_key(credentials, db)
        if api_key is None:
            return ApiKeyVerification.invalid("Invalid public key")
        if _is_expired(api_key):
            return ApiKeyVerification.invalid("API key has expired")

        return ApiKeyVerification(
            valid_key=True,
            scope=AccessScope(
                project_id=api_key.project_id, access_level=AccessLevel.RESTRICTED
            ),
        )

    logger.debug(f"Unsupported authorization scheme: {scheme!r}")
    return ApiKeyVerification.invalid("Invalid authorization header")
