"""
First-run bootstrap: auto-provision a default admin user, project, OWNER
membership and API key pair when the database is empty.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tracedeck.api.public.helpers.api_key_auth import generate_key_set
from tracedeck.api.v1.helpers.authentication import hash_password
from tracedeck.models.iam import ApiKey, Membership, Project, ProjectRole, User

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_EMAIL = "admin@localhost"
DEFAULT_ADMIN_PASSWORD = "admin"


async def ensure_default_user(db: AsyncSession) -> None:
    """Provision the defaults once; a no-op as soon as any user exists."""
    result = await db.execute(select(User).limit(1))
    if result.scalar_one_or_none() is not None:
        return

    user = User(
        email=DEFAULT_ADMIN_EMAIL,
        name="Admin",
        hashed_password=hash_password(DEFAULT_ADMIN_PASSWORD),
        is_active=True,
    )
    project = Project(name="Default Project")
    db.add_all([user, project])
    await db.flush()

    db.add(
        Membership(
            user_id=user.user_id,
            project_id=project.project_id,
            role=ProjectRole.OWNER.value,
        )
    )

    public_key, secret_key, hashed_secret_key, display_secret_key = generate_key_set()
    db.add(
        ApiKey(
            project_id=project.project_id,
            public_key=public_key,
            hashed_secret_key=hashed_secret_key,
            display_secret_key=display_secret_key,
            note="Default key",
        )
    )
    await db.commit()

    logger.info(
        "=== FIRST RUN: provisioned default user ===\n"
        "  email:        %s\n"
        "  password:     %s\n"
        "  project:      %s (id: %s)\n"
        "  public key:   %s\n"
        "  secret key:   %s\n"
        "Change the default password after first login.",
        DEFAULT_ADMIN_EMAIL,
        DEFAULT_ADMIN_PASSWORD,
        project.name,
        project.project_id,
        public_key,
        secret_key,
    )
