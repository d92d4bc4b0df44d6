"""
Shared test fixtures for tracedeck.

Uses a real Postgres database (created on demand) with per-test table
create/drop, and mocked Valkey (in-memory dict).
"""

import base64
import os
from collections import namedtuple
from datetime import datetime, timezone
from uuid import uuid4

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-tests")

from tracedeck.db.base import Base  # noqa: E402
import tracedeck.models  # noqa: E402,F401
from tracedeck.main import app  # noqa: E402

TEST_DB_NAME = os.environ.get("TEST_DB_NAME", "tracedeck_test")
PG_SERVER = os.environ.get("TEST_PG_SERVER", "tracedeck:tracedeck@postgres:5432")
ADMIN_DB_URL = f"postgresql://{PG_SERVER}/tracedeck"
TEST_DB_URL = f"postgresql+asyncpg://{PG_SERVER}/{TEST_DB_NAME}"

SeedData = namedtuple("SeedData", ["user", "project", "public_key", "secret_key"])


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

_db_created = False


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create the test database if needed, then yield an async engine."""
    global _db_created
    if not _db_created:
        import asyncpg

        conn = await asyncpg.connect(ADMIN_DB_URL)
        dbs = await conn.fetch(
            "SELECT datname FROM pg_database WHERE datname = $1", TEST_DB_NAME
        )
        if not dbs:
            await conn.execute(f'CREATE DATABASE "{TEST_DB_NAME}" TEMPLATE template0')
        await conn.close()
        _db_created = True
    engine = create_async_engine(TEST_DB_URL, pool_pre_ping=True, echo=False)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_engine):
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine, session_factory):
    """Fresh tables per test: drop → create → yield session → drop."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


# ---------------------------------------------------------------------------
# Valkey mock (autouse, no live Valkey needed)
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(autouse=True)
async def mock_valkey(monkeypatch):
    """Replace Valkey helpers with an in-memory dict."""
    store: dict[str, str] = {}

    async def _get_key(key: str) -> str | None:
        return store.get(key)

    async def _set_key(key: str, value: str, ttl: int | None = None) -> bool:
        store[key] = value
        return True

    async def _delete_key(key: str) -> bool:
        return store.pop(key, None) is not None

    monkeypatch.setattr("tracedeck.db.valkey.get_key", _get_key)
    monkeypatch.setattr("tracedeck.db.valkey.set_key", _set_key)
    monkeypatch.setattr("tracedeck.db.valkey.delete_key", _delete_key)

    # Also patch where these are imported directly
    monkeypatch.setattr("tracedeck.api.v1.helpers.authentication.get_key", _get_key)
    monkeypatch.setattr("tracedeck.api.v1.helpers.authentication.set_key", _set_key)
    monkeypatch.setattr(
        "tracedeck.api.v1.helpers.authentication.delete_key", _delete_key
    )

    yield store
    store.clear()


# ---------------------------------------------------------------------------
# Test client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(scope="function")
async def test_client(db_session, session_factory):
    from tracedeck.db.session import get_db, get_session_factory

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Seed data helpers
# ---------------------------------------------------------------------------


def basic_auth_header(public_key: str, secret_key: str) -> dict:
    encoded = base64.b64encode(f"{public_key}:{secret_key}".encode()).decode()
    return {"Authorization": f"Basic {encoded}"}


@pytest_asyncio.fixture(scope="function")
async def seed_user(db_session):
    """Admin user owning one project with one API key pair."""
    from tracedeck.api.public.helpers.api_key_auth import generate_key_set
    from tracedeck.api.v1.helpers.authentication import hash_password
    from tracedeck.models.iam import ApiKey, Membership, Project, ProjectRole, User

    user = User(
        email="admin@localhost",
        name="Admin",
        hashed_password=hash_password("admin"),
        is_active=True,
    )
    project = Project(name="Default Project")
    db_session.add_all([user, project])
    await db_session.flush()

    db_session.add(
        Membership(
            user_id=user.user_id,
            project_id=project.project_id,
            role=ProjectRole.OWNER.value,
        )
    )

    public_key, secret_key, hashed_secret_key, display_secret_key = generate_key_set()
    db_session.add(
        ApiKey(
            project_id=project.project_id,
            public_key=public_key,
            hashed_secret_key=hashed_secret_key,
            display_secret_key=display_secret_key,
        )
    )
    await db_session.commit()

    return SeedData(user, project, public_key, secret_key)


@pytest_asyncio.fixture(scope="function")
async def login(test_client):
    """Log in and return session auth headers."""

    async def _login(email: str, password: str) -> dict:
        resp = await test_client.post(
            "/api/v1/iam/users/login",
            json={"email": email, "password": password},
        )
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    return _login


@pytest_asyncio.fixture(scope="function")
async def auth_headers(seed_user, login):
    """Session auth headers for the seeded admin user."""
    return await login("admin@localhost", "admin")


@pytest_asyncio.fixture(scope="function")
async def secret_key_headers(seed_user):
    return basic_auth_header(seed_user.public_key, seed_user.secret_key)


@pytest_asyncio.fixture(scope="function")
async def publishable_key_headers(seed_user):
    return {"Authorization": f"Bearer {seed_user.public_key}"}


# ---------------------------------------------------------------------------
# Factory fixtures (all commit, so data is visible to every session)
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(scope="function")
async def user_factory(db_session):
    from tracedeck.models.iam.users import User
    from tracedeck.api.v1.helpers.authentication import hash_password

    async def _create(
        email: str | None = None,
        name: str = "Test User",
        password: str = "password123",
    ) -> User:
        user = User(
            email=email or f"user+{uuid4().hex[:6]}@example.com",
            name=name,
            hashed_password=hash_password(password),
            is_active=True,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _create


@pytest_asyncio.fixture(scope="function")
async def project_factory(db_session):
    from tracedeck.models.iam import Membership, Project, ProjectRole

    async def _create(user=None, name: str = "Test Project", role=ProjectRole.OWNER):
        project = Project(name=name)
        db_session.add(project)
        await db_session.flush()
        if user is not None:
            db_session.add(
                Membership(
                    user_id=user.user_id,
                    project_id=project.project_id,
                    role=role.value,
                )
            )
        await db_session.commit()
        return project

    return _create


@pytest_asyncio.fixture(scope="function")
async def membership_factory(db_session):
    from tracedeck.models.iam import Membership

    async def _create(user, project, role) -> Membership:
        membership = Membership(
            user_id=user.user_id, project_id=project.project_id, role=role.value
        )
        db_session.add(membership)
        await db_session.commit()
        return membership

    return _create


@pytest_asyncio.fixture(scope="function")
async def trace_factory(db_session):
    from tracedeck.models.traces import TraceModel

    async def _create(
        project_id,
        user_id: str | None = None,
        name: str = "chat",
        external_id: str | None = None,
        metadata: dict | None = None,
    ) -> TraceModel:
        trace = TraceModel(
            project_id=project_id,
            user_id=user_id,
            name=name,
            external_id=external_id,
            metadata_attributes=metadata,
        )
        db_session.add(trace)
        await db_session.commit()
        await db_session.refresh(trace)
        return trace

    return _create


@pytest_asyncio.fixture(scope="function")
async def observation_factory(db_session):
    from tracedeck.models.traces import ObservationModel

    async def _create(
        trace_id,
        start_time: datetime | None = datetime(2024, 1, 1, 12, tzinfo=timezone.utc),
        model: str | None = "gpt-4o",
        prompt_tokens: int = 0,
        completion_tokens: int = 0,
        total_tokens: int | None = None,
        name: str = "llm-call",
    ) -> ObservationModel:
        if total_tokens is None:
            total_tokens = prompt_tokens + completion_tokens
        observation = ObservationModel(
            trace_id=trace_id,
            name=name,
            start_time=start_time,
            model=model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens,
        )
        db_session.add(observation)
        await db_session.commit()
        return observation

    return _create


@pytest_asyncio.fixture(scope="function")
async def score_factory(db_session):
    from tracedeck.models.scores import ScoreModel

    async def _create(
        trace_id,
        name: str = "quality",
        value: float = 1.0,
        comment: str | None = None,
        timestamp: datetime | None = None,
        observation_id=None,
    ) -> ScoreModel:
        score = ScoreModel(
            trace_id=trace_id,
            name=name,
            value=value,
            comment=comment,
            observation_id=observation_id,
        )
        if timestamp is not None:
            score.timestamp = timestamp
        db_session.add(score)
        await db_session.commit()
        await db_session.refresh(score)
        return score

    return _create
