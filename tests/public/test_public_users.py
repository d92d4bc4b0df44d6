"""Public per-user usage endpoint: auth, validation, aggregation and pagination."""

from datetime import datetime, timezone

import pytest

USERS_URL = "/api/public/users"


def _day(day: int, hour: int = 12) -> datetime:
    return datetime(2024, 1, day, hour, tzinfo=timezone.utc)


# ── authentication and method handling ────────────────────────────────────


@pytest.mark.asyncio
async def test_missing_authorization_returns_401(test_client, db_session):
    resp = await test_client.get(USERS_URL)
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "No authorization header"}


@pytest.mark.asyncio
async def test_wrong_secret_returns_401(seed_user, test_client):
    import base64

    encoded = base64.b64encode(f"{seed_user.public_key}:sk-td-nope".encode()).decode()
    resp = await test_client.get(USERS_URL, headers={"Authorization": f"Basic {encoded}"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_publishable_key_is_rejected(test_client, publishable_key_headers):
    resp = await test_client.get(USERS_URL, headers=publishable_key_headers)
    assert resp.status_code == 401
    assert resp.json() == {
        "success": False,
        "message": "Access denied - need to use basic auth with secret key to GET users",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["OPTIONS", "POST", "PUT", "PATCH", "DELETE"])
async def test_other_methods_return_405(test_client, secret_key_headers, method):
    resp = await test_client.request(method, USERS_URL, headers=secret_key_headers)
    assert resp.status_code == 405
    assert resp.json() == {"message": "Method not allowed"}


@pytest.mark.asyncio
async def test_head_returns_405(test_client, secret_key_headers):
    resp = await test_client.head(USERS_URL, headers=secret_key_headers)
    assert resp.status_code == 405
    assert resp.content == b""


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["HEAD", "OPTIONS", "POST"])
async def test_unauthenticated_non_get_returns_401(test_client, db_session, method):
    resp = await test_client.request(method, USERS_URL)
    assert resp.status_code == 401
    if method != "HEAD":
        assert resp.json() == {"success": False, "message": "No authorization header"}


@pytest.mark.asyncio
async def test_cors_preflight(test_client, db_session):
    resp = await test_client.options(
        USERS_URL,
        headers={
            "Origin": "https://app.example.com",
            "Access-Control-Request-Method": "GET",
            "Access-Control-Request-Headers": "Authorization",
        },
    )
    assert resp.status_code == 200
    assert "access-control-allow-origin" in resp.headers


# ── validation ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params", [{"limit": "101"}, {"limit": "0"}, {"page": "0"}, {"page": "x"}]
)
async def test_invalid_query_returns_400(test_client, secret_key_headers, params):
    resp = await test_client.get(USERS_URL, headers=secret_key_headers, params=params)
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Invalid request data"
    assert body["error"]


@pytest.mark.asyncio
async def test_empty_project(test_client, secret_key_headers):
    resp = await test_client.get(USERS_URL, headers=secret_key_headers)
    assert resp.status_code == 200
    assert resp.json() == {
        "data": [],
        "meta": {"page": 1, "limit": 50, "totalItems": 0, "totalPages": 0},
    }


# ── aggregation ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_usage_grouped_by_day_and_model(
    seed_user, test_client, secret_key_headers, trace_factory, observation_factory
):
    project_id = seed_user.project.project_id
    trace = await trace_factory(project_id, user_id="alice")
    await observation_factory(
        trace.id, start_time=_day(1, 9), model="gpt-4o", prompt_tokens=10, completion_tokens=5
    )
    await observation_factory(
        trace.id, start_time=_day(1, 18), model="gpt-4o", prompt_tokens=1, completion_tokens=1
    )
    await observation_factory(
        trace.id, start_time=_day(1), model="claude", prompt_tokens=7, completion_tokens=3
    )
    other_trace = await trace_factory(project_id, user_id="alice")
    await observation_factory(
        other_trace.id, start_time=_day(2), model="gpt-4o", prompt_tokens=4, completion_tokens=4
    )

    resp = await test_client.get(USERS_URL, headers=secret_key_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["meta"]["totalItems"] == 1

    (alice,) = body["data"]
    assert alice["userId"] == "alice"

    # most recent day first
    days = alice["metrics"]
    assert [d["date"][:10] for d in days] == ["2024-01-02", "2024-01-01"]
    assert days[0]["usage"] == [
        {"model": "gpt-4o", "promptTokens": 4, "completionTokens": 4, "totalTokens": 8}
    ]
    assert days[1]["usage"] == [
        {"model": "claude", "promptTokens": 7, "completionTokens": 3, "totalTokens": 10},
        {"model": "gpt-4o", "promptTokens": 11, "completionTokens": 6, "totalTokens": 17},
    ]


@pytest.mark.asyncio
async def test_user_without_tokens_has_empty_metrics(
    seed_user, test_client, secret_key_headers, trace_factory, observation_factory
):
    trace = await trace_factory(seed_user.project.project_id, user_id="idle")
    await observation_factory(trace.id, prompt_tokens=0, completion_tokens=0)
    await trace_factory(seed_user.project.project_id, user_id="no-observations")

    resp = await test_client.get(USERS_URL, headers=secret_key_headers)
    assert resp.json()["data"] == [
        {"userId": "idle", "metrics": []},
        {"userId": "no-observations", "metrics": []},
    ]


@pytest.mark.asyncio
async def test_observations_without_start_time_are_ignored(
    seed_user, test_client, secret_key_headers, trace_factory, observation_factory
):
    trace = await trace_factory(seed_user.project.project_id, user_id="u1")
    await observation_factory(trace.id, start_time=None, prompt_tokens=100)

    resp = await test_client.get(USERS_URL, headers=secret_key_headers)
    assert resp.json()["data"] == [{"userId": "u1", "metrics": []}]


@pytest.mark.asyncio
async def test_traces_without_user_count_but_are_not_listed(
    seed_user, test_client, secret_key_headers, trace_factory, observation_factory
):
    project_id = seed_user.project.project_id
    await trace_factory(project_id, user_id="u1")
    anonymous = await trace_factory(project_id, user_id=None)
    await observation_factory(anonymous.id, prompt_tokens=50)
    await trace_factory(project_id, user_id=None)

    resp = await test_client.get(USERS_URL, headers=secret_key_headers)
    body = resp.json()
    assert [u["userId"] for u in body["data"]] == ["u1"]
    assert body["meta"]["totalItems"] == 2
    assert body["meta"]["totalPages"] == 1


@pytest.mark.asyncio
async def test_other_projects_are_excluded(
    seed_user,
    test_client,
    secret_key_headers,
    project_factory,
    trace_factory,
    observation_factory,
):
    other = await project_factory(name="Other")
    foreign = await trace_factory(other.project_id, user_id="shared")
    await observation_factory(foreign.id, prompt_tokens=99)
    await trace_factory(seed_user.project.project_id, user_id="shared")

    resp = await test_client.get(USERS_URL, headers=secret_key_headers)
    body = resp.json()
    assert body["data"] == [{"userId": "shared", "metrics": []}]
    assert body["meta"]["totalItems"] == 1


# ── pagination ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_pagination(seed_user, test_client, secret_key_headers, trace_factory):
    for user_id in ["u1", "u2", "u3", "u4", "u5"]:
        await trace_factory(seed_user.project.project_id, user_id=user_id)

    resp = await test_client.get(
        USERS_URL, headers=secret_key_headers, params={"page": 2, "limit": 2}
    )
    assert resp.status_code == 200
    body = resp.json()
    assert [u["userId"] for u in body["data"]] == ["u3", "u4"]
    assert body["meta"] == {"page": 2, "limit": 2, "totalItems": 5, "totalPages": 3}

    resp = await test_client.get(
        USERS_URL, headers=secret_key_headers, params={"page": 4, "limit": 2}
    )
    body = resp.json()
    assert body["data"] == []
    assert body["meta"]["totalItems"] == 5
