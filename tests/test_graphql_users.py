"""
GraphQL endpoint tests for users and login, plus the transport concerns
shared by every request: health check, diagnostic headers and the
stripping of stack traces outside debug mode.
"""
import pytest
from httpx import AsyncClient

from blogql.config import settings

CREATE_USER = """
mutation ($input: CreateUserInput!) {
  createUser(input: $input) { id name email deletedAt createdAt }
}
"""

LOGIN = """
mutation ($input: LoginInput!) { login(input: $input) }
"""

READ_USER = """
query ($input: ReadUserInput!) {
  readUser(input: $input) { id name email postList { title } blog { name } }
}
"""

DELETE_USER = """
mutation { deleteUser { id deletedAt } }
"""

CREATE_POST = """
mutation ($input: CreatePostInput!) { createPost(input: $input) { id } }
"""


def _error_code(body: dict) -> str:
    return body["errors"][0]["extensions"]["code"]


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_diagnostic_headers(async_client: AsyncClient):
    resp = await async_client.post(
        "/graphql",
        json={"query": "query ($input: ReadUserInput!) { readUser(input: $input) { id } }",
              "variables": {"input": {"email": "nobody@example.com"}}},
        headers={"X-Request-Id": "req-123"},
    )
    assert resp.headers["x-request-id"] == "req-123"
    assert float(resp.headers["x-response-time-ms"]) >= 0
    assert int(resp.headers["x-query-count"]) >= 1


@pytest.mark.asyncio
async def test_request_id_generated_when_absent(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert len(resp.headers["x-request-id"]) == 32


# ---------------------------------------------------------------------------
# Sign up + lookup
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_user_and_read_by_email(gql):
    body = await gql(CREATE_USER, {"input": {"name": "Dana", "email": "dana@example.com"}})
    assert "errors" not in body, body
    created = body["data"]["createUser"]
    assert created["name"] == "Dana"
    assert created["deletedAt"] is None

    read = await gql(READ_USER, {"input": {"email": "dana@example.com"}})
    user = read["data"]["readUser"]
    assert user["id"] == created["id"]
    assert user["postList"] == []
    assert user["blog"] is None


@pytest.mark.asyncio
async def test_create_user_duplicate_email(gql):
    await gql(CREATE_USER, {"input": {"name": "One", "email": "same@example.com"}})
    body = await gql(CREATE_USER, {"input": {"name": "Two", "email": "same@example.com"}})
    assert body["data"] is None
    assert _error_code(body) == "ERR_DUPLICATION_EMAIL"


@pytest.mark.asyncio
async def test_read_user_requires_an_option(gql):
    body = await gql(READ_USER, {"input": {}})
    assert _error_code(body) == "ERR_NO_OPTION"


@pytest.mark.asyncio
async def test_read_user_not_found(gql):
    body = await gql(READ_USER, {"input": {"userId": 424242}})
    assert _error_code(body) == "ERR_NO_USER"


@pytest.mark.asyncio
async def test_read_user_post_list(gql):
    created = await gql(CREATE_USER, {"input": {"name": "Poster", "email": "poster@example.com"}})
    token = (await gql(LOGIN, {"input": {"email": "poster@example.com"}}))["data"]["login"]
    for title in ("one", "two"):
        await gql(CREATE_POST, {"input": {"title": title, "content": "c"}}, token=token)

    read = await gql(READ_USER, {"input": {"userId": created["data"]["createUser"]["id"]}})
    titles = [p["title"] for p in read["data"]["readUser"]["postList"]]
    assert sorted(titles) == ["one", "two"]


# ---------------------------------------------------------------------------
# Login + soft delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_login_unknown_email(gql):
    body = await gql(LOGIN, {"input": {"email": "ghost@example.com"}})
    assert body["data"] is None
    assert _error_code(body) == "ERR_NO_USER"


@pytest.mark.asyncio
async def test_deleted_user_cannot_log_in(gql):
    await gql(CREATE_USER, {"input": {"name": "Leaver", "email": "leaver@example.com"}})
    token = (await gql(LOGIN, {"input": {"email": "leaver@example.com"}}))["data"]["login"]

    deleted = await gql(DELETE_USER, token=token)
    assert deleted["data"]["deleteUser"]["deletedAt"] is not None

    body = await gql(LOGIN, {"input": {"email": "leaver@example.com"}})
    assert body["data"] is None
    assert _error_code(body) == "ERR_DELETED_USER"

    # The token issued before deletion no longer grants the USER role.
    post = await gql(CREATE_POST, {"input": {"title": "t", "content": "c"}}, token=token)
    assert _error_code(post) == "ERR_UNAUTHENTICATED"


@pytest.mark.asyncio
async def test_delete_user_requires_login(gql):
    body = await gql(DELETE_USER)
    assert _error_code(body) == "ERR_UNAUTHENTICATED"


# ---------------------------------------------------------------------------
# Error diagnostics
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_stacktrace_attached_in_debug(gql, monkeypatch):
    monkeypatch.setattr(settings, "DEBUG", True)
    monkeypatch.setattr(settings, "APP_ENV", "development")
    body = await gql(READ_USER, {"input": {"email": "nobody@example.com"}})
    stacktrace = body["errors"][0]["extensions"]["stacktrace"]
    assert stacktrace[0] == "user_service.read_user_by_option"


@pytest.mark.asyncio
async def test_stacktrace_stripped_in_production(gql, monkeypatch):
    monkeypatch.setattr(settings, "DEBUG", False)
    body = await gql(READ_USER, {"input": {"email": "nobody@example.com"}})
    extensions = body["errors"][0]["extensions"]
    assert extensions == {"code": "ERR_NO_USER"}


@pytest.mark.asyncio
async def test_stacktrace_stripped_when_app_env_is_production(gql, monkeypatch):
    # DEBUG left on: the production environment alone must suppress traces.
    monkeypatch.setattr(settings, "DEBUG", True)
    monkeypatch.setattr(settings, "APP_ENV", "production")
    body = await gql(READ_USER, {"input": {"email": "nobody@example.com"}})
    assert body["errors"][0]["extensions"] == {"code": "ERR_NO_USER"}


def test_debug_mode_requires_non_production_env(monkeypatch):
    monkeypatch.setattr(settings, "DEBUG", True)
    monkeypatch.setattr(settings, "APP_ENV", "development")
    assert settings.debug_mode
    monkeypatch.setattr(settings, "APP_ENV", "production")
    assert not settings.debug_mode
