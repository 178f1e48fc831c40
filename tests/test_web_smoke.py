from __future__ import annotations

import pytest
from httpx import AsyncClient

from slightly.testing.web_test_helpers import login_user


@pytest.mark.asyncio
async def test_index_renders_for_anonymous_visitor(client: AsyncClient) -> None:
    resp = await client.get("/")

    assert resp.status_code == 200
    assert "Sign in" in resp.text
    assert 'style="color-scheme: light dark;"' in resp.text
    assert '<link rel="stylesheet" id="slightly-style-css" href="/static/style.css?ver=1.0.0">' in (
        resp.text
    )


@pytest.mark.asyncio
async def test_signup_creates_user_and_sets_session(client: AsyncClient) -> None:
    resp = await client.post(
        "/signup",
        data={
            "display_name": "Alice Example",
            "email": "alice@example.com",
            "password": "pw123456",
        },
        follow_redirects=True,
    )

    assert resp.status_code == 200
    assert "Signed in as Alice Example" in resp.text


@pytest.mark.asyncio
async def test_signup_rejects_existing_account(client: AsyncClient) -> None:
    await login_user(client, "dupe@example.com", "pw123456")
    await client.post("/logout")

    resp = await client.post(
        "/signup",
        data={"display_name": "Dupe", "email": "dupe@example.com", "password": "pw123456"},
    )

    assert resp.status_code == 400
    assert "Account already exists" in resp.text


@pytest.mark.asyncio
async def test_password_login_rejects_unknown_user(client: AsyncClient) -> None:
    resp = await client.post(
        "/login",
        data={"email": "unknown@example.com", "password": "pw123"},
    )

    assert resp.status_code == 401
    assert "Account not found" in resp.text


@pytest.mark.asyncio
async def test_password_login_rejects_wrong_password(client: AsyncClient) -> None:
    await login_user(client, "bob@example.com", "pw-right")
    await client.post("/logout")

    resp = await client.post(
        "/login",
        data={"email": "bob@example.com", "password": "pw-wrong"},
    )

    assert resp.status_code == 401
    assert "Invalid email or password" in resp.text


@pytest.mark.asyncio
async def test_login_after_logout_restores_session(client: AsyncClient) -> None:
    await login_user(client, "carol@example.com", "pw123456", display_name="Carol")
    await client.post("/logout")

    anonymous = await client.get("/")
    assert "Signed in as" not in anonymous.text

    resp = await client.post(
        "/login",
        data={"email": "carol@example.com", "password": "pw123456"},
        follow_redirects=True,
    )

    assert resp.status_code == 200
    assert "Signed in as Carol" in resp.text


@pytest.mark.asyncio
async def test_login_page_redirects_signed_in_user(client: AsyncClient) -> None:
    await login_user(client, "dave@example.com", "pw123456")

    resp = await client.get("/login", follow_redirects=False)

    assert resp.status_code == 303
    assert resp.headers["location"] == "/"


@pytest.mark.asyncio
async def test_request_id_header_is_propagated_or_generated(client: AsyncClient) -> None:
    with_header = await client.get("/", headers={"X-Request-ID": "req-test-123"})
    assert with_header.status_code == 200
    assert with_header.headers["x-request-id"] == "req-test-123"

    generated = await client.get("/")
    assert generated.status_code == 200
    assert generated.headers.get("x-request-id")
