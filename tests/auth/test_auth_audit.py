from __future__ import annotations

import logging

import pytest
from httpx import AsyncClient

from slightly.logging_config import AUDIT_LOGGER_NAME


@pytest.mark.asyncio
async def test_password_login_emits_audit_events(
    client: AsyncClient,
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO, logger=AUDIT_LOGGER_NAME)

    signup = await client.post(
        "/signup",
        data={
            "display_name": "Audit Login",
            "email": "audit-login@example.com",
            "password": "pw-right",
        },
        follow_redirects=True,
    )
    assert signup.status_code == 200
    await client.post("/logout", follow_redirects=True)

    failed = await client.post(
        "/login",
        data={"email": "audit-login@example.com", "password": "pw-wrong"},
    )
    assert failed.status_code == 401

    success = await client.post(
        "/login",
        data={"email": "audit-login@example.com", "password": "pw-right"},
        follow_redirects=False,
    )
    assert success.status_code == 303

    messages = [record.getMessage() for record in caplog.records]
    assert any(
        "audit_event=auth.signup" in message and "outcome=success" in message
        for message in messages
    )
    assert any(
        "audit_event=auth.password_login" in message
        and "outcome=denied" in message
        and "reason=invalid_credentials" in message
        for message in messages
    )
    assert any(
        "audit_event=auth.password_login" in message and "outcome=success" in message
        for message in messages
    )


@pytest.mark.asyncio
async def test_logout_clears_session(
    client: AsyncClient,
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO, logger=AUDIT_LOGGER_NAME)

    resp = await client.post(
        "/signup",
        data={
            "display_name": "Alice Example",
            "email": "alice@example.com",
            "password": "pw-alice",
        },
        follow_redirects=True,
    )
    assert resp.status_code == 200
    assert "Signed in as Alice Example" in resp.text

    resp = await client.post("/logout", follow_redirects=True)
    assert resp.status_code == 200
    assert "Signed in as" not in resp.text

    messages = [record.getMessage() for record in caplog.records]
    assert any(
        "audit_event=auth.logout" in message
        and "outcome=success" in message
        and "actor_user_id=" in message
        for message in messages
    )

    resp = await client.get("/editor", follow_redirects=False)
    assert resp.status_code == 401
