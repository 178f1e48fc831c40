from __future__ import annotations

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from slightly.db.models import User


async def login_user(
    client: AsyncClient,
    email: str,
    password: str,
    *,
    display_name: str = "Test User",
) -> None:
    resp = await client.post(
        "/signup",
        data={
            "display_name": display_name,
            "email": email,
            "password": password,
        },
        follow_redirects=True,
    )
    if resp.status_code == 200:
        return

    resp = await client.post(
        "/login",
        data={"email": email, "password": password},
        follow_redirects=True,
    )
    assert resp.status_code == 200


async def get_user_by_email(db_session: AsyncSession, email: str) -> User:
    return (
        await db_session.execute(select(User).where(User.email == email.strip().lower()))
    ).scalar_one()
