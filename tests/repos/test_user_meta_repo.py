from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from slightly.db.models import User
from slightly.db.repos import UserMetaRepository, UserRepository


async def _create_user(session: AsyncSession, email: str) -> User:
    users = UserRepository(session)
    user = await users.add(User(email=email, display_name="Repo User"))
    await users.commit()
    return user


@pytest.mark.asyncio
async def test_missing_value_reads_as_empty_string(db_session: AsyncSession) -> None:
    user = await _create_user(db_session, "meta-empty@example.com")

    assert await UserMetaRepository(db_session).get_value(user.id, "slightly-color-scheme") == ""


@pytest.mark.asyncio
async def test_set_value_inserts_then_updates(db_session: AsyncSession) -> None:
    user = await _create_user(db_session, "meta-upsert@example.com")
    meta = UserMetaRepository(db_session)

    first = await meta.set_value(user.id, "slightly-color-scheme", "dark")
    second = await meta.set_value(user.id, "slightly-color-scheme", "light")
    await meta.commit()

    assert first.id == second.id
    assert await meta.get_value(user.id, "slightly-color-scheme") == "light"
    assert await meta.list_for_user(user.id) == {"slightly-color-scheme": "light"}


@pytest.mark.asyncio
async def test_values_are_scoped_per_user(db_session: AsyncSession) -> None:
    alice = await _create_user(db_session, "meta-alice@example.com")
    bob = await _create_user(db_session, "meta-bob@example.com")
    meta = UserMetaRepository(db_session)

    await meta.set_value(alice.id, "slightly-color-scheme", "dark")
    await meta.commit()

    assert await meta.get_value(bob.id, "slightly-color-scheme") == ""


@pytest.mark.asyncio
async def test_delete_value_removes_entry(db_session: AsyncSession) -> None:
    user = await _create_user(db_session, "meta-delete@example.com")
    meta = UserMetaRepository(db_session)
    await meta.set_value(user.id, "slightly-color-scheme", "dark")

    assert await meta.delete_value(user.id, "slightly-color-scheme") is True
    assert await meta.delete_value(user.id, "slightly-color-scheme") is False
    assert await meta.get_entry(user.id, "slightly-color-scheme") is None


@pytest.mark.asyncio
async def test_user_lookup_normalizes_email(db_session: AsyncSession) -> None:
    user = await _create_user(db_session, "mixed@example.com")

    found = await UserRepository(db_session).get_by_email("  MIXED@example.com ")

    assert found is not None
    assert found.id == user.id
