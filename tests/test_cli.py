from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from slightly.auth import verify_password
from slightly.cli import _create_user, _set_color_scheme
from slightly.color_scheme import COLOR_SCHEME_KEY
from slightly.db.repos import UserMetaRepository, UserRepository


@pytest.mark.asyncio
async def test_create_user_hashes_password(
    test_engine: AsyncEngine,
    db_session: AsyncSession,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _ = test_engine
    await _create_user(" New@Example.com ", "pw123456", "New User")

    user = await UserRepository(db_session).get_by_email("new@example.com")
    assert user is not None
    assert user.display_name == "New User"
    assert user.password_hash is not None
    assert verify_password("pw123456", user.password_hash)
    assert "Created user" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_create_user_refuses_duplicates(test_engine: AsyncEngine) -> None:
    _ = test_engine
    await _create_user("twice@example.com", "pw", "")

    with pytest.raises(SystemExit):
        await _create_user("twice@example.com", "pw", "")


@pytest.mark.asyncio
async def test_set_color_scheme_writes_and_clears_user_meta(
    test_engine: AsyncEngine, db_session: AsyncSession
) -> None:
    _ = test_engine
    await _create_user("scheme@example.com", "pw", "Scheme")
    user = await UserRepository(db_session).get_by_email("scheme@example.com")
    assert user is not None
    meta = UserMetaRepository(db_session)

    await _set_color_scheme("scheme@example.com", "dark")
    assert await meta.get_value(user.id, COLOR_SCHEME_KEY) == "dark"

    await _set_color_scheme("scheme@example.com", "system")
    assert await meta.get_entry(user.id, COLOR_SCHEME_KEY) is None


@pytest.mark.asyncio
async def test_set_color_scheme_for_unknown_user_exits(test_engine: AsyncEngine) -> None:
    _ = test_engine

    with pytest.raises(SystemExit):
        await _set_color_scheme("ghost@example.com", "dark")
