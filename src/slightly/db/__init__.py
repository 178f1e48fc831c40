"""Database engine and request-scoped sessions.

``get_session`` and the CLI look ``SessionMaker`` up on this module when they
run, so tests can point the whole app at a temporary database by reassigning
``slightly.db.SessionMaker``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from slightly.settings import get_settings

engine: AsyncEngine = create_async_engine(get_settings().database_url)
# Loaded objects stay readable after commit; routes render from them.
SessionMaker: async_sessionmaker[AsyncSession] = async_sessionmaker(engine, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with SessionMaker() as session:
        yield session
