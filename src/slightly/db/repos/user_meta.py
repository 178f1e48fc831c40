from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from slightly.db.models import UserMeta
from slightly.db.repos.base import BaseRepository


class UserMetaRepository(BaseRepository[UserMeta]):
    """Single-valued per-user attributes keyed by ``(user_id, meta_key)``."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UserMeta)

    async def get_entry(self, user_id: int, key: str) -> UserMeta | None:
        return await self.first_where(UserMeta.user_id == user_id, UserMeta.meta_key == key)

    async def get_value(self, user_id: int, key: str) -> str:
        """Return the stored value, or an empty string when nothing is stored."""
        entry = await self.get_entry(user_id, key)
        if entry is None:
            return ""
        return entry.meta_value

    async def list_for_user(self, user_id: int) -> dict[str, str]:
        result = await self.session.execute(
            select(UserMeta).where(UserMeta.user_id == user_id).order_by(UserMeta.meta_key.asc())
        )
        return {entry.meta_key: entry.meta_value for entry in result.scalars().all()}

    async def set_value(self, user_id: int, key: str, value: str, *, flush: bool = True) -> UserMeta:
        entry = await self.get_entry(user_id, key)
        if entry is None:
            return await self.add(
                UserMeta(user_id=user_id, meta_key=key, meta_value=value), flush=flush
            )

        entry.meta_value = value
        if flush:
            await self.session.flush()
        return entry

    async def delete_value(self, user_id: int, key: str, *, flush: bool = True) -> bool:
        entry = await self.get_entry(user_id, key)
        if entry is None:
            return False
        await self.delete(entry, flush=flush)
        return True
