from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError
from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from slightly.db import get_session
from slightly.db.models import User
from slightly.db.repos import UserRepository

_password_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerifyMismatchError, InvalidHash, VerificationError):
        return False


def get_current_user_id(request: Request) -> int | None:
    raw = request.session.get("user_id")
    if raw is None:
        return None

    try:
        user_id = int(str(raw))
    except ValueError:
        return None
    return user_id if user_id > 0 else None


async def get_optional_user(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> User | None:
    user_id = get_current_user_id(request)
    if user_id is None:
        return None

    user = await UserRepository(session).get_by_id(user_id)
    if user is None or not user.is_active:
        return None
    return user


async def require_user(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> User:
    user = await get_optional_user(request, session)
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
