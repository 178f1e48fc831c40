from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from slightly.auth import get_optional_user, require_user
from slightly.color_scheme import is_dark_scheme, resolve_color_scheme
from slightly.db import get_session
from slightly.db.models import User
from slightly.db.repos import UserMetaRepository
from slightly.security.audit import audit_rest_denied, audit_rest_success
from slightly.security.audit_constants import (
    REST_EVENT_USER_META_UPDATE,
    REST_REASON_UNKNOWN_META_KEY,
)
from slightly.user_meta import MetaField, get_user_meta_field, rest_user_meta_fields
from slightly.web.routes.common import load_identity

router = APIRouter()


class ColorSchemeOut(BaseModel):
    colorScheme: str
    isDark: bool | None


class UserOut(BaseModel):
    id: int
    name: str
    meta: dict[str, str]


class UserUpdateIn(BaseModel):
    meta: dict[str, Any] = {}


async def _user_out(session: AsyncSession, user: User) -> UserOut:
    stored = await UserMetaRepository(session).list_for_user(user.id)
    meta = {
        meta_field.key: meta_field.sanitize(stored.get(meta_field.key, meta_field.default))
        for meta_field in rest_user_meta_fields()
    }
    return UserOut(id=user.id, name=user.display_name, meta=meta)


@router.get("/v1/color-scheme", response_model=ColorSchemeOut)
async def read_color_scheme(
    request: Request,
    session: AsyncSession = Depends(get_session),
    current_user: User | None = Depends(get_optional_user),
) -> ColorSchemeOut:
    identity = await load_identity(session, current_user)
    scheme = resolve_color_scheme(identity, request.cookies)
    return ColorSchemeOut(colorScheme=scheme.value, isDark=is_dark_scheme(scheme))


@router.get("/v1/users/me", response_model=UserOut)
async def read_current_user(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_user),
) -> UserOut:
    return await _user_out(session, current_user)


@router.post("/v1/users/me", response_model=UserOut)
async def update_current_user(
    payload: UserUpdateIn,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_user),
) -> UserOut:
    fields: list[tuple[MetaField, Any]] = []
    for key, value in payload.meta.items():
        meta_field = get_user_meta_field(key)
        if meta_field is None or not meta_field.show_in_rest:
            audit_rest_denied(
                event=REST_EVENT_USER_META_UPDATE,
                reason=REST_REASON_UNKNOWN_META_KEY,
                actor=current_user,
                meta_key=key,
            )
            raise HTTPException(status_code=400, detail=f"Invalid meta key: {key}")
        fields.append((meta_field, value))

    meta_repo = UserMetaRepository(session)
    for meta_field, value in fields:
        sanitized = meta_field.sanitize(value)
        if sanitized:
            await meta_repo.set_value(current_user.id, meta_field.key, sanitized)
        else:
            await meta_repo.delete_value(current_user.id, meta_field.key)
    await session.commit()

    if fields:
        audit_rest_success(
            event=REST_EVENT_USER_META_UPDATE,
            actor=current_user,
            meta_keys=",".join(meta_field.key for meta_field, _ in fields),
        )
    return await _user_out(session, current_user)
