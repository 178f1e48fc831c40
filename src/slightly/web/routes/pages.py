from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from slightly.assets import enqueue_editor_assets
from slightly.auth import get_optional_user, require_user
from slightly.color_scheme import (
    COLOR_SCHEME_KEY,
    ColorScheme,
    Identity,
    resolve_color_scheme,
    toggle_color_scheme,
)
from slightly.db import get_session
from slightly.db.models import User
from slightly.db.repos import UserMetaRepository
from slightly.logging_config import log_with_fields
from slightly.settings import get_settings
from slightly.web.routes.common import (
    TOGGLE_PATH,
    build_render_context,
    load_identity,
    render_page,
    safe_redirect_target,
    set_color_scheme_cookie,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    session: AsyncSession = Depends(get_session),
    current_user: User | None = Depends(get_optional_user),
) -> Response:
    identity = await load_identity(session, current_user)
    context = build_render_context(request, identity)
    return render_page(request, "index.html", context=context, current_user=current_user)


@router.get("/editor", response_class=HTMLResponse)
async def editor(
    request: Request,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_user),
) -> Response:
    identity = await load_identity(session, current_user)
    context = build_render_context(request, identity)
    editor_loaded = enqueue_editor_assets(context.assets, context.settings)
    return render_page(
        request,
        "editor.html",
        context=context,
        current_user=current_user,
        extra={"editor_loaded": editor_loaded},
    )


async def persist_color_scheme(
    session: AsyncSession,
    identity: Identity,
    scheme: ColorScheme,
    response: Response,
) -> None:
    if identity.is_authenticated:
        await UserMetaRepository(session).set_value(identity.user_id, COLOR_SCHEME_KEY, scheme.value)
        await session.commit()
        return

    set_color_scheme_cookie(response, scheme, get_settings())


@router.post(TOGGLE_PATH, response_class=RedirectResponse)
async def toggle(
    request: Request,
    redirect_to: str | None = Form(None),
    session: AsyncSession = Depends(get_session),
    current_user: User | None = Depends(get_optional_user),
) -> RedirectResponse:
    identity = await load_identity(session, current_user)
    current = resolve_color_scheme(identity, request.cookies)
    selected = toggle_color_scheme(current)

    target = safe_redirect_target(redirect_to)
    response = RedirectResponse(url=target, status_code=303)
    await persist_color_scheme(session, identity, selected, response)

    log_with_fields(
        logger,
        logging.INFO,
        "color scheme toggled",
        previous=current.value,
        selected=selected.value,
        user_id=identity.user_id or None,
    )
    return response
