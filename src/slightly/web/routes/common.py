from __future__ import annotations

from collections.abc import Mapping
from html import escape
from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.templating import Jinja2Templates
from markupsafe import Markup
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from slightly.assets import enqueue_theme_styles
from slightly.blocks import (
    BUTTON_BLOCK,
    Block,
    RenderContext,
    default_block_types,
    default_pipeline,
)
from slightly.color_scheme import (
    ANONYMOUS,
    COLOR_SCHEME_KEY,
    ColorScheme,
    Identity,
    is_dark_scheme,
    resolve_color_scheme,
)
from slightly.db.models import User
from slightly.db.repos import UserMetaRepository
from slightly.settings import Settings, get_settings

TOGGLE_PATH = "/color-scheme/toggle"

block_types = default_block_types()
pipeline = default_pipeline()


async def load_identity(session: AsyncSession, user: User | None) -> Identity:
    # User meta is only read for signed-in users.
    if user is None:
        return ANONYMOUS
    stored = await UserMetaRepository(session).get_value(user.id, COLOR_SCHEME_KEY)
    return Identity(user_id=user.id, stored_color_scheme=stored)


def build_render_context(
    request: Request,
    identity: Identity,
    settings: Settings | None = None,
) -> RenderContext:
    selected_settings = settings if settings is not None else get_settings()
    context = RenderContext(
        identity=identity,
        cookies=dict(request.cookies),
        settings=selected_settings,
        block_types=block_types,
    )
    enqueue_theme_styles(context.assets, selected_settings)
    return context


def header_blocks(site_name: str, current_path: str = "/") -> tuple[Block, ...]:
    return (
        Block(
            name="core/site-title",
            inner_html=(
                '<p class="wp-block-site-title">'
                f'<a href="/" rel="home">{escape(site_name)}</a>'
                "</p>"
            ),
        ),
        Block(
            name=BUTTON_BLOCK,
            inner_html=(
                '<div class="wp-block-button is-style-outline toggle-color-scheme">'
                f'<form method="post" action="{TOGGLE_PATH}">'
                f'<input type="hidden" name="redirect_to" value="{escape(current_path)}">'
                '<button type="submit" class="wp-block-button__link wp-element-button">'
                '<span class="toggle-color-scheme__label">Toggle color scheme</span>'
                "</button></form></div>"
            ),
        ),
    )


def render_page(
    request: Request,
    template_name: str,
    *,
    context: RenderContext,
    current_user: User | None,
    extra: Mapping[str, Any] | None = None,
    status_code: int = 200,
) -> Response:
    blocks = header_blocks(context.settings.site_name, request.url.path)
    header_html = pipeline.render_all(blocks, context)
    scheme = resolve_color_scheme(context.identity, context.cookies)
    return templates.TemplateResponse(
        request,
        template_name,
        {
            "current_user": current_user,
            "site_name": context.settings.site_name,
            "header_html": Markup("\n").join(Markup(html) for html in header_html),
            "color_scheme": scheme.value,
            "is_dark": is_dark_scheme(scheme),
            "interactivity_state": context.state.script_tag(),
            "head_assets": context.assets.head_tags(),
            "footer_assets": context.assets.footer_tags(),
            **(extra or {}),
        },
        status_code=status_code,
    )


def set_color_scheme_cookie(response: Response, scheme: ColorScheme, settings: Settings) -> None:
    # Readable from script: the client runtime rewrites it on every toggle.
    response.set_cookie(
        COLOR_SCHEME_KEY,
        scheme.value,
        max_age=settings.color_scheme_cookie_max_age,
        path=settings.color_scheme_cookie_path or "/",
        domain=settings.color_scheme_cookie_domain or None,
        samesite="lax",
    )


def safe_redirect_target(raw: str | None, default: str = "/") -> str:
    target = (raw or "").strip()
    if not target.startswith("/") or target.startswith("//") or "\\" in target:
        return default
    return target


templates_dir = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(templates_dir))
