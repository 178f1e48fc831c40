from __future__ import annotations

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from slightly.auth import get_optional_user, hash_password, verify_password
from slightly.color_scheme import ANONYMOUS
from slightly.db import get_session
from slightly.db.models import User
from slightly.db.repos import UserRepository
from slightly.security.audit import audit_auth_denied, audit_auth_success
from slightly.security.audit_constants import (
    AUTH_EVENT_LOGOUT,
    AUTH_EVENT_PASSWORD_LOGIN,
    AUTH_EVENT_SIGNUP,
    AUTH_REASON_ACCOUNT_EXISTS,
    AUTH_REASON_ACCOUNT_NOT_FOUND,
    AUTH_REASON_INACTIVE_USER,
    AUTH_REASON_INVALID_CREDENTIALS,
)
from slightly.web.routes.common import build_render_context, render_page

router = APIRouter()


def _signup_form_context(*, display_name: str = "", email: str = "") -> dict[str, str]:
    return {"display_name": display_name, "email": email}


def render_login_template(
    request: Request,
    *,
    error: str | None,
    status_code: int = 200,
) -> Response:
    # Only anonymous visitors see these pages, so no user meta is loaded.
    context = build_render_context(request, ANONYMOUS)
    return render_page(
        request,
        "login.html",
        context=context,
        current_user=None,
        extra={"error": error},
        status_code=status_code,
    )


def _render_signup_template(
    request: Request,
    *,
    error: str | None,
    form: dict[str, str] | None = None,
    status_code: int = 200,
) -> Response:
    context = build_render_context(request, ANONYMOUS)
    return render_page(
        request,
        "signup.html",
        context=context,
        current_user=None,
        extra={"error": error, "form": form or _signup_form_context()},
        status_code=status_code,
    )


@router.get("/login", response_class=Response)
async def login_form(
    request: Request,
    current_user: User | None = Depends(get_optional_user),
) -> Response:
    if current_user is not None:
        return RedirectResponse(url="/", status_code=303)
    return render_login_template(request, error=None)


@router.post("/login", response_class=HTMLResponse)
async def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    session: AsyncSession = Depends(get_session),
) -> Response:
    normalized_email = email.strip().lower()

    users = UserRepository(session)
    user = await users.get_by_email(normalized_email)

    if user is None:
        audit_auth_denied(
            event=AUTH_EVENT_PASSWORD_LOGIN,
            reason=AUTH_REASON_ACCOUNT_NOT_FOUND,
            actor_email=normalized_email,
        )
        return render_login_template(
            request,
            error="Account not found. Create one first.",
            status_code=401,
        )

    if not user.is_active:
        audit_auth_denied(
            event=AUTH_EVENT_PASSWORD_LOGIN,
            reason=AUTH_REASON_INACTIVE_USER,
            actor=user,
        )
        return render_login_template(
            request,
            error="This account is deactivated.",
            status_code=403,
        )

    if user.password_hash is None or not verify_password(password, user.password_hash):
        audit_auth_denied(
            event=AUTH_EVENT_PASSWORD_LOGIN,
            reason=AUTH_REASON_INVALID_CREDENTIALS,
            actor=user,
        )
        return render_login_template(
            request,
            error="Invalid email or password",
            status_code=401,
        )

    request.session["user_id"] = str(user.id)
    audit_auth_success(event=AUTH_EVENT_PASSWORD_LOGIN, actor=user)
    return RedirectResponse(url="/", status_code=303)


@router.get("/signup", response_class=Response)
async def signup_form(
    request: Request,
    current_user: User | None = Depends(get_optional_user),
) -> Response:
    if current_user is not None:
        return RedirectResponse(url="/", status_code=303)
    return _render_signup_template(request, error=None)


@router.post("/signup", response_class=HTMLResponse)
async def signup(
    request: Request,
    display_name: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    session: AsyncSession = Depends(get_session),
) -> Response:
    normalized_display_name = display_name.strip()
    normalized_email = email.strip().lower()
    if not normalized_display_name:
        raise HTTPException(status_code=400, detail="Display name is required")
    if not normalized_email:
        raise HTTPException(status_code=400, detail="Email is required")

    users = UserRepository(session)
    existing = await users.get_by_email(normalized_email)
    if existing is not None:
        audit_auth_denied(
            event=AUTH_EVENT_SIGNUP,
            reason=AUTH_REASON_ACCOUNT_EXISTS,
            actor_email=normalized_email,
        )
        return _render_signup_template(
            request,
            error="Account already exists. Sign in instead.",
            form=_signup_form_context(
                display_name=normalized_display_name,
                email=normalized_email,
            ),
            status_code=400,
        )

    user = User(
        email=normalized_email,
        display_name=normalized_display_name,
        password_hash=hash_password(password),
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)

    request.session["user_id"] = str(user.id)
    audit_auth_success(event=AUTH_EVENT_SIGNUP, actor=user)
    return RedirectResponse(url="/", status_code=303)


@router.post("/logout", response_class=RedirectResponse)
async def logout(request: Request) -> RedirectResponse:
    user_id = request.session.get("user_id")
    audit_auth_success(event=AUTH_EVENT_LOGOUT, actor_user_id=user_id)
    request.session.clear()
    return RedirectResponse(url="/", status_code=303)
