from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware
from starlette.requests import Request
from starlette.responses import Response

from slightly.auth import get_current_user_id
from slightly.db import engine
from slightly.db.models import Base
from slightly.logging_config import (
    RequestContext,
    bind_request_context,
    configure_logging,
    log_with_fields,
    reset_request_context,
)
from slightly.rest_guard import restricted_endpoint_error
from slightly.security.audit import audit_rest_denied
from slightly.security.audit_constants import (
    REST_EVENT_RESTRICTED_ENDPOINT,
    REST_REASON_NOT_LOGGED_IN,
)
from slightly.settings import get_settings
from slightly.web.routes import rest_router
from slightly.web.routes import router as web_router

logger = logging.getLogger("slightly.http")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if settings.auto_create_db:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        yield

    app = FastAPI(lifespan=lifespan)

    # Registered first so it runs inside the request logging middleware.
    @app.middleware("http")
    async def rest_guard_middleware(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        error = restricted_endpoint_error(
            request.url.path,
            authenticated=get_current_user_id(request) is not None,
            prefix=settings.rest_url_prefix,
            endpoints=settings.restricted_rest_endpoints,
        )
        if error is None:
            return await call_next(request)

        audit_rest_denied(
            event=REST_EVENT_RESTRICTED_ENDPOINT,
            reason=REST_REASON_NOT_LOGGED_IN,
            path=request.url.path,
        )
        return JSONResponse(error.to_payload(), status_code=error.status)

    @app.middleware("http")
    async def request_logging_middleware(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = (request.headers.get("x-request-id") or "").strip() or uuid4().hex
        token = bind_request_context(
            RequestContext(request_id=request_id, method=request.method, path=request.url.path)
        )
        start = perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            if settings.log_http_requests:
                duration_ms = (perf_counter() - start) * 1000
                log_with_fields(
                    logger,
                    logging.ERROR,
                    "request failed",
                    method=request.method,
                    path=request.url.path,
                    duration_ms=f"{duration_ms:.2f}",
                    exc_info=True,
                )
            raise
        finally:
            reset_request_context(token)

        response.headers["X-Request-ID"] = request_id
        if settings.log_http_requests:
            duration_ms = (perf_counter() - start) * 1000
            log_with_fields(
                logger,
                logging.INFO,
                "request complete",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=f"{duration_ms:.2f}",
            )
        return response

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret.get_secret_value(),
        session_cookie=settings.session_cookie_name,
        same_site="lax",
    )

    app.include_router(web_router)
    app.include_router(rest_router, prefix="/" + settings.rest_url_prefix.strip("/"))

    # Built scripts may be absent; pages then render without them.
    app.mount(
        "/static/js",
        StaticFiles(directory=str(settings.assets_dir), check_dir=False),
        name="assets",
    )
    static_dir = Path(__file__).resolve().parent / "web" / "static"
    app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    return app


app = create_app()
