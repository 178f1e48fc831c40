from __future__ import annotations

from fastapi import APIRouter

from slightly.web.routes.auth import router as auth_router
from slightly.web.routes.pages import router as pages_router
from slightly.web.routes.rest import router as rest_router

router = APIRouter()
router.include_router(pages_router)
router.include_router(auth_router)

__all__ = ["rest_router", "router"]
