from __future__ import annotations

from fastapi import APIRouter

from aimusic.api.health import router as health_router
from aimusic.api.routes.music import router as music_router
from aimusic.api.routes.music_admin import router as music_admin_router


def build_router() -> APIRouter:
    r = APIRouter(prefix="/api")
    r.include_router(health_router)
    r.include_router(music_router)
    r.include_router(music_admin_router)
    return r
