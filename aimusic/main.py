from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from aimusic.api import build_router
from aimusic.db import close_pool
from aimusic.domain.errors import InvalidGenerateModeError, MusicNotFoundError
from aimusic.logging import configure_logging
from aimusic.services.suno.client import SunoApiError

logger = logging.getLogger("aimusic")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    await close_pool()


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title=os.getenv("SERVICE_NAME", "svc-ai-music"),
        version=os.getenv("SERVICE_VERSION", os.getenv("GIT_SHA", "dev")),
        lifespan=lifespan,
    )
    app.include_router(build_router())

    @app.exception_handler(InvalidGenerateModeError)
    async def _invalid_generate_mode(_request: Request, exc: InvalidGenerateModeError):
        return JSONResponse(status_code=400, content={"detail": "invalid_generate_mode", "generate_mode": str(exc.generate_mode)})

    @app.exception_handler(MusicNotFoundError)
    async def _music_not_found(_request: Request, exc: MusicNotFoundError):
        return JSONResponse(status_code=404, content={"detail": "music_not_found", "id": exc.music_id})

    @app.exception_handler(SunoApiError)
    async def _suno_error(_request: Request, exc: SunoApiError):
        logger.error("suno_upstream_error", extra={"error": str(exc)})
        return JSONResponse(status_code=502, content={"detail": "suno_upstream_error"})

    @app.get("/")
    async def root():
        return {"service": os.getenv("SERVICE_NAME", "svc-ai-music"), "status": "ok"}

    return app


app = create_app()
