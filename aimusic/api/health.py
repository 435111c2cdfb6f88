from __future__ import annotations

from fastapi import APIRouter

from aimusic.db import get_pool

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health():
    return {"ok": True}


@router.get("/ready")
async def ready():
    pool = await get_pool()
    await pool.fetchval("select 1")
    return {"ok": True}
