from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from aimusic.api.deps import CurrentUser, get_music_service, require_admin
from aimusic.api.routes.serializers import music_out, music_page_out
from aimusic.domain.errors import MusicNotFoundError
from aimusic.domain.models import MusicOut, MusicPageOut, MusicPageQuery, SyncMusicOut, UpdatePublicStatusIn
from aimusic.services.music_service import MusicService

router = APIRouter(prefix="/ai/music/admin", tags=["ai-music-admin"])


@router.get("/page", response_model=MusicPageOut)
async def get_music_page(
    query: Annotated[MusicPageQuery, Query()],
    _admin: CurrentUser = Depends(require_admin),
    service: MusicService = Depends(get_music_service),
):
    page = await service.get_music_page(query)
    return music_page_out(page, service)


@router.get("/get", response_model=MusicOut)
async def get_music(
    id: int = Query(...),
    _admin: CurrentUser = Depends(require_admin),
    service: MusicService = Depends(get_music_service),
):
    music = await service.get_music(id)
    if music is None:
        raise MusicNotFoundError(id)
    return music_out(music, service)


@router.put("/update-public-status")
async def update_public_status(
    payload: UpdatePublicStatusIn,
    _admin: CurrentUser = Depends(require_admin),
    service: MusicService = Depends(get_music_service),
):
    await service.update_public_status(payload.id, payload.public_status)
    return {"ok": True}


@router.delete("/delete")
async def delete_music(
    id: int = Query(...),
    _admin: CurrentUser = Depends(require_admin),
    service: MusicService = Depends(get_music_service),
):
    await service.delete_music(id)
    return {"ok": True}


@router.post("/sync", response_model=SyncMusicOut)
async def sync_music(
    _admin: CurrentUser = Depends(require_admin),
    service: MusicService = Depends(get_music_service),
):
    """Manual trigger for the same sync the worker runs on a timer."""
    return SyncMusicOut(count=await service.sync_music())
