from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from aimusic.api.deps import CurrentUser, get_current_user, get_music_service
from aimusic.api.routes.serializers import music_out, music_page_out
from aimusic.domain.models import (
    GenerateMusicIn,
    GenerateMusicOut,
    MusicOut,
    MusicPageOut,
    MusicPageQuery,
    UpdateMyMusicIn,
)
from aimusic.services.music_service import MusicService

router = APIRouter(prefix="/ai/music", tags=["ai-music"])


@router.post("/generate", response_model=GenerateMusicOut)
async def generate_music(
    payload: GenerateMusicIn,
    user: CurrentUser = Depends(get_current_user),
    service: MusicService = Depends(get_music_service),
):
    ids = await service.generate_music(user.id, payload)
    return GenerateMusicOut(ids=ids)


@router.get("/my-page", response_model=MusicPageOut)
async def get_my_music_page(
    query: Annotated[MusicPageQuery, Query()],
    user: CurrentUser = Depends(get_current_user),
    service: MusicService = Depends(get_music_service),
):
    page = await service.get_my_music_page(user.id, query)
    return music_page_out(page, service)


@router.get("/get-my", response_model=MusicOut)
async def get_my_music(
    id: int = Query(...),
    user: CurrentUser = Depends(get_current_user),
    service: MusicService = Depends(get_music_service),
):
    music = await service.get_my_music(id, user.id)
    return music_out(music, service)


@router.delete("/delete-my")
async def delete_my_music(
    id: int = Query(...),
    user: CurrentUser = Depends(get_current_user),
    service: MusicService = Depends(get_music_service),
):
    await service.delete_my_music(id, user.id)
    return {"ok": True}


@router.post("/update-my")
async def update_my_music(
    payload: UpdateMyMusicIn,
    user: CurrentUser = Depends(get_current_user),
    service: MusicService = Depends(get_music_service),
):
    await service.update_my_music(payload.id, user.id, payload.title)
    return {"ok": True}
