from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from aimusic.config import settings
from aimusic.domain.enums import SUNO_COMPLETE_STATUS, MusicGenerateMode, MusicStatus
from aimusic.domain.errors import InvalidGenerateModeError, MusicNotFoundError
from aimusic.domain.models import GenerateMusicIn, MusicPage, MusicPageQuery, MusicTask
from aimusic.repos.music_repo import MusicRepo
from aimusic.services.azure_storage_service import AzureStorageService
from aimusic.services.media_download import MediaDownloader
from aimusic.services.suno.client import SunoClient, SunoTrack

logger = logging.getLogger("music_service")


def split_tags(tags: Optional[str]) -> List[str]:
    if not tags:
        return []
    return [p.strip() for p in tags.split(",") if p.strip()]


def map_status(provider_status: Optional[str]) -> MusicStatus:
    if provider_status == SUNO_COMPLETE_STATUS:
        return MusicStatus.success
    return MusicStatus.in_progress


def chunked(items: Sequence, size: int) -> List[list]:
    if size < 1:
        raise ValueError("batch_size must be >= 1")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class MusicService:
    """
    Suno generate / sync / materialize workflow over ai_music.

      generate_music: submit to Suno, materialize media, insert one row per track
      sync_music:     re-query in-progress tasks in batches, update by task id
      the rest:       visibility/title updates, deletes and listings
    """

    def __init__(
        self,
        *,
        suno: Optional[SunoClient] = None,
        repo: Optional[MusicRepo] = None,
        storage: Optional[AzureStorageService] = None,
        downloader: Optional[MediaDownloader] = None,
        sync_batch_size: Optional[int] = None,
        platform: Optional[str] = None,
    ):
        self.suno = suno or SunoClient()
        self.repo = repo or MusicRepo()
        self.storage = storage or AzureStorageService()
        self.downloader = downloader or MediaDownloader()
        self.sync_batch_size = settings.MUSIC_SYNC_BATCH_SIZE if sync_batch_size is None else int(sync_batch_size)
        self.platform = platform or settings.MUSIC_PLATFORM

    # ----------------------------
    # Generate
    # ----------------------------
    async def generate_music(self, user_id: UUID, req: GenerateMusicIn) -> List[int]:
        mode = req.generate_mode

        if mode == MusicGenerateMode.lyric.value:
            tracks = await self.suno.custom_generate(
                prompt=req.prompt,
                model=req.model,
                tags=",".join(req.tags or []),
                title=req.title,
            )
        elif mode == MusicGenerateMode.description.value:
            tracks = await self.suno.generate(
                prompt=req.prompt,
                model=req.model,
                make_instrumental=req.make_instrumental,
            )
        else:
            raise InvalidGenerateModeError(req.generate_mode)

        if not tracks:
            return []

        platform = req.platform or self.platform
        music_list = [
            replace(t, user_id=user_id, platform=platform, generate_mode=mode)
            for t in await self._build_music_tasks(tracks)
        ]
        ids = await self.repo.insert_batch(music_list)
        logger.info("music_generated", extra={"user_id": str(user_id), "mode": mode, "ids": ids})
        return ids

    # ----------------------------
    # Sync
    # ----------------------------
    async def sync_music(self) -> int:
        in_progress = await self.repo.list_by_status(MusicStatus.in_progress)
        if not in_progress:
            return 0
        logger.info("music_sync_started", extra={"tasks": len(in_progress)})

        for chunk in chunked(in_progress, self.sync_batch_size):
            task_id_map: Dict[str, int] = {m.task_id: m.id for m in chunk}
            tracks = await self.suno.get_music_list(list(task_id_map.keys()))
            if not tracks:
                logger.warning("music_sync_batch_empty", extra={"task_ids": list(task_id_map.keys())})
                continue

            for t in tracks:
                if t.error_message:
                    logger.warning("music_sync_track_error", extra={"task_id": t.id, "error": t.error_message})

            updates = [
                replace(m, id=task_id_map.get(m.task_id))
                for m in await self._build_music_tasks(tracks)
            ]
            await self.repo.update_batch(updates)

        return len(in_progress)

    # ----------------------------
    # Admin operations
    # ----------------------------
    async def update_public_status(self, music_id: int, public_status: bool) -> None:
        await self._validate_music_exists(music_id)
        await self.repo.update_public_status(music_id, public_status)

    async def delete_music(self, music_id: int) -> None:
        await self._validate_music_exists(music_id)
        await self.repo.delete(music_id)

    async def get_music_page(self, query: MusicPageQuery) -> MusicPage:
        return await self.repo.page(query)

    async def get_music(self, music_id: int) -> Optional[MusicTask]:
        return await self.repo.get(music_id)

    # ----------------------------
    # User-scoped operations
    # ----------------------------
    async def get_my_music(self, music_id: int, user_id: UUID) -> MusicTask:
        music = await self.repo.get(music_id)
        if music is None or music.user_id != user_id:
            raise MusicNotFoundError(music_id)
        return music

    async def get_my_music_page(self, user_id: UUID, query: MusicPageQuery) -> MusicPage:
        return await self.repo.page(query.model_copy(update={"user_id": user_id}))

    async def delete_my_music(self, music_id: int, user_id: UUID) -> None:
        await self.get_my_music(music_id, user_id)
        await self.repo.delete(music_id)

    async def update_my_music(self, music_id: int, user_id: UUID, title: str) -> None:
        await self.get_my_music(music_id, user_id)
        await self.repo.update_title(music_id, title)

    def media_url(self, reference: Optional[str]) -> Optional[str]:
        if not reference:
            return None
        if reference.startswith(("http://", "https://")):
            return reference
        return self.storage.sas_url_for(reference)

    # ----------------------------
    # Internals
    # ----------------------------
    async def _validate_music_exists(self, music_id: int) -> MusicTask:
        music = await self.repo.get(music_id)
        if music is None:
            raise MusicNotFoundError(music_id)
        return music

    async def _build_music_tasks(self, tracks: Sequence[SunoTrack]) -> List[MusicTask]:
        return [await self._build_music_task(t) for t in tracks]

    async def _build_music_task(self, track: SunoTrack) -> MusicTask:
        # A failed download aborts the whole mapping.
        audio_url = await self._create_file(track.audio_url)
        video_url = await self._create_file(track.video_url)
        image_url = await self._create_file(track.image_url)
        return MusicTask(
            task_id=track.id,
            model=track.model_name,
            prompt=track.prompt,
            description_prompt=track.gpt_description_prompt,
            title=track.title,
            lyric=track.lyric,
            tags=split_tags(track.tags),
            audio_url=audio_url,
            video_url=video_url,
            image_url=image_url,
            status=map_status(track.status),
        )

    async def _create_file(self, url: Optional[str]) -> Optional[str]:
        if not url or not url.strip():
            return None
        data = await self.downloader.download(url)
        return await self.storage.store(data, source_url=url)
