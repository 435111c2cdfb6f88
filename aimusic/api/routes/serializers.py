from __future__ import annotations

from aimusic.domain.models import MusicOut, MusicPage, MusicPageOut, MusicTask
from aimusic.services.music_service import MusicService


def music_out(m: MusicTask, service: MusicService) -> MusicOut:
    # Stored media fields are blob paths; responses carry short-lived read URLs.
    return MusicOut(
        id=m.id,
        task_id=m.task_id,
        user_id=m.user_id,
        platform=m.platform,
        generate_mode=m.generate_mode,
        model=m.model,
        prompt=m.prompt,
        description_prompt=m.description_prompt,
        title=m.title,
        lyric=m.lyric,
        tags=list(m.tags),
        audio_url=service.media_url(m.audio_url),
        video_url=service.media_url(m.video_url),
        image_url=service.media_url(m.image_url),
        status=m.status,
        public_status=m.public_status,
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


def music_page_out(page: MusicPage, service: MusicService) -> MusicPageOut:
    return MusicPageOut(items=[music_out(m, service) for m in page.items], total=page.total)
