from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional, Sequence

import pytest

from aimusic.domain.enums import MusicStatus
from aimusic.domain.models import MusicPage, MusicPageQuery, MusicTask
from aimusic.services.music_service import MusicService
from aimusic.services.suno.client import SunoTrack


class FakeRepo:
    def __init__(self, rows: Optional[List[MusicTask]] = None):
        self.rows: Dict[int, MusicTask] = {}
        self.next_id = 1
        self.insert_calls: List[List[MusicTask]] = []
        self.update_calls: List[List[MusicTask]] = []
        self.deleted: List[int] = []
        self.public_status_updates: List[tuple] = []
        self.title_updates: List[tuple] = []
        self.page_queries: List[MusicPageQuery] = []
        for r in rows or []:
            self.rows[r.id] = r
            self.next_id = max(self.next_id, r.id + 1)

    @property
    def writes(self) -> int:
        return (
            len(self.insert_calls)
            + len(self.update_calls)
            + len(self.deleted)
            + len(self.public_status_updates)
            + len(self.title_updates)
        )

    async def insert_batch(self, tasks: Sequence[MusicTask]) -> List[int]:
        self.insert_calls.append(list(tasks))
        ids = []
        for t in tasks:
            mid = self.next_id
            self.next_id += 1
            self.rows[mid] = replace(t, id=mid)
            ids.append(mid)
        return ids

    async def update_batch(self, tasks: Sequence[MusicTask]) -> None:
        self.update_calls.append(list(tasks))

    async def get(self, music_id: int) -> Optional[MusicTask]:
        return self.rows.get(music_id)

    async def list_by_status(self, status: MusicStatus) -> List[MusicTask]:
        return [r for r in self.rows.values() if r.status == status]

    async def page(self, query: MusicPageQuery) -> MusicPage:
        self.page_queries.append(query)
        items = [r for r in self.rows.values() if query.user_id is None or r.user_id == query.user_id]
        return MusicPage(items=items, total=len(items))

    async def update_public_status(self, music_id: int, public_status: bool) -> None:
        self.public_status_updates.append((music_id, public_status))

    async def update_title(self, music_id: int, title: str) -> None:
        self.title_updates.append((music_id, title))

    async def delete(self, music_id: int) -> None:
        self.deleted.append(music_id)
        self.rows.pop(music_id, None)


class FakeSuno:
    def __init__(self, tracks: Optional[List[SunoTrack]] = None):
        self.tracks = tracks or []
        self.generate_calls: List[dict] = []
        self.custom_generate_calls: List[dict] = []
        self.get_calls: List[List[str]] = []
        # batch index -> tracks to return; missing index returns []
        self.status_responses: Dict[int, List[SunoTrack]] = {}

    async def generate(self, **kwargs) -> List[SunoTrack]:
        self.generate_calls.append(kwargs)
        return list(self.tracks)

    async def custom_generate(self, **kwargs) -> List[SunoTrack]:
        self.custom_generate_calls.append(kwargs)
        return list(self.tracks)

    async def get_music_list(self, task_ids: Sequence[str]) -> List[SunoTrack]:
        self.get_calls.append(list(task_ids))
        return list(self.status_responses.get(len(self.get_calls) - 1, []))

    @property
    def calls(self) -> int:
        return len(self.generate_calls) + len(self.custom_generate_calls) + len(self.get_calls)


class FakeDownloader:
    def __init__(self, fail_on: Optional[str] = None):
        self.urls: List[str] = []
        self.fail_on = fail_on

    async def download(self, url: str) -> bytes:
        self.urls.append(url)
        if self.fail_on and self.fail_on in url:
            raise ConnectionError(f"download failed: {url}")
        return f"bytes:{url}".encode()


class FakeStorage:
    def __init__(self):
        self.stored: List[bytes] = []

    async def store(self, data: bytes, *, source_url: Optional[str] = None) -> str:
        self.stored.append(data)
        return f"suno/ref-{len(self.stored)}"

    def sas_url_for(self, storage_path: str) -> str:
        return f"https://acct.blob.core.windows.net/music-output/{storage_path}?sig=x"


def make_track(tid: str, **kw) -> SunoTrack:
    base = dict(
        id=tid,
        status="streaming",
        model_name="chirp-v3-5",
        prompt="[Verse] hello",
        gpt_description_prompt="a calm song",
        title=f"Song {tid}",
        lyric="hello world",
        tags="pop, upbeat",
        audio_url=None,
        video_url=None,
        image_url=None,
    )
    base.update(kw)
    return SunoTrack(**base)


@pytest.fixture
def repo() -> FakeRepo:
    return FakeRepo()


@pytest.fixture
def suno() -> FakeSuno:
    return FakeSuno()


@pytest.fixture
def downloader() -> FakeDownloader:
    return FakeDownloader()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def service(repo, suno, downloader, storage) -> MusicService:
    return MusicService(suno=suno, repo=repo, storage=storage, downloader=downloader, platform="Suno")
