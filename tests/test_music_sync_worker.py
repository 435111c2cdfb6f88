from __future__ import annotations

import pytest

from aimusic.domain.enums import MusicStatus
from aimusic.domain.models import MusicTask
from aimusic.services.music_service import MusicService
from aimusic.workers.music_sync_worker import tick_once

from conftest import FakeDownloader, FakeRepo, FakeStorage, FakeSuno, make_track


@pytest.mark.asyncio
async def test_tick_once_runs_a_sync():
    repo = FakeRepo([MusicTask(id=1, task_id="a", status=MusicStatus.in_progress)])
    suno = FakeSuno()
    suno.status_responses[0] = [make_track("a", status="complete")]
    svc = MusicService(suno=suno, repo=repo, storage=FakeStorage(), downloader=FakeDownloader())

    assert await tick_once(svc) == 1
    assert repo.update_calls[0][0].status == MusicStatus.success


@pytest.mark.asyncio
async def test_tick_once_idle():
    svc = MusicService(suno=FakeSuno(), repo=FakeRepo(), storage=FakeStorage(), downloader=FakeDownloader())

    assert await tick_once(svc) == 0
