from __future__ import annotations

import asyncio
import logging
import signal

from aimusic.config import settings
from aimusic.db import close_pool
from aimusic.logging import configure_logging
from aimusic.services.music_service import MusicService

logger = logging.getLogger("music_sync_worker")

POLL_SECS = settings.MUSIC_SYNC_POLL_SECS

_stop = False


def _handle_stop(*_args):
    global _stop
    _stop = True


async def tick_once(service: MusicService) -> int:
    count = await service.sync_music()
    if count:
        logger.info("music_sync_tick", extra={"count": count})
    return count


async def run(service: MusicService | None = None) -> None:
    service = service or MusicService()
    while not _stop:
        try:
            await tick_once(service)
        except Exception as e:
            # keep worker alive; next tick retries the remaining in-progress tasks
            logger.exception("music_sync_tick_failed", extra={"error": str(e)})
        await asyncio.sleep(POLL_SECS)
    await close_pool()


def main() -> None:
    configure_logging()
    signal.signal(signal.SIGTERM, _handle_stop)
    signal.signal(signal.SIGINT, _handle_stop)
    asyncio.run(run())


if __name__ == "__main__":
    main()
