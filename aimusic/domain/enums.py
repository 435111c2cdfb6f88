from __future__ import annotations
from enum import Enum


class MusicStatus(str, Enum):
    # No terminal failure state: tasks the provider reports as errored stay in_progress.
    in_progress = "in_progress"
    success = "success"


class MusicGenerateMode(str, Enum):
    description = "description"
    lyric = "lyric"


SUNO_COMPLETE_STATUS = "complete"
