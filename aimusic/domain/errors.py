from __future__ import annotations


class MusicError(Exception):
    pass


class InvalidGenerateModeError(MusicError, ValueError):
    def __init__(self, generate_mode: object):
        self.generate_mode = generate_mode
        super().__init__(f"unknown_generate_mode:{generate_mode!r}")


class MusicNotFoundError(MusicError, LookupError):
    def __init__(self, music_id: int):
        self.music_id = music_id
        super().__init__(f"music_not_found:{music_id}")
