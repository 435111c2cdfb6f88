from aimusic.services.suno.client import SunoApiError, SunoClient, SunoTrack

__all__ = ["SunoApiError", "SunoClient", "SunoTrack"]
