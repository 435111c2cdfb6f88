from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from aimusic.config import settings

logger = logging.getLogger("suno_client")


class SunoApiError(RuntimeError):
    pass


def _s(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v)
    return s if s.strip() else None


@dataclass(frozen=True)
class SunoTrack:
    """One track as returned by the suno-api gateway (generate, custom_generate, get)."""

    id: str
    status: str = ""
    model_name: Optional[str] = None
    prompt: Optional[str] = None
    gpt_description_prompt: Optional[str] = None
    title: Optional[str] = None
    lyric: Optional[str] = None
    tags: Optional[str] = None
    audio_url: Optional[str] = None
    video_url: Optional[str] = None
    image_url: Optional[str] = None
    duration: Optional[float] = None
    error_message: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SunoTrack":
        tid = _s(d.get("id"))
        if not tid:
            raise SunoApiError(f"suno_track_missing_id: {json.dumps(d, default=str)[:300]}")

        duration: Optional[float]
        try:
            duration = float(d["duration"]) if d.get("duration") not in (None, "") else None
        except (TypeError, ValueError):
            duration = None

        return cls(
            id=tid,
            status=str(d.get("status") or ""),
            model_name=_s(d.get("model_name")),
            prompt=_s(d.get("prompt")),
            gpt_description_prompt=_s(d.get("gpt_description_prompt")),
            title=_s(d.get("title")),
            lyric=_s(d.get("lyric")),
            tags=_s(d.get("tags")),
            audio_url=_s(d.get("audio_url")),
            video_url=_s(d.get("video_url")),
            image_url=_s(d.get("image_url")),
            duration=duration,
            error_message=_s(d.get("error_message")),
        )


def _tracks_from_response(r: httpx.Response, *, op: str) -> List[SunoTrack]:
    if r.status_code >= 400:
        raise SunoApiError(f"suno_{op}_failed status={r.status_code} body={r.text[:500]}")
    try:
        payload = r.json()
    except json.JSONDecodeError as e:
        raise SunoApiError(f"suno_{op}_invalid_json: {e} body={(r.text or '')[:200]}") from e
    if not isinstance(payload, list):
        raise SunoApiError(f"suno_{op}_unexpected_shape: {type(payload).__name__}")
    return [SunoTrack.from_dict(x) for x in payload if isinstance(x, dict)]


class SunoClient:
    """
    Client for a suno-api compatible gateway.

    Generation calls return immediately (wait_audio=false); the returned tracks
    are usually still streaming and get completed later through get_music_list.
    """

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.SUNO_BASE_URL).strip().rstrip("/")
        if not self.base_url:
            raise RuntimeError("missing_suno_base_url")
        self.api_key = (api_key or settings.SUNO_API_KEY or "").strip()
        self.timeout = float(timeout or settings.SUNO_TIMEOUT_SECONDS)
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        h = {"Accept": "application/json"}
        if self.api_key:
            h["Authorization"] = f"Bearer {self.api_key}"
        return h

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, follow_redirects=True, transport=self._transport)

    async def _post(self, path: str, body: Dict[str, Any], *, op: str) -> List[SunoTrack]:
        async with self._client() as client:
            r = await client.post(f"{self.base_url}{path}", headers=self._headers(), json=body)
        tracks = _tracks_from_response(r, op=op)
        logger.info("suno_generate_submitted", extra={"op": op, "tracks": len(tracks)})
        return tracks

    async def generate(
        self,
        *,
        prompt: str,
        model: Optional[str] = None,
        make_instrumental: bool = False,
    ) -> List[SunoTrack]:
        """Description mode: Suno writes lyrics and style from a free-text prompt."""
        body: Dict[str, Any] = {
            "prompt": prompt or "",
            "make_instrumental": bool(make_instrumental),
            "wait_audio": False,
        }
        if model:
            body["model"] = model
        return await self._post("/api/generate", body, op="generate")

    async def custom_generate(
        self,
        *,
        prompt: str,
        model: Optional[str] = None,
        tags: Optional[str] = None,
        title: Optional[str] = None,
    ) -> List[SunoTrack]:
        """Lyric mode: prompt is used verbatim as the lyric."""
        body: Dict[str, Any] = {
            "prompt": prompt or "",
            "tags": tags or "",
            "title": title or "",
            "make_instrumental": False,
            "wait_audio": False,
        }
        if model:
            body["model"] = model
        return await self._post("/api/custom_generate", body, op="custom_generate")

    @retry(
        reraise=True,
        stop=stop_after_attempt(max(1, settings.SUNO_STATUS_RETRY_ATTEMPTS)),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4.0),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.TransportError)),
    )
    async def get_music_list(self, task_ids: Sequence[str]) -> List[SunoTrack]:
        ids = [str(x).strip() for x in task_ids if str(x or "").strip()]
        if not ids:
            return []
        async with self._client() as client:
            r = await client.get(
                f"{self.base_url}/api/get",
                headers=self._headers(),
                params={"ids": ",".join(ids)},
            )
        return _tracks_from_response(r, op="get")
