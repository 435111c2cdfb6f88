from __future__ import annotations

import ipaddress
import urllib.parse
from typing import Optional

import httpx

from aimusic.config import settings


def validate_download_url(url: str) -> None:
    """
    Minimal SSRF hardening:
    - allow only http/https
    - block localhost and IP-literals that are private/loopback/link-local/etc.
    """
    p = urllib.parse.urlparse(url)
    scheme = (p.scheme or "").lower()
    if scheme not in ("http", "https"):
        raise ValueError("invalid_media_url_scheme")

    host = (p.hostname or "").strip().lower()
    if not host:
        raise ValueError("invalid_media_url_host")

    if host in ("localhost", "0.0.0.0"):
        raise ValueError("blocked_media_url_host")

    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        # Not an IP literal
        return
    if (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_multicast
        or ip.is_reserved
        or ip.is_unspecified
    ):
        raise ValueError("blocked_media_url_ip")


class MediaDownloader:
    def __init__(self, *, timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = float(timeout or settings.MUSIC_DOWNLOAD_TIMEOUT_SECONDS)
        self._transport = transport

    async def download(self, url: str) -> bytes:
        url = (url or "").strip()
        validate_download_url(url)
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True, transport=self._transport) as client:
            r = await client.get(url)
            r.raise_for_status()
            return r.content
