from __future__ import annotations

import asyncio
import hashlib
import logging
import mimetypes
import os
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from urllib.parse import urlparse

from azure.core.exceptions import ResourceExistsError
from azure.storage.blob import (
    BlobSasPermissions,
    BlobServiceClient,
    ContentSettings,
    generate_blob_sas,
)

from aimusic.config import settings

logger = logging.getLogger("azure_storage")

DEFAULT_MUSIC_OUTPUT_CONTAINER = "music-output"
STORAGE_PREFIX = "suno"

_KNOWN_EXTS = {".mp3", ".wav", ".m4a", ".ogg", ".flac", ".mp4", ".webm", ".jpeg", ".jpg", ".png", ".webp"}


def guess_ext_from_url(url: Optional[str]) -> str:
    try:
        path = urlparse(url or "").path
        ext = os.path.splitext(path)[1].lower()
        if ext in _KNOWN_EXTS:
            return ext
    except ValueError:
        pass
    return ".bin"


def build_storage_path(data: bytes, *, ext: str) -> str:
    """
    Content-addressed blob path:
      suno/{sha256[:2]}/{sha256}.{ext}

    Re-storing identical bytes yields the same path.
    """
    digest = hashlib.sha256(data).hexdigest()
    e = (ext or "").lstrip(".").strip().lower() or "bin"
    return f"{STORAGE_PREFIX}/{digest[:2]}/{digest}.{e}"


def parse_connection_string(cs: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for item in (cs or "").split(";"):
        if "=" not in item:
            continue
        k, v = item.split("=", 1)
        k = k.strip()
        if k:
            out[k] = v.strip()
    return out


class AzureStorageService:
    """
    Internal file store for re-hosted Suno media (Azure Blob Storage).

    store() returns the blob path, which is what ai_music persists;
    sas_url_for() turns a stored path into a time-limited read URL.

    Requires:
      settings.AZURE_STORAGE_CONNECTION_STRING
    Optional:
      settings.MUSIC_OUTPUT_CONTAINER (default "music-output")
      settings.MUSIC_SAS_HOURS (default 24)
      settings.AZURE_STORAGE_AUTO_CREATE_CONTAINER (default True)
    """

    def __init__(self, *, container: Optional[str] = None):
        self.connection_string = (settings.AZURE_STORAGE_CONNECTION_STRING or "").strip()
        if not self.connection_string:
            raise RuntimeError("missing_azure_storage_connection_string")

        self.container = (container or settings.MUSIC_OUTPUT_CONTAINER or DEFAULT_MUSIC_OUTPUT_CONTAINER).strip()
        if not self.container:
            raise RuntimeError("missing_music_container")

        self.sas_hours = settings.MUSIC_SAS_HOURS if settings.MUSIC_SAS_HOURS > 0 else 24

        self.blob_service = BlobServiceClient.from_connection_string(self.connection_string)

        parts = parse_connection_string(self.connection_string)
        self.account_name = (getattr(self.blob_service, "account_name", None) or parts.get("AccountName") or "").strip()
        self.account_key = (parts.get("AccountKey") or "").strip()
        if not self.account_name or not self.account_key:
            # SAS-only connection strings cannot mint read URLs.
            raise RuntimeError("could_not_parse_storage_account_credentials")

        self._container_client = self.blob_service.get_container_client(self.container)
        if settings.AZURE_STORAGE_AUTO_CREATE_CONTAINER:
            self._ensure_container()

    def _ensure_container(self) -> None:
        try:
            self._container_client.create_container()
            logger.info("blob_container_created", extra={"container": self.container})
        except ResourceExistsError:
            pass

    def _sync_upload_blob(self, *, blob_name: str, data: bytes, content_type: str) -> None:
        blob_client = self.blob_service.get_blob_client(container=self.container, blob=blob_name)
        blob_client.upload_blob(
            data,
            overwrite=True,
            content_settings=ContentSettings(content_type=content_type),
        )

    async def store(self, data: bytes, *, source_url: Optional[str] = None) -> str:
        """Upload bytes and return the internal reference (blob path)."""
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError("data must be bytes")

        ext = guess_ext_from_url(source_url)
        blob_name = build_storage_path(bytes(data), ext=ext)
        content_type = mimetypes.guess_type(blob_name)[0] or "application/octet-stream"

        await asyncio.to_thread(self._sync_upload_blob, blob_name=blob_name, data=bytes(data), content_type=content_type)
        logger.info("blob_stored", extra={"blob": blob_name, "bytes": len(data)})
        return blob_name

    def sas_url_for(self, storage_path: str) -> str:
        storage_path = (storage_path or "").strip().lstrip("/")
        if not storage_path:
            raise ValueError("storage_path is required")

        now = datetime.now(timezone.utc)
        start = now - timedelta(minutes=5)  # clock skew
        expiry = now + timedelta(hours=self.sas_hours)

        sas_token = generate_blob_sas(
            account_name=self.account_name,
            container_name=self.container,
            blob_name=storage_path,
            account_key=self.account_key,
            permission=BlobSasPermissions(read=True),
            start=start,
            expiry=expiry,
        )
        return f"https://{self.account_name}.blob.core.windows.net/{self.container}/{storage_path}?{sas_token}"
