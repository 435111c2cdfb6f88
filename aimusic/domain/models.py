from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .enums import MusicGenerateMode, MusicStatus


# -----------------------------
# Persisted record
# -----------------------------


@dataclass(frozen=True)
class MusicTask:
    """
    One row of ai_music.

    Built in one step from a provider track (see MusicService._build_music_task);
    provenance and the local id are attached with dataclasses.replace.
    """

    task_id: str
    status: MusicStatus = MusicStatus.in_progress
    id: Optional[int] = None
    user_id: Optional[UUID] = None
    platform: Optional[str] = None
    generate_mode: Optional[str] = None
    model: Optional[str] = None
    prompt: Optional[str] = None
    description_prompt: Optional[str] = None
    title: Optional[str] = None
    lyric: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    audio_url: Optional[str] = None
    video_url: Optional[str] = None
    image_url: Optional[str] = None
    public_status: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class MusicPage:
    items: List[MusicTask]
    total: int


# -----------------------------
# Generate
# -----------------------------


class GenerateMusicIn(BaseModel):
    """
    lyric:       prompt is the lyric text; tags + title drive the style.
    description: prompt is a free-text description; make_instrumental drops vocals.

    generate_mode stays a plain string so unknown modes reach the service check.
    """
    generate_mode: str = Field(..., examples=[MusicGenerateMode.lyric.value])
    platform: Optional[str] = None
    model: Optional[str] = None
    prompt: str = Field(default="", max_length=5000)
    title: Optional[str] = Field(default=None, max_length=200)
    tags: List[str] = Field(default_factory=list)
    make_instrumental: bool = False


class GenerateMusicOut(BaseModel):
    ids: List[int]


# -----------------------------
# Updates
# -----------------------------


class UpdatePublicStatusIn(BaseModel):
    id: int
    public_status: bool


class UpdateMyMusicIn(BaseModel):
    id: int
    title: str = Field(..., min_length=1, max_length=200)


class SyncMusicOut(BaseModel):
    count: int


# -----------------------------
# Listing
# -----------------------------


class MusicPageQuery(BaseModel):
    page_no: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, le=100)

    user_id: Optional[UUID] = None
    title: Optional[str] = None
    status: Optional[MusicStatus] = None
    generate_mode: Optional[MusicGenerateMode] = None
    public_status: Optional[bool] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None

    @property
    def offset(self) -> int:
        return (self.page_no - 1) * self.page_size


class MusicOut(BaseModel):
    id: int
    task_id: str
    user_id: Optional[UUID] = None
    platform: Optional[str] = None
    generate_mode: Optional[str] = None
    model: Optional[str] = None
    prompt: Optional[str] = None
    description_prompt: Optional[str] = None
    title: Optional[str] = None
    lyric: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    audio_url: Optional[str] = None
    video_url: Optional[str] = None
    image_url: Optional[str] = None
    status: MusicStatus
    public_status: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MusicPageOut(BaseModel):
    items: List[MusicOut] = Field(default_factory=list)
    total: int = 0
