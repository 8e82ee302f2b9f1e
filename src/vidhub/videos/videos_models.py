"""Video domain dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..media.media_models import ResourceKind

VIDEO_ASSET_SLOTS: dict[str, ResourceKind] = {
    "video_file": ResourceKind.VIDEO,
    "thumbnail": ResourceKind.IMAGE,
}


@dataclass(slots=True)
class Video:
    id: str
    owner_id: str
    title: str
    description: str
    video_file: str | None
    thumbnail: str | None
    duration: float = 0.0
    views: int = 0
    is_published: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
