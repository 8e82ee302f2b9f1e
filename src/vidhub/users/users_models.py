"""User domain dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..media.media_models import ResourceKind

USER_ASSET_SLOTS: dict[str, ResourceKind] = {
    "avatar": ResourceKind.IMAGE,
    "cover_image": ResourceKind.IMAGE,
}


@dataclass(slots=True)
class Principal:
    """Public view of a user; never carries credentials."""

    id: str
    username: str
    email: str
    full_name: str
    avatar: str | None = None
    cover_image: str | None = None
    created_at: datetime | None = None


@dataclass(slots=True)
class UserRecord:
    """Full stored user row, including sensitive fields."""

    id: str
    username: str
    email: str
    full_name: str
    password_hash: str
    refresh_token: str | None = None
    avatar: str | None = None
    cover_image: str | None = None
    created_at: datetime | None = None

    def to_principal(self) -> Principal:
        return Principal(
            id=self.id,
            username=self.username,
            email=self.email,
            full_name=self.full_name,
            avatar=self.avatar,
            cover_image=self.cover_image,
            created_at=self.created_at,
        )
