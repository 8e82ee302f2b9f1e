"""Pydantic schemas for user endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from .users_models import Principal


class UserResponse(BaseModel):
    id: str
    username: str
    email: str
    full_name: str
    avatar: str | None = None
    cover_image: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_principal(cls, principal: Principal) -> "UserResponse":
        return cls(
            id=principal.id,
            username=principal.username,
            email=principal.email,
            full_name=principal.full_name,
            avatar=principal.avatar,
            cover_image=principal.cover_image,
            created_at=principal.created_at,
        )


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str


class UpdateAccountRequest(BaseModel):
    full_name: str | None = None
    email: str | None = None
