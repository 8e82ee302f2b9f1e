"""Pydantic schemas for like and subscription endpoints."""

from __future__ import annotations

from pydantic import BaseModel

from ..users.users_models import Principal
from .engagement_models import ChannelProfile, ChannelStats


class LikeStateResponse(BaseModel):
    video_id: str
    is_liked: bool


class SubscriptionStateResponse(BaseModel):
    channel_id: str
    is_subscribed: bool


class ChannelSummaryResponse(BaseModel):
    id: str
    username: str
    avatar: str | None = None
    subscribers_count: int = 0
    is_subscribed: bool = False

    @classmethod
    def from_domain(cls, owner: Principal, stats: ChannelStats) -> "ChannelSummaryResponse":
        return cls(
            id=owner.id,
            username=owner.username,
            avatar=owner.avatar,
            subscribers_count=stats.subscribers_count,
            is_subscribed=stats.is_subscribed,
        )


class ChannelProfileResponse(BaseModel):
    id: str
    username: str
    full_name: str
    email: str
    avatar: str | None = None
    cover_image: str | None = None
    subscribers_count: int = 0
    subscribed_to_count: int = 0
    is_subscribed: bool = False

    @classmethod
    def from_domain(cls, profile: ChannelProfile) -> "ChannelProfileResponse":
        channel = profile.channel
        return cls(
            id=channel.id,
            username=channel.username,
            full_name=channel.full_name,
            email=channel.email,
            avatar=channel.avatar,
            cover_image=channel.cover_image,
            subscribers_count=profile.stats.subscribers_count,
            subscribed_to_count=profile.stats.subscribed_to_count,
            is_subscribed=profile.stats.is_subscribed,
        )
