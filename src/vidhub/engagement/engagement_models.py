"""Like and subscription read models."""

from __future__ import annotations

from dataclasses import dataclass

from ..users.users_models import Principal


@dataclass(slots=True)
class LikeSummary:
    likes_count: int = 0
    is_liked: bool = False


@dataclass(slots=True)
class ChannelStats:
    """Subscription counters for one channel, seen by one (optional) viewer."""

    subscribers_count: int = 0
    subscribed_to_count: int = 0
    is_subscribed: bool = False


@dataclass(slots=True)
class ChannelProfile:
    channel: Principal
    stats: ChannelStats


@dataclass(slots=True)
class VideoEngagement:
    """Per-viewer engagement attached to a video detail view."""

    likes: LikeSummary
    owner: Principal
    owner_stats: ChannelStats
