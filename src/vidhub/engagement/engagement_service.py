"""Video likes, channel subscriptions and the per-viewer state built on them."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from ..exceptions import NotFoundError, ValidationError
from ..users.users_models import Principal
from ..users.users_repository import UserRepository
from ..videos.videos_models import Video
from ..videos.videos_repository import VideoRepository
from .engagement_models import ChannelProfile, LikeSummary, VideoEngagement
from .engagement_repository import EngagementRepository

logger = structlog.get_logger(__name__)


def _viewer_id(viewer: Principal | None) -> str | None:
    return viewer.id if viewer is not None else None


@dataclass(slots=True)
class EngagementService:
    engagement: EngagementRepository
    users: UserRepository
    videos: VideoRepository

    def toggle_video_like(self, video_id: str, principal: Principal) -> bool:
        video = self.videos.get_video(video_id)
        if not video.is_published and video.owner_id != principal.id:
            raise NotFoundError("video does not exist")
        liked = self.engagement.toggle_like(video_id, principal.id)
        logger.info("engagement.like.toggled", video_id=video_id, user_id=principal.id, liked=liked)
        return liked

    def like_summaries(
        self, videos: Sequence[Video], viewer: Principal | None
    ) -> dict[str, LikeSummary]:
        return self.engagement.like_summaries([video.id for video in videos], _viewer_id(viewer))

    def video_engagement(self, video: Video, viewer: Principal | None) -> VideoEngagement:
        """Like state of ``video`` and subscription state of its owner for ``viewer``."""
        viewer_id = _viewer_id(viewer)
        likes = self.engagement.like_summaries([video.id], viewer_id)[video.id]
        owner = self.users.get_user(video.owner_id).to_principal()
        return VideoEngagement(
            likes=likes,
            owner=owner,
            owner_stats=self.engagement.channel_stats(owner.id, viewer_id),
        )

    def liked_videos(self, principal: Principal, *, page: int = 1, limit: int = 10) -> list[Video]:
        """Videos ``principal`` liked, newest like first; hidden videos are skipped."""
        page = max(page, 1)
        limit = min(max(limit, 1), 100)
        video_ids = self.engagement.liked_video_ids(
            principal.id, offset=(page - 1) * limit, limit=limit
        )
        return [
            video
            for video in self.videos.get_many(video_ids)
            if video.is_published or video.owner_id == principal.id
        ]

    def toggle_subscription(self, channel_id: str, principal: Principal) -> bool:
        if channel_id == principal.id:
            raise ValidationError("you can't subscribe to your own channel")
        self.users.get_user(channel_id)
        subscribed = self.engagement.toggle_subscription(principal.id, channel_id)
        logger.info(
            "engagement.subscription.toggled",
            channel_id=channel_id,
            subscriber_id=principal.id,
            subscribed=subscribed,
        )
        return subscribed

    def channel_profile(self, username: str, viewer: Principal | None) -> ChannelProfile:
        if not (username or "").strip():
            raise ValidationError("username is required")
        record = self.users.find_by_login(username=username.strip())
        if record is None:
            raise NotFoundError("channel does not exist")
        return ChannelProfile(
            channel=record.to_principal(),
            stats=self.engagement.channel_stats(record.id, _viewer_id(viewer)),
        )

    def subscribers(self, channel_id: str) -> list[Principal]:
        self.users.get_user(channel_id)
        ids = self.engagement.subscriber_ids(channel_id)
        return [record.to_principal() for record in self.users.get_many(ids)]

    def subscribed_channels(self, subscriber_id: str) -> list[Principal]:
        self.users.get_user(subscriber_id)
        ids = self.engagement.channel_ids(subscriber_id)
        return [record.to_principal() for record in self.users.get_many(ids)]
