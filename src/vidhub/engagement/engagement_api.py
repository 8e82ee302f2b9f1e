"""HTTP routes for video likes, channel subscriptions and channel profiles."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..auth.auth_dependencies import optional_user, require_user
from ..users.users_models import Principal
from ..users.users_schemas import UserResponse
from ..videos.videos_api import VideoResponse
from .engagement_dependencies import get_engagement_service
from .engagement_schemas import (
    ChannelProfileResponse,
    LikeStateResponse,
    SubscriptionStateResponse,
)
from .engagement_service import EngagementService

router = APIRouter(prefix="/api/v1", tags=["engagement"])


@router.post("/likes/videos/{video_id}", response_model=LikeStateResponse)
def toggle_video_like(
    video_id: str,
    principal: Principal = Depends(require_user),
    service: EngagementService = Depends(get_engagement_service),
) -> LikeStateResponse:
    liked = service.toggle_video_like(video_id, principal)
    return LikeStateResponse(video_id=video_id, is_liked=liked)


@router.get("/likes/videos", response_model=list[VideoResponse])
def liked_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    principal: Principal = Depends(require_user),
    service: EngagementService = Depends(get_engagement_service),
) -> list[VideoResponse]:
    videos = service.liked_videos(principal, page=page, limit=limit)
    likes = service.like_summaries(videos, principal)
    return [VideoResponse.from_domain(video, likes.get(video.id)) for video in videos]


@router.post("/subscriptions/c/{channel_id}", response_model=SubscriptionStateResponse)
def toggle_subscription(
    channel_id: str,
    principal: Principal = Depends(require_user),
    service: EngagementService = Depends(get_engagement_service),
) -> SubscriptionStateResponse:
    subscribed = service.toggle_subscription(channel_id, principal)
    return SubscriptionStateResponse(channel_id=channel_id, is_subscribed=subscribed)


@router.get("/subscriptions/c/{subscriber_id}", response_model=list[UserResponse])
def subscribed_channels(
    subscriber_id: str,
    principal: Principal = Depends(require_user),
    service: EngagementService = Depends(get_engagement_service),
) -> list[UserResponse]:
    channels = service.subscribed_channels(subscriber_id)
    return [UserResponse.from_principal(channel) for channel in channels]


@router.get("/subscriptions/u/{channel_id}", response_model=list[UserResponse])
def channel_subscribers(
    channel_id: str,
    principal: Principal = Depends(require_user),
    service: EngagementService = Depends(get_engagement_service),
) -> list[UserResponse]:
    return [UserResponse.from_principal(user) for user in service.subscribers(channel_id)]


@router.get("/users/channel/{username}", response_model=ChannelProfileResponse)
def channel_profile(
    username: str,
    viewer: Principal | None = Depends(optional_user),
    service: EngagementService = Depends(get_engagement_service),
) -> ChannelProfileResponse:
    return ChannelProfileResponse.from_domain(service.channel_profile(username, viewer))
