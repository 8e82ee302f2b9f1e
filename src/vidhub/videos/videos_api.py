"""HTTP routes for videos."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from pydantic import BaseModel

from ..auth.auth_dependencies import optional_user, require_user
from ..engagement.engagement_dependencies import get_engagement_service
from ..engagement.engagement_models import LikeSummary, VideoEngagement
from ..engagement.engagement_schemas import ChannelSummaryResponse
from ..engagement.engagement_service import EngagementService
from ..media.staged_upload import StagingArea
from ..users.users_api import get_staging_area
from ..users.users_models import Principal
from .videos_models import Video
from .videos_service import VideoService

router = APIRouter(prefix="/api/v1/videos", tags=["videos"])


class VideoResponse(BaseModel):
    id: str
    owner_id: str
    title: str
    description: str
    video_file: str | None
    thumbnail: str | None
    duration: float
    views: int
    is_published: bool
    created_at: datetime | None = None
    likes_count: int = 0
    is_liked: bool = False

    @classmethod
    def from_domain(cls, video: Video, likes: LikeSummary | None = None) -> "VideoResponse":
        likes = likes or LikeSummary()
        return cls(
            id=video.id,
            owner_id=video.owner_id,
            title=video.title,
            description=video.description,
            video_file=video.video_file,
            thumbnail=video.thumbnail,
            duration=video.duration,
            views=video.views,
            is_published=video.is_published,
            created_at=video.created_at,
            likes_count=likes.likes_count,
            is_liked=likes.is_liked,
        )


class VideoDetailResponse(VideoResponse):
    owner: ChannelSummaryResponse

    @classmethod
    def from_engagement(cls, video: Video, engagement: VideoEngagement) -> "VideoDetailResponse":
        base = VideoResponse.from_domain(video, engagement.likes)
        return cls(
            **base.model_dump(),
            owner=ChannelSummaryResponse.from_domain(engagement.owner, engagement.owner_stats),
        )


class PublishStateResponse(BaseModel):
    id: str
    is_published: bool


def get_video_service(request: Request) -> VideoService:
    try:
        return request.app.state.video_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("VideoService is not configured") from exc


@router.get("", response_model=list[VideoResponse])
def list_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    query: str | None = None,
    user_id: str | None = Query(None, alias="userId"),
    viewer: Principal | None = Depends(optional_user),
    service: VideoService = Depends(get_video_service),
    engagement: EngagementService = Depends(get_engagement_service),
) -> list[VideoResponse]:
    videos = service.list_videos(viewer, owner_id=user_id, query=query, page=page, limit=limit)
    likes = engagement.like_summaries(videos, viewer)
    return [VideoResponse.from_domain(video, likes.get(video.id)) for video in videos]


@router.post("", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
async def publish_video(
    title: str = Form(""),
    description: str = Form(""),
    video_file: UploadFile | None = File(None, alias="videoFile"),
    thumbnail: UploadFile | None = File(None),
    owner: Principal = Depends(require_user),
    staging: StagingArea = Depends(get_staging_area),
    service: VideoService = Depends(get_video_service),
) -> VideoResponse:
    video = await service.publish(
        owner,
        title=title,
        description=description,
        video_file=await staging.stage(video_file),
        thumbnail=await staging.stage(thumbnail),
    )
    return VideoResponse.from_domain(video)


@router.get("/{video_id}", response_model=VideoDetailResponse)
def get_video(
    video_id: str,
    viewer: Principal | None = Depends(optional_user),
    service: VideoService = Depends(get_video_service),
    engagement: EngagementService = Depends(get_engagement_service),
) -> VideoDetailResponse:
    video = service.get_video(video_id, viewer)
    return VideoDetailResponse.from_engagement(video, engagement.video_engagement(video, viewer))


@router.patch("/{video_id}", response_model=VideoResponse)
async def update_video(
    video_id: str,
    title: str | None = Form(None),
    description: str | None = Form(None),
    thumbnail: UploadFile | None = File(None),
    owner: Principal = Depends(require_user),
    staging: StagingArea = Depends(get_staging_area),
    service: VideoService = Depends(get_video_service),
) -> VideoResponse:
    video = await service.update_video(
        video_id,
        owner,
        title=title,
        description=description,
        thumbnail=await staging.stage(thumbnail),
    )
    return VideoResponse.from_domain(video)


@router.delete("/{video_id}")
async def delete_video(
    video_id: str,
    owner: Principal = Depends(require_user),
    service: VideoService = Depends(get_video_service),
) -> dict[str, str]:
    await service.delete_video(video_id, owner)
    return {"status": "ok"}


@router.patch("/{video_id}/toggle-publish", response_model=PublishStateResponse)
def toggle_publish(
    video_id: str,
    owner: Principal = Depends(require_user),
    service: VideoService = Depends(get_video_service),
) -> PublishStateResponse:
    video = service.toggle_publish(video_id, owner)
    return PublishStateResponse(id=video.id, is_published=video.is_published)
