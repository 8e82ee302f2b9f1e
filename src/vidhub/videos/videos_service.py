"""Video publication workflows on top of the asset synchronizer."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from ..exceptions import (
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    RepositoryError,
    UploadError,
    ValidationError,
)
from ..media.asset_sync import AssetSynchronizer
from ..media.media_models import ResourceKind, StagedUpload
from ..media.staged_upload import remove_staged
from ..users.users_models import Principal
from .videos_models import Video
from .videos_repository import VideoRepository

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class VideoService:
    videos: VideoRepository
    assets: AssetSynchronizer
    publish_on_upload: bool = True

    async def publish(
        self,
        owner: Principal,
        *,
        title: str,
        description: str,
        video_file: StagedUpload | None,
        thumbnail: StagedUpload | None,
    ) -> Video:
        missing = None
        if not (title or "").strip() or not (description or "").strip():
            missing = "title and description are required"
        elif video_file is None:
            missing = "video file is required"
        elif thumbnail is None:
            missing = "thumbnail is required"
        if missing:
            remove_staged(video_file)
            remove_staged(thumbnail)
            raise ValidationError(missing)

        try:
            video_upload = await self.assets.upload_asset(video_file, ResourceKind.VIDEO)
        except UploadError:
            remove_staged(thumbnail)
            raise
        try:
            thumbnail_upload = await self.assets.upload_asset(thumbnail, ResourceKind.IMAGE)
        except UploadError:
            await self.assets.delete_asset(video_upload.reference)
            raise

        try:
            video = await asyncio.to_thread(
                self.videos.create_video,
                owner_id=owner.id,
                title=title.strip(),
                description=description.strip(),
                video_file=video_upload.reference,
                thumbnail=thumbnail_upload.reference,
                duration=video_upload.duration or 0.0,
                is_published=self.publish_on_upload,
            )
        except RepositoryError as exc:
            logger.error(
                "videos.publish.persist_failed",
                owner_id=owner.id,
                orphaned=[video_upload.reference, thumbnail_upload.reference],
                error=str(exc),
            )
            raise PersistenceError("could not save published video") from exc
        logger.info(
            "videos.published",
            video_id=video.id,
            owner_id=owner.id,
            is_published=video.is_published,
        )
        return video

    def list_videos(
        self,
        viewer: Principal | None,
        *,
        owner_id: str | None = None,
        query: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Sequence[Video]:
        page = max(page, 1)
        limit = min(max(limit, 1), 100)
        return self.videos.list_videos(
            viewer_id=viewer.id if viewer else None,
            owner_id=owner_id,
            query=query,
            offset=(page - 1) * limit,
            limit=limit,
        )

    def get_video(self, video_id: str, viewer: Principal | None) -> Video:
        video = self.videos.get_video(video_id)
        is_owner = viewer is not None and viewer.id == video.owner_id
        if not video.is_published and not is_owner:
            raise NotFoundError("video does not exist")
        if viewer is not None and not is_owner:
            self.videos.increment_views(video_id)
            video = self.videos.get_video(video_id)
        return video

    async def update_video(
        self,
        video_id: str,
        owner: Principal,
        *,
        title: str | None,
        description: str | None,
        thumbnail: StagedUpload | None,
    ) -> Video:
        try:
            await asyncio.to_thread(self._owned, video_id, owner, action="edit")
        except Exception:
            remove_staged(thumbnail)
            raise
        if thumbnail is not None:
            await self.assets.replace_asset(self.videos, video_id, "thumbnail", thumbnail)
        return await asyncio.to_thread(
            self.videos.update_details, video_id, title=title, description=description
        )

    async def delete_video(self, video_id: str, owner: Principal) -> None:
        video = await asyncio.to_thread(self._owned, video_id, owner, action="delete")
        await asyncio.to_thread(self.videos.delete_video, video_id)
        for reference in (video.video_file, video.thumbnail):
            result = await self.assets.delete_asset(reference)
            if not result.ok:
                logger.warning("videos.delete.asset_leaked", video_id=video_id, reference=reference)
        logger.info("videos.deleted", video_id=video_id, owner_id=owner.id)

    def toggle_publish(self, video_id: str, owner: Principal) -> Video:
        video = self._owned(video_id, owner, action="toggle publish status of")
        return self.videos.set_published(video_id, not video.is_published)

    def _owned(self, video_id: str, owner: Principal, *, action: str) -> Video:
        video = self.videos.get_video(video_id)
        if video.owner_id != owner.id:
            raise ForbiddenError(f"you can't {action} this video as you are not the owner")
        return video
