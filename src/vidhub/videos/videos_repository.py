"""Video repository backed by SQLAlchemy."""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from datetime import datetime

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from ..db.db_models import VideoModel
from ..exceptions import NotFoundError, handle_sqlalchemy_errors
from ..media.media_models import ResourceKind
from .videos_models import VIDEO_ASSET_SLOTS, Video


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class VideoRepository:
    """Persist video rows and expose their asset slots."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def create_video(
        self,
        *,
        owner_id: str,
        title: str,
        description: str,
        video_file: str,
        thumbnail: str,
        duration: float,
        is_published: bool,
    ) -> Video:
        now = datetime.utcnow()
        model = VideoModel(
            id=uuid.uuid4().hex,
            owner_id=owner_id,
            title=title,
            description=description,
            video_file=video_file,
            thumbnail=thumbnail,
            duration=duration,
            is_published=is_published,
            created_at=now,
            updated_at=now,
        )
        with handle_sqlalchemy_errors(entity="video"), self._session_factory() as session:
            session.add(model)
            session.commit()
            return self._to_domain(model)

    def get_video(self, video_id: str) -> Video:
        with handle_sqlalchemy_errors(entity="video"), self._session_factory() as session:
            model = session.get(VideoModel, video_id)
            if model is None:
                raise NotFoundError(f"video '{video_id}' not found")
            return self._to_domain(model)

    def get_many(self, video_ids: Sequence[str]) -> list[Video]:
        """Return videos for ``video_ids`` in the given order, skipping unknown ids."""
        if not video_ids:
            return []
        with handle_sqlalchemy_errors(entity="video"), self._session_factory() as session:
            models = session.query(VideoModel).filter(VideoModel.id.in_(list(video_ids))).all()
            by_id = {model.id: self._to_domain(model) for model in models}
        return [by_id[video_id] for video_id in video_ids if video_id in by_id]

    def list_videos(
        self,
        *,
        viewer_id: str | None = None,
        owner_id: str | None = None,
        query: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Sequence[Video]:
        """List newest first; unpublished rows are only visible to their owner."""
        with handle_sqlalchemy_errors(entity="video"), self._session_factory() as session:
            q = session.query(VideoModel)
            if viewer_id:
                q = q.filter(or_(VideoModel.is_published.is_(True), VideoModel.owner_id == viewer_id))
            else:
                q = q.filter(VideoModel.is_published.is_(True))
            if owner_id:
                q = q.filter(VideoModel.owner_id == owner_id)
            if query:
                pattern = f"%{_escape_like(query)}%"
                q = q.filter(
                    or_(
                        VideoModel.title.ilike(pattern, escape="\\"),
                        VideoModel.description.ilike(pattern, escape="\\"),
                    )
                )
            rows = q.order_by(VideoModel.created_at.desc()).offset(offset).limit(limit).all()
            return [self._to_domain(row) for row in rows]

    def update_details(
        self, video_id: str, *, title: str | None, description: str | None
    ) -> Video:
        values: dict[str, object] = {}
        if title:
            values["title"] = title
        if description:
            values["description"] = description
        if values:
            self._update_fields(video_id, **values)
        return self.get_video(video_id)

    def increment_views(self, video_id: str) -> None:
        self._update_fields(video_id, views=VideoModel.views + 1)

    def set_published(self, video_id: str, is_published: bool) -> Video:
        self._update_fields(video_id, is_published=is_published)
        return self.get_video(video_id)

    def delete_video(self, video_id: str) -> None:
        with handle_sqlalchemy_errors(entity="video"), self._session_factory() as session:
            model = session.get(VideoModel, video_id)
            if model is None:
                raise NotFoundError(f"video '{video_id}' not found")
            session.delete(model)
            session.commit()

    def slot_kind(self, slot: str) -> ResourceKind:
        try:
            return VIDEO_ASSET_SLOTS[slot]
        except KeyError as exc:
            raise NotFoundError(f"video asset slot '{slot}' not found") from exc

    def get_asset_reference(self, record_id: str, slot: str) -> str | None:
        self.slot_kind(slot)
        return getattr(self.get_video(record_id), slot)

    def set_asset_reference(self, record_id: str, slot: str, reference: str | None) -> None:
        self.slot_kind(slot)
        self._update_fields(record_id, **{slot: reference})

    def _update_fields(self, video_id: str, **values: object) -> None:
        statement = (
            update(VideoModel)
            .where(VideoModel.id == video_id)
            .values(updated_at=datetime.utcnow(), **values)
        )
        with handle_sqlalchemy_errors(entity="video"), self._session_factory() as session:
            result = session.execute(statement)
            if result.rowcount == 0:
                session.rollback()
                raise NotFoundError(f"video '{video_id}' not found")
            session.commit()

    @staticmethod
    def _to_domain(model: VideoModel) -> Video:
        return Video(
            id=model.id,
            owner_id=model.owner_id,
            title=model.title,
            description=model.description,
            video_file=model.video_file,
            thumbnail=model.thumbnail,
            duration=model.duration,
            views=model.views,
            is_published=model.is_published,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
