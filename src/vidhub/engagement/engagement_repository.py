"""Like and subscription repository backed by SQLAlchemy."""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..db.db_models import SubscriptionModel, VideoLikeModel
from ..exceptions import handle_sqlalchemy_errors
from .engagement_models import ChannelStats, LikeSummary


class EngagementRepository:
    """Store video likes and channel subscriptions as toggleable rows."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def toggle_like(self, video_id: str, user_id: str) -> bool:
        """Add or remove the like; return whether the video is now liked."""
        with handle_sqlalchemy_errors(entity="video_like"), self._session_factory() as session:
            existing = session.execute(
                select(VideoLikeModel).where(
                    VideoLikeModel.video_id == video_id, VideoLikeModel.user_id == user_id
                )
            ).scalar_one_or_none()
            if existing is not None:
                session.delete(existing)
                session.commit()
                return False
            session.add(
                VideoLikeModel(
                    id=uuid.uuid4().hex,
                    video_id=video_id,
                    user_id=user_id,
                    created_at=datetime.utcnow(),
                )
            )
            session.commit()
            return True

    def like_summaries(
        self, video_ids: Sequence[str], viewer_id: str | None = None
    ) -> dict[str, LikeSummary]:
        """Return like counts for ``video_ids`` and whether ``viewer_id`` liked each."""
        summaries = {video_id: LikeSummary() for video_id in video_ids}
        if not summaries:
            return summaries
        with handle_sqlalchemy_errors(entity="video_like"), self._session_factory() as session:
            counts = session.execute(
                select(VideoLikeModel.video_id, func.count(VideoLikeModel.id))
                .where(VideoLikeModel.video_id.in_(list(summaries)))
                .group_by(VideoLikeModel.video_id)
            ).all()
            for video_id, count in counts:
                summaries[video_id].likes_count = count
            if viewer_id:
                liked = session.execute(
                    select(VideoLikeModel.video_id).where(
                        VideoLikeModel.video_id.in_(list(summaries)),
                        VideoLikeModel.user_id == viewer_id,
                    )
                ).scalars()
                for video_id in liked:
                    summaries[video_id].is_liked = True
        return summaries

    def liked_video_ids(self, user_id: str, *, offset: int = 0, limit: int = 10) -> list[str]:
        """Most recently liked first."""
        with handle_sqlalchemy_errors(entity="video_like"), self._session_factory() as session:
            rows = session.execute(
                select(VideoLikeModel.video_id)
                .where(VideoLikeModel.user_id == user_id)
                .order_by(VideoLikeModel.created_at.desc())
                .offset(offset)
                .limit(limit)
            ).scalars()
            return list(rows)

    def toggle_subscription(self, subscriber_id: str, channel_id: str) -> bool:
        """Add or remove the subscription; return whether it now exists."""
        with handle_sqlalchemy_errors(entity="subscription"), self._session_factory() as session:
            existing = session.execute(
                select(SubscriptionModel).where(
                    SubscriptionModel.subscriber_id == subscriber_id,
                    SubscriptionModel.channel_id == channel_id,
                )
            ).scalar_one_or_none()
            if existing is not None:
                session.delete(existing)
                session.commit()
                return False
            session.add(
                SubscriptionModel(
                    id=uuid.uuid4().hex,
                    subscriber_id=subscriber_id,
                    channel_id=channel_id,
                    created_at=datetime.utcnow(),
                )
            )
            session.commit()
            return True

    def channel_stats(self, channel_id: str, viewer_id: str | None = None) -> ChannelStats:
        with handle_sqlalchemy_errors(entity="subscription"), self._session_factory() as session:
            subscribers = session.scalar(
                select(func.count(SubscriptionModel.id)).where(
                    SubscriptionModel.channel_id == channel_id
                )
            )
            subscribed_to = session.scalar(
                select(func.count(SubscriptionModel.id)).where(
                    SubscriptionModel.subscriber_id == channel_id
                )
            )
            is_subscribed = False
            if viewer_id:
                is_subscribed = (
                    session.scalar(
                        select(SubscriptionModel.id).where(
                            SubscriptionModel.channel_id == channel_id,
                            SubscriptionModel.subscriber_id == viewer_id,
                        )
                    )
                    is not None
                )
        return ChannelStats(
            subscribers_count=subscribers or 0,
            subscribed_to_count=subscribed_to or 0,
            is_subscribed=is_subscribed,
        )

    def subscriber_ids(self, channel_id: str) -> list[str]:
        with handle_sqlalchemy_errors(entity="subscription"), self._session_factory() as session:
            rows = session.execute(
                select(SubscriptionModel.subscriber_id)
                .where(SubscriptionModel.channel_id == channel_id)
                .order_by(SubscriptionModel.created_at.desc())
            ).scalars()
            return list(rows)

    def channel_ids(self, subscriber_id: str) -> list[str]:
        with handle_sqlalchemy_errors(entity="subscription"), self._session_factory() as session:
            rows = session.execute(
                select(SubscriptionModel.channel_id)
                .where(SubscriptionModel.subscriber_id == subscriber_id)
                .order_by(SubscriptionModel.created_at.desc())
            ).scalars()
            return list(rows)
