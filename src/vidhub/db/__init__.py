"""Persistence primitives: ORM models and schema bootstrap."""

from .db_init import init_db
from .db_models import Base, SubscriptionModel, UserModel, VideoLikeModel, VideoModel

__all__ = ["Base", "SubscriptionModel", "UserModel", "VideoLikeModel", "VideoModel", "init_db"]
