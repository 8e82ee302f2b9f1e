"""Dependency wiring helpers."""

from __future__ import annotations

from fastapi import FastAPI

from .api.errors import app_error_handler
from .auth.auth_api import router as auth_router
from .auth.auth_service import CredentialIssuer
from .config import AppConfig
from .engagement.engagement_api import router as engagement_router
from .engagement.engagement_repository import EngagementRepository
from .engagement.engagement_service import EngagementService
from .exceptions import AppError
from .media.asset_sync import AssetSynchronizer
from .media.remote_storage import CloudinaryStorageClient, RemoteStorageClient
from .media.staged_upload import StagingArea
from .users.users_api import router as users_router
from .users.users_repository import UserRepository
from .users.users_service import AccountService
from .videos.videos_api import router as videos_router
from .videos.videos_repository import VideoRepository
from .videos.videos_service import VideoService


def include_routers(
    app: FastAPI, config: AppConfig, *, storage: RemoteStorageClient | None = None
) -> None:
    """Mount module routers and attach services."""
    user_repo = UserRepository(config.session_factory)
    video_repo = VideoRepository(config.session_factory)
    issuer = CredentialIssuer.from_settings(user_repo, config.tokens)
    assets = AssetSynchronizer(
        storage=storage or CloudinaryStorageClient.from_settings(config.storage),
        timeout_seconds=config.storage.timeout_seconds,
    )

    app.state.config = config
    app.state.user_repo = user_repo
    app.state.video_repo = video_repo
    app.state.credential_issuer = issuer
    app.state.asset_synchronizer = assets
    app.state.staging_area = StagingArea(config.media_paths)
    app.state.account_service = AccountService(users=user_repo, issuer=issuer, assets=assets)
    app.state.video_service = VideoService(
        videos=video_repo, assets=assets, publish_on_upload=config.publish_on_upload
    )
    app.state.engagement_service = EngagementService(
        engagement=EngagementRepository(config.session_factory), users=user_repo, videos=video_repo
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(videos_router)
    app.include_router(engagement_router)
