"""Application configuration builder."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .db.db_init import init_db


@dataclass(slots=True)
class MediaPaths:
    root: Path
    staging: Path


@dataclass(slots=True)
class TokenSettings:
    access_secret: str
    refresh_secret: str
    access_ttl: timedelta
    refresh_ttl: timedelta


@dataclass(slots=True)
class StorageSettings:
    cloud_name: str
    api_key: str
    api_secret: str
    timeout_seconds: float


@dataclass(slots=True)
class AppConfig:
    media_paths: MediaPaths
    tokens: TokenSettings
    storage: StorageSettings
    database_url: str
    engine: Engine
    session_factory: sessionmaker[Session]
    publish_on_upload: bool


def _ensure_media_paths(paths: MediaPaths) -> None:
    paths.root.mkdir(parents=True, exist_ok=True)
    paths.staging.mkdir(parents=True, exist_ok=True)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def load_token_settings() -> TokenSettings:
    """Read signing secrets and lifetimes; secrets are mandatory."""
    access_secret = os.getenv("ACCESS_TOKEN_SECRET", "")
    refresh_secret = os.getenv("REFRESH_TOKEN_SECRET", "")
    if not access_secret or not refresh_secret:
        raise RuntimeError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must be configured")
    return TokenSettings(
        access_secret=access_secret,
        refresh_secret=refresh_secret,
        access_ttl=timedelta(minutes=int(os.getenv("ACCESS_TOKEN_TTL_MINUTES", 15))),
        refresh_ttl=timedelta(days=int(os.getenv("REFRESH_TOKEN_TTL_DAYS", 10))),
    )


def load_config() -> AppConfig:
    """Load configuration from environment (SQLite by default)."""
    root = Path(os.getenv("MEDIA_ROOT", "media"))
    media_paths = MediaPaths(root=root, staging=root / "staging")
    _ensure_media_paths(media_paths)

    storage = StorageSettings(
        cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME", ""),
        api_key=os.getenv("CLOUDINARY_API_KEY", ""),
        api_secret=os.getenv("CLOUDINARY_API_SECRET", ""),
        timeout_seconds=float(os.getenv("STORAGE_TIMEOUT_SECONDS", 30)),
    )

    database_url = os.getenv("DATABASE_URL", "sqlite:///vidhub.db")
    engine = create_engine(database_url, future=True)
    session_factory: sessionmaker[Session] = sessionmaker(bind=engine, expire_on_commit=False)

    init_db(engine)

    return AppConfig(
        media_paths=media_paths,
        tokens=load_token_settings(),
        storage=storage,
        database_url=database_url,
        engine=engine,
        session_factory=session_factory,
        publish_on_upload=_env_flag("VIDEO_PUBLISH_ON_UPLOAD", True),
    )
