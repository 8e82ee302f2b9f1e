from __future__ import annotations

import os
from collections.abc import Callable
from datetime import timedelta
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.vidhub.auth.auth_service import CredentialIssuer
from src.vidhub.db.db_init import init_db
from src.vidhub.media.media_models import StagedUpload
from src.vidhub.security.passwords import hash_password
from src.vidhub.users.users_models import UserRecord
from src.vidhub.users.users_repository import UserRepository

os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret")

ACCESS_SECRET = "test-access-secret"
REFRESH_SECRET = "test-refresh-secret"
FAST_ITERATIONS = 1_000


@pytest.fixture
def session_factory() -> sessionmaker[Session]:
    engine = create_engine(
        "sqlite://",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def user_repo(session_factory) -> UserRepository:
    return UserRepository(session_factory)


@pytest.fixture
def make_user(user_repo) -> Callable[..., UserRecord]:
    def _make(
        username: str = "alice",
        *,
        password: str = "secret",
        avatar: str | None = None,
        cover_image: str | None = None,
    ) -> UserRecord:
        return user_repo.create_user(
            username=username,
            email=f"{username}@example.com",
            full_name=username.title(),
            password_hash=hash_password(password, iterations=FAST_ITERATIONS),
            avatar=avatar,
            cover_image=cover_image,
        )

    return _make


@pytest.fixture
def issuer(user_repo) -> CredentialIssuer:
    return CredentialIssuer(
        users=user_repo,
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=10),
    )


@pytest.fixture
def make_staged(tmp_path: Path) -> Callable[..., StagedUpload]:
    def _make(name: str = "upload.jpg", data: bytes = b"bytes") -> StagedUpload:
        staging = tmp_path / "staging"
        staging.mkdir(exist_ok=True)
        path = staging / name
        path.write_bytes(data)
        return StagedUpload(path=path, filename=name, content_type="image/jpeg")

    return _make
