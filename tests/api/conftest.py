from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.vidhub.config import AppConfig, MediaPaths, StorageSettings, TokenSettings
from src.vidhub.db.db_init import init_db
from src.vidhub.main import create_app

from tests.conftest import ACCESS_SECRET, FAST_ITERATIONS, REFRESH_SECRET
from tests.mocks.storage import FakeStorageClient

PASSWORD = "hunter22"


@pytest.fixture
def api_config(tmp_path) -> AppConfig:
    engine = create_engine(
        "sqlite://",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    media = MediaPaths(root=tmp_path / "media", staging=tmp_path / "media" / "staging")
    return AppConfig(
        media_paths=media,
        tokens=TokenSettings(
            access_secret=ACCESS_SECRET,
            refresh_secret=REFRESH_SECRET,
            access_ttl=timedelta(minutes=15),
            refresh_ttl=timedelta(days=10),
        ),
        storage=StorageSettings(cloud_name="demo", api_key="k", api_secret="s", timeout_seconds=5),
        database_url="sqlite://",
        engine=engine,
        session_factory=sessionmaker(bind=engine, expire_on_commit=False),
        publish_on_upload=True,
    )


@pytest.fixture
def storage() -> FakeStorageClient:
    return FakeStorageClient()


@pytest.fixture
def client(api_config, storage) -> TestClient:
    app = create_app(api_config, storage=storage)
    app.state.account_service.password_iterations = FAST_ITERATIONS
    return TestClient(app)


@pytest.fixture
def register(client):
    def _register(username: str = "mulder", *, cover: bool = False):
        files = {"avatar": ("avatar.png", b"avatar-bytes", "image/png")}
        if cover:
            files["coverImage"] = ("cover.png", b"cover-bytes", "image/png")
        return client.post(
            "/api/v1/users/register",
            data={
                "fullName": username.title(),
                "email": f"{username}@example.com",
                "username": username,
                "password": PASSWORD,
            },
            files=files,
        )

    return _register


@pytest.fixture
def login(client, register):
    def _login(username: str = "mulder") -> dict:
        register(username)
        response = client.post(
            "/api/v1/users/login", json={"username": username, "password": PASSWORD}
        )
        assert response.status_code == 200
        return response.json()

    return _login