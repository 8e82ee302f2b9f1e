"""FastAPI application entry point."""

from fastapi import FastAPI

from .config import AppConfig, load_config
from .dependencies import include_routers
from .logging import configure_logging
from .media.remote_storage import RemoteStorageClient


def create_app(
    config: AppConfig | None = None, *, storage: RemoteStorageClient | None = None
) -> FastAPI:
    """Build FastAPI instance with configured dependencies."""
    configure_logging()
    cfg = config or load_config()
    app = FastAPI(title="VidHub")
    include_routers(app, cfg, storage=storage)
    return app
