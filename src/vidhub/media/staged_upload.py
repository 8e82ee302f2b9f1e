"""Local staging of client uploads ahead of remote sync."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from fastapi import UploadFile

from ..config import MediaPaths
from .media_models import StagedUpload

CHUNK_SIZE = 1 * 1024 * 1024  # 1 MiB

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StagingArea:
    """Writes multipart uploads to ``MEDIA_ROOT/staging``."""

    paths: MediaPaths
    log: logging.Logger = field(default_factory=lambda: logger)

    async def stage(self, upload: UploadFile | None) -> StagedUpload | None:
        """Copy upload contents to staging; ``None`` when nothing was sent."""
        if upload is None or not upload.filename:
            return None
        self.paths.staging.mkdir(parents=True, exist_ok=True)
        target = self.paths.staging / f"{uuid.uuid4().hex}-{self._derive_filename(upload.filename)}"

        with target.open("wb") as sink:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                sink.write(chunk)
        self.log.info(
            "media.staged",
            extra={"path": str(target), "content_type": upload.content_type},
        )
        return StagedUpload(
            path=target, filename=upload.filename, content_type=upload.content_type
        )

    @staticmethod
    def _derive_filename(filename: str) -> str:
        name = Path(filename).name
        suffix = Path(name).suffix
        stem = Path(name).stem.strip().replace(" ", "_") or "upload"
        return f"{stem}{suffix}"


def remove_staged(staged: StagedUpload | None) -> None:
    """Delete a staged file, tolerating one that is already gone."""
    if staged is None:
        return
    try:
        staged.path.unlink(missing_ok=True)
    except OSError:
        logger.warning("media.staged.remove_failed", extra={"path": str(staged.path)}, exc_info=True)


@contextmanager
def consume_staged(staged: StagedUpload) -> Iterator[Path]:
    """Yield the staged path and delete the file once the block exits."""
    try:
        yield staged.path
    finally:
        remove_staged(staged)
