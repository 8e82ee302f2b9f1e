from __future__ import annotations

import io
from pathlib import Path

import pytest
from fastapi import UploadFile

from src.vidhub.config import MediaPaths
from src.vidhub.media.staged_upload import StagingArea, consume_staged, remove_staged


def _paths(tmp_path: Path) -> MediaPaths:
    return MediaPaths(root=tmp_path, staging=tmp_path / "staging")


@pytest.mark.asyncio
async def test_stage_writes_upload_under_staging(tmp_path) -> None:
    area = StagingArea(_paths(tmp_path))
    upload = UploadFile(file=io.BytesIO(b"hello world"), filename="my photo.jpg")

    staged = await area.stage(upload)

    assert staged is not None
    assert staged.path.parent == tmp_path / "staging"
    assert staged.path.name.endswith("-my_photo.jpg")
    assert staged.path.read_bytes() == b"hello world"
    assert staged.filename == "my photo.jpg"


@pytest.mark.asyncio
async def test_stage_returns_none_without_file(tmp_path) -> None:
    area = StagingArea(_paths(tmp_path))

    assert await area.stage(None) is None
    assert await area.stage(UploadFile(file=io.BytesIO(b""), filename="")) is None
    assert not (tmp_path / "staging").exists()


@pytest.mark.asyncio
async def test_stage_strips_directory_components(tmp_path) -> None:
    area = StagingArea(_paths(tmp_path))
    upload = UploadFile(file=io.BytesIO(b"x"), filename="../../etc/passwd")

    staged = await area.stage(upload)

    assert staged is not None
    assert staged.path.parent == tmp_path / "staging"


def test_consume_staged_removes_file_even_on_error(make_staged) -> None:
    staged = make_staged()

    with pytest.raises(RuntimeError):
        with consume_staged(staged) as path:
            assert path.exists()
            raise RuntimeError("boom")

    assert not staged.path.exists()


def test_remove_staged_tolerates_missing_file(make_staged) -> None:
    staged = make_staged()
    staged.path.unlink()

    remove_staged(staged)
    remove_staged(None)

    assert not staged.path.exists()
