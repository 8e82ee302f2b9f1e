"""Remote object storage clients."""

from __future__ import annotations

import hashlib
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import httpx

from ..config import StorageSettings
from .media_models import RemoteUpload, ResourceKind

logger = logging.getLogger(__name__)


class RemoteStorageError(Exception):
    """Raised when the storage service rejects or fails a request."""


class RemoteStorageClient(ABC):
    """Base interface for remote storage backends."""

    @abstractmethod
    async def upload(self, path: Path, kind: ResourceKind) -> RemoteUpload:
        """Upload ``path`` and return the confirmed remote reference."""

    @abstractmethod
    async def delete(self, remote_id: str, kind: ResourceKind) -> bool:
        """Delete a remote asset; ``False`` when the service did not remove it."""


def kind_from_reference(reference: str) -> ResourceKind:
    """Infer the resource kind from the delivery URL layout."""
    if "/video/upload/" in reference:
        return ResourceKind.VIDEO
    return ResourceKind.IMAGE


def remote_id_from_reference(reference: str) -> str:
    """Derive the remote public id from a delivery URL.

    ``https://res.cloudinary.com/demo/image/upload/v17/folder/cat.jpg`` maps
    to ``folder/cat``; anything without an ``/upload/`` segment falls back to
    the last path component without its extension.
    """
    path = urlparse(reference).path or reference
    marker = "/upload/"
    if marker in path:
        tail = path.split(marker, 1)[1]
        segments = [segment for segment in tail.split("/") if segment]
        if segments and segments[0].startswith("v") and segments[0][1:].isdigit():
            segments = segments[1:]
        tail = "/".join(segments)
    else:
        tail = path.rstrip("/").rsplit("/", 1)[-1]
    head, _, last = tail.rpartition("/")
    stem = last.rsplit(".", 1)[0] if "." in last else last
    return f"{head}/{stem}" if head else stem


def _sign(params: dict[str, Any], api_secret: str) -> str:
    payload = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{payload}{api_secret}".encode("utf-8")).hexdigest()


@dataclass(slots=True)
class CloudinaryStorageClient(RemoteStorageClient):
    """Talk to Cloudinary's signed upload/destroy REST endpoints."""

    cloud_name: str
    api_key: str
    api_secret: str
    timeout_seconds: float = 30.0
    api_base: str = "https://api.cloudinary.com/v1_1"
    log: logging.Logger = field(default_factory=lambda: logger)

    @classmethod
    def from_settings(cls, settings: StorageSettings) -> "CloudinaryStorageClient":
        return cls(
            cloud_name=settings.cloud_name,
            api_key=settings.api_key,
            api_secret=settings.api_secret,
            timeout_seconds=settings.timeout_seconds,
        )

    async def upload(self, path: Path, kind: ResourceKind) -> RemoteUpload:
        url = self._endpoint(kind, "upload")
        form = self._signed({"timestamp": str(int(time.time()))})
        with path.open("rb") as handle:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(url, data=form, files={"file": (path.name, handle)})
        if response.status_code != 200:
            raise RemoteStorageError(f"upload failed with status {response.status_code}")
        body = response.json()
        reference = body.get("secure_url") or body.get("url")
        remote_id = body.get("public_id")
        if not reference or not remote_id:
            raise RemoteStorageError("upload response missing secure_url or public_id")
        confirmed = body.get("resource_type") or kind.value
        self.log.info(
            "storage.upload.completed",
            extra={"remote_id": remote_id, "kind": confirmed, "bytes": body.get("bytes")},
        )
        duration = body.get("duration")
        return RemoteUpload(
            reference=reference,
            remote_id=remote_id,
            kind=ResourceKind(confirmed),
            duration=float(duration) if duration is not None else None,
        )

    async def delete(self, remote_id: str, kind: ResourceKind) -> bool:
        url = self._endpoint(kind, "destroy")
        form = self._signed({"public_id": remote_id, "timestamp": str(int(time.time()))})
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            response = await client.post(url, data=form)
        if response.status_code != 200:
            raise RemoteStorageError(f"destroy failed with status {response.status_code}")
        result = response.json().get("result")
        self.log.info("storage.delete.completed", extra={"remote_id": remote_id, "result": result})
        return result == "ok"

    def _endpoint(self, kind: ResourceKind, action: str) -> str:
        if not self.cloud_name:
            raise RemoteStorageError("CLOUDINARY_CLOUD_NAME is not configured")
        return f"{self.api_base}/{self.cloud_name}/{kind.value}/{action}"

    def _signed(self, params: dict[str, Any]) -> dict[str, Any]:
        signed = dict(params)
        signed["signature"] = _sign(params, self.api_secret)
        signed["api_key"] = self.api_key
        return signed


__all__ = [
    "CloudinaryStorageClient",
    "RemoteStorageClient",
    "RemoteStorageError",
    "kind_from_reference",
    "remote_id_from_reference",
]
