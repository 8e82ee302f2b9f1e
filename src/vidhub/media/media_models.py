"""Media data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path


class ResourceKind(StrEnum):
    """Remote resource families; the storage API is addressed per kind."""

    IMAGE = "image"
    VIDEO = "video"


@dataclass(slots=True)
class StagedUpload:
    """Client-submitted bytes written to local staging before sync."""

    path: Path
    filename: str
    content_type: str | None = None


@dataclass(slots=True)
class RemoteUpload:
    """Confirmed result of a remote upload."""

    reference: str
    remote_id: str
    kind: ResourceKind
    duration: float | None = None


@dataclass(slots=True, frozen=True)
class BestEffortResult:
    """Outcome of a cleanup step whose failure is logged but never raised."""

    ok: bool
    reference: str | None = None
    error: str | None = None

    @classmethod
    def succeeded(cls, reference: str | None = None) -> "BestEffortResult":
        return cls(ok=True, reference=reference)

    @classmethod
    def failed(cls, reference: str | None, error: str) -> "BestEffortResult":
        return cls(ok=False, reference=reference, error=error)

    @classmethod
    def skipped(cls) -> "BestEffortResult":
        return cls(ok=True)
