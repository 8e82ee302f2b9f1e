"""Keep record asset slots in step with remote storage."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Protocol

import structlog

from ..exceptions import NotFoundError, PersistenceError, RepositoryError, UploadError, ValidationError
from .media_models import BestEffortResult, RemoteUpload, ResourceKind, StagedUpload
from .remote_storage import RemoteStorageClient, kind_from_reference, remote_id_from_reference
from .staged_upload import consume_staged, remove_staged

logger = structlog.get_logger(__name__)


class AssetRecordStore(Protocol):
    """Store owning records that expose named asset slots."""

    def slot_kind(self, slot: str) -> ResourceKind: ...

    def get_asset_reference(self, record_id: str, slot: str) -> str | None: ...

    def set_asset_reference(self, record_id: str, slot: str, reference: str | None) -> None: ...


def _swap_reference(store: AssetRecordStore, record_id: str, slot: str, reference: str) -> str | None:
    previous = store.get_asset_reference(record_id, slot)
    store.set_asset_reference(record_id, slot, reference)
    return previous


@dataclass(slots=True)
class AssetSynchronizer:
    """Upload staged files, swap slot references and retire replaced assets.

    The new asset is always confirmed live and persisted before the previous
    one is deleted. Deletion of replaced assets is best effort.
    """

    storage: RemoteStorageClient
    timeout_seconds: float = 30.0

    async def upload_asset(self, staged: StagedUpload | None, kind: ResourceKind) -> RemoteUpload:
        """Push a staged file to remote storage; the staged file is always removed."""
        if staged is None:
            raise ValidationError("file is missing")
        with consume_staged(staged) as path:
            try:
                uploaded = await asyncio.wait_for(
                    self.storage.upload(path, kind), timeout=self.timeout_seconds
                )
            except asyncio.TimeoutError as exc:
                logger.warning("assets.upload.timeout", path=str(path), kind=kind.value)
                raise UploadError("error while uploading file: timed out") from exc
            except Exception as exc:
                logger.warning("assets.upload.failed", path=str(path), kind=kind.value, error=str(exc))
                raise UploadError(f"error while uploading file: {exc}") from exc
        if uploaded is None or not uploaded.reference:
            raise UploadError("error while uploading file: no reference returned")
        logger.info("assets.upload.completed", reference=uploaded.reference, kind=uploaded.kind.value)
        return uploaded

    async def replace_asset(
        self,
        store: AssetRecordStore,
        record_id: str,
        slot: str,
        staged: StagedUpload | None,
    ) -> str:
        """Replace the asset held in ``slot`` and return the new reference."""
        if staged is None:
            raise ValidationError(f"{slot} file is missing")
        try:
            kind = store.slot_kind(slot)
        except Exception:
            remove_staged(staged)
            raise
        uploaded = await self.upload_asset(staged, kind)

        try:
            previous = await asyncio.to_thread(
                _swap_reference, store, record_id, slot, uploaded.reference
            )
        except (NotFoundError, RepositoryError) as exc:
            logger.error(
                "assets.replace.persist_failed",
                record_id=record_id,
                slot=slot,
                orphaned=uploaded.reference,
                error=str(exc),
            )
            raise PersistenceError(f"could not save new {slot} reference") from exc
        logger.info(
            "assets.replace.persisted",
            record_id=record_id,
            slot=slot,
            reference=uploaded.reference,
        )

        if previous and previous != uploaded.reference:
            await self.delete_asset(previous)
        return uploaded.reference

    async def delete_asset(self, reference: str | None) -> BestEffortResult:
        """Delete a remote asset by reference; failures are logged, never raised."""
        if not reference:
            return BestEffortResult.skipped()
        remote_id = remote_id_from_reference(reference)
        kind = kind_from_reference(reference)
        try:
            removed = await asyncio.wait_for(
                self.storage.delete(remote_id, kind), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning("assets.delete.failed", reference=reference, error="timed out")
            return BestEffortResult.failed(reference, "timed out")
        except Exception as exc:
            logger.warning("assets.delete.failed", reference=reference, error=str(exc))
            return BestEffortResult.failed(reference, str(exc))
        if not removed:
            logger.warning("assets.delete.failed", reference=reference, error="not removed")
            return BestEffortResult.failed(reference, "not removed")
        logger.info("assets.delete.completed", reference=reference, remote_id=remote_id, kind=kind.value)
        return BestEffortResult.succeeded(reference)


__all__ = ["AssetRecordStore", "AssetSynchronizer"]
