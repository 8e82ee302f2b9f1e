"""Account workflows: registration, login and profile assets."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from ..auth.auth_service import CredentialIssuer, TokenPair
from ..exceptions import (
    ConflictError,
    IntegrityConstraintViolation,
    NotFoundError,
    PersistenceError,
    RepositoryError,
    Unauthorized,
    UploadError,
    ValidationError,
)
from ..media.asset_sync import AssetSynchronizer
from ..media.media_models import ResourceKind, StagedUpload
from ..media.staged_upload import remove_staged
from ..security.passwords import DEFAULT_ITERATIONS, hash_password, verify_password
from .users_models import Principal
from .users_repository import UserRepository

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class AccountService:
    users: UserRepository
    issuer: CredentialIssuer
    assets: AssetSynchronizer
    password_iterations: int = DEFAULT_ITERATIONS

    async def register(
        self,
        *,
        full_name: str,
        email: str,
        username: str,
        password: str,
        avatar: StagedUpload | None,
        cover_image: StagedUpload | None = None,
    ) -> Principal:
        try:
            if any(not (value or "").strip() for value in (full_name, email, username, password)):
                raise ValidationError("all fields are required")
            existing = await asyncio.to_thread(
                self.users.find_by_login, username=username, email=email
            )
            if existing is not None:
                raise ConflictError("username or email already exists")
            if avatar is None:
                raise ValidationError("avatar file is required")
            password_hash = await asyncio.to_thread(
                hash_password, password, iterations=self.password_iterations
            )
        except Exception:
            remove_staged(avatar)
            remove_staged(cover_image)
            raise

        try:
            avatar_upload = await self.assets.upload_asset(avatar, ResourceKind.IMAGE)
        except UploadError:
            remove_staged(cover_image)
            raise
        cover_reference = None
        if cover_image is not None:
            try:
                cover_upload = await self.assets.upload_asset(cover_image, ResourceKind.IMAGE)
            except UploadError:
                await self.assets.delete_asset(avatar_upload.reference)
                raise
            cover_reference = cover_upload.reference

        try:
            record = await asyncio.to_thread(
                self.users.create_user,
                username=username.strip(),
                email=email.strip(),
                full_name=full_name.strip(),
                password_hash=password_hash,
                avatar=avatar_upload.reference,
                cover_image=cover_reference,
            )
        except IntegrityConstraintViolation as exc:
            await self.assets.delete_asset(avatar_upload.reference)
            await self.assets.delete_asset(cover_reference)
            raise ConflictError("username or email already exists") from exc
        except RepositoryError as exc:
            logger.error(
                "users.register.persist_failed",
                username=username,
                orphaned=[ref for ref in (avatar_upload.reference, cover_reference) if ref],
                error=str(exc),
            )
            raise PersistenceError("could not save registered user") from exc
        logger.info("users.registered", user_id=record.id, username=record.username)
        return record.to_principal()

    def login(
        self, *, password: str, username: str | None = None, email: str | None = None
    ) -> tuple[Principal, TokenPair]:
        if not (username or email):
            raise ValidationError("username or email is required")
        record = self.users.find_by_login(username=username, email=email)
        if record is None:
            raise NotFoundError("user does not exist")
        if not verify_password(password, record.password_hash):
            logger.warning("users.login.failure", user_id=record.id, reason="invalid_password")
            raise Unauthorized("invalid user credentials")
        pair = self.issuer.issue(record.id)
        logger.info("users.login.success", user_id=record.id)
        return record.to_principal(), pair

    def logout(self, principal_id: str) -> None:
        self.issuer.revoke(principal_id)

    def change_password(self, principal_id: str, *, old_password: str, new_password: str) -> None:
        record = self.users.get_user(principal_id)
        if not verify_password(old_password, record.password_hash):
            raise ValidationError("invalid old password")
        if not new_password:
            raise ValidationError("new password is required")
        encoded = hash_password(new_password, iterations=self.password_iterations)
        self.users.set_password_hash(principal_id, encoded)
        logger.info("users.password.changed", user_id=principal_id)

    def update_account(
        self, principal_id: str, *, full_name: str | None, email: str | None
    ) -> Principal:
        if not (full_name or email):
            raise ValidationError("full name or email is required")
        try:
            record = self.users.update_account(principal_id, full_name=full_name, email=email)
        except IntegrityConstraintViolation as exc:
            raise ConflictError("email already in use") from exc
        return record.to_principal()

    async def replace_profile_asset(
        self, principal_id: str, slot: str, staged: StagedUpload | None
    ) -> Principal:
        await self.assets.replace_asset(self.users, principal_id, slot, staged)
        record = await asyncio.to_thread(self.users.get_user, principal_id)
        return record.to_principal()
