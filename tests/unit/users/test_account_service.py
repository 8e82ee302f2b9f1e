from __future__ import annotations

import threading

import pytest

from src.vidhub.exceptions import (
    ConflictError,
    DatabaseOperationError,
    NotFoundError,
    PersistenceError,
    Unauthorized,
    UploadError,
    ValidationError,
)
from src.vidhub.media.asset_sync import AssetSynchronizer
from src.vidhub.media.media_models import ResourceKind
from src.vidhub.security.passwords import hash_password, verify_password
from src.vidhub.users import users_service
from src.vidhub.users.users_service import AccountService

from tests.conftest import FAST_ITERATIONS
from tests.mocks.storage import FakeStorageClient


@pytest.fixture
def storage() -> FakeStorageClient:
    return FakeStorageClient()


@pytest.fixture
def accounts(user_repo, issuer, storage) -> AccountService:
    return AccountService(
        users=user_repo,
        issuer=issuer,
        assets=AssetSynchronizer(storage),
        password_iterations=FAST_ITERATIONS,
    )


@pytest.mark.asyncio
async def test_register_uploads_assets_and_stores_user(accounts, storage, user_repo, make_staged) -> None:
    avatar = make_staged("avatar.jpg")
    cover = make_staged("cover.jpg")

    principal = await accounts.register(
        full_name="Dana Scully",
        email="dana@example.com",
        username="Dana",
        password="trustno1",
        avatar=avatar,
        cover_image=cover,
    )

    assert principal.username == "dana"
    assert principal.avatar.endswith("asset-1.bin")
    assert principal.cover_image.endswith("asset-2.bin")
    assert [kind for _, kind, _ in storage.uploads] == [ResourceKind.IMAGE, ResourceKind.IMAGE]
    assert not avatar.path.exists()
    assert not cover.path.exists()
    stored = user_repo.get_user(principal.id)
    assert verify_password("trustno1", stored.password_hash)


@pytest.mark.asyncio
async def test_register_requires_avatar_and_cleans_cover(accounts, storage, make_staged) -> None:
    cover = make_staged("cover.jpg")

    with pytest.raises(ValidationError):
        await accounts.register(
            full_name="Fox",
            email="fox@example.com",
            username="fox",
            password="x",
            avatar=None,
            cover_image=cover,
        )

    assert storage.uploads == []
    assert not cover.path.exists()


@pytest.mark.asyncio
async def test_register_rejects_taken_username(accounts, make_user, make_staged, storage) -> None:
    make_user("fox")
    avatar = make_staged("avatar.jpg")

    with pytest.raises(ConflictError):
        await accounts.register(
            full_name="Fox",
            email="other@example.com",
            username="FOX",
            password="x",
            avatar=avatar,
        )

    assert storage.uploads == []
    assert not avatar.path.exists()


@pytest.mark.asyncio
async def test_register_cover_failure_retires_uploaded_avatar(user_repo, issuer, make_staged) -> None:
    class AvatarOnlyStorage(FakeStorageClient):
        async def upload(self, path, kind):
            if self.uploads:
                self.fail_upload = True
            return await super().upload(path, kind)

    storage = AvatarOnlyStorage(references=["https://cdn.test/demo/image/upload/v1/avatar.jpg"])
    accounts = AccountService(user_repo, issuer, AssetSynchronizer(storage), FAST_ITERATIONS)

    with pytest.raises(UploadError):
        await accounts.register(
            full_name="Walter",
            email="walter@example.com",
            username="walter",
            password="x",
            avatar=make_staged("avatar.jpg"),
            cover_image=make_staged("cover.jpg"),
        )

    assert storage.deletes == [("avatar", ResourceKind.IMAGE)]
    assert user_repo.find_by_login(username="walter") is None


def test_login_issues_tokens_for_valid_credentials(accounts, make_user, user_repo) -> None:
    user = make_user(password="pw")

    principal, pair = accounts.login(username="alice", password="pw")

    assert principal.id == user.id
    assert user_repo.get_user(user.id).refresh_token == pair.refresh_token


def test_login_by_email(accounts, make_user) -> None:
    user = make_user(password="pw")

    principal, _ = accounts.login(email="alice@example.com", password="pw")

    assert principal.id == user.id


def test_login_failures(accounts, make_user) -> None:
    make_user(password="pw")

    with pytest.raises(ValidationError):
        accounts.login(password="pw")
    with pytest.raises(NotFoundError):
        accounts.login(username="nobody", password="pw")
    with pytest.raises(Unauthorized):
        accounts.login(username="alice", password="wrong")


def test_logout_revokes_refresh_token(accounts, make_user, user_repo, issuer) -> None:
    user = make_user(password="pw")
    _, pair = accounts.login(username="alice", password="pw")

    accounts.logout(user.id)

    assert user_repo.get_user(user.id).refresh_token is None
    with pytest.raises(Unauthorized):
        issuer.rotate(pair.refresh_token)


def test_change_password(accounts, make_user, user_repo) -> None:
    user = make_user(password="old")

    with pytest.raises(ValidationError):
        accounts.change_password(user.id, old_password="nope", new_password="new")
    accounts.change_password(user.id, old_password="old", new_password="new")

    assert verify_password("new", user_repo.get_user(user.id).password_hash)


def test_update_account_conflict_on_taken_email(accounts, make_user) -> None:
    make_user("bob")
    alice = make_user("alice")

    with pytest.raises(ConflictError):
        accounts.update_account(alice.id, full_name=None, email="bob@example.com")
    with pytest.raises(ValidationError):
        accounts.update_account(alice.id, full_name=None, email=None)


@pytest.mark.asyncio
async def test_replace_profile_asset_returns_refreshed_principal(accounts, make_user, storage, make_staged) -> None:
    user = make_user(avatar="https://cdn.test/demo/image/upload/v1/old.jpg")

    principal = await accounts.replace_profile_asset(user.id, "avatar", make_staged())

    assert principal.avatar != user.avatar
    assert storage.deletes == [("old", ResourceKind.IMAGE)]


@pytest.mark.asyncio
async def test_register_store_failure_after_upload_is_persistence_error(
    accounts, storage, user_repo, make_staged, monkeypatch
) -> None:
    def broken_create(**_: object):
        raise DatabaseOperationError("disk full")

    monkeypatch.setattr(user_repo, "create_user", broken_create)
    avatar = make_staged("avatar.jpg")

    with pytest.raises(PersistenceError):
        await accounts.register(
            full_name="Walter Skinner",
            email="walter@example.com",
            username="walter",
            password="director",
            avatar=avatar,
        )

    assert len(storage.uploads) == 1
    assert storage.deletes == []
    assert not avatar.path.exists()


@pytest.mark.asyncio
async def test_register_cleans_staging_when_lookup_fails(
    accounts, storage, user_repo, make_staged, monkeypatch
) -> None:
    def broken_lookup(**_: object):
        raise DatabaseOperationError("database is locked")

    monkeypatch.setattr(user_repo, "find_by_login", broken_lookup)
    avatar = make_staged("avatar.jpg")
    cover = make_staged("cover.jpg")

    with pytest.raises(DatabaseOperationError):
        await accounts.register(
            full_name="Alex Krycek",
            email="alex@example.com",
            username="krycek",
            password="ratboy",
            avatar=avatar,
            cover_image=cover,
        )

    assert storage.uploads == []
    assert not avatar.path.exists()
    assert not cover.path.exists()


@pytest.mark.asyncio
async def test_register_hashes_password_off_the_event_loop(
    accounts, make_staged, monkeypatch
) -> None:
    seen: list[int] = []

    def tracking_hash(password: str, **kwargs: object) -> str:
        seen.append(threading.get_ident())
        return hash_password(password, **kwargs)

    monkeypatch.setattr(users_service, "hash_password", tracking_hash)

    await accounts.register(
        full_name="John Doggett",
        email="john@example.com",
        username="doggett",
        password="believer",
        avatar=make_staged("avatar.jpg"),
    )

    assert len(seen) == 1
    assert seen[0] != threading.get_ident()
