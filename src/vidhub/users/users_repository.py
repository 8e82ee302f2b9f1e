"""User repository backed by SQLAlchemy."""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from ..db.db_models import UserModel
from ..exceptions import NotFoundError, handle_sqlalchemy_errors
from ..media.media_models import ResourceKind
from .users_models import USER_ASSET_SLOTS, UserRecord


class UserRepository:
    """Provide access to user rows, including the refresh token and asset slots."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def create_user(
        self,
        *,
        username: str,
        email: str,
        full_name: str,
        password_hash: str,
        avatar: str | None = None,
        cover_image: str | None = None,
    ) -> UserRecord:
        now = datetime.utcnow()
        model = UserModel(
            id=uuid.uuid4().hex,
            username=username.lower(),
            email=email,
            full_name=full_name,
            password_hash=password_hash,
            avatar=avatar,
            cover_image=cover_image,
            created_at=now,
            updated_at=now,
        )
        with handle_sqlalchemy_errors(entity="user"), self._session_factory() as session:
            session.add(model)
            session.commit()
            return self._to_domain(model)

    def get_user(self, user_id: str) -> UserRecord:
        with handle_sqlalchemy_errors(entity="user"), self._session_factory() as session:
            model = session.get(UserModel, user_id)
            if model is None:
                raise NotFoundError(f"user '{user_id}' not found")
            return self._to_domain(model)

    def get_many(self, user_ids: Sequence[str]) -> list[UserRecord]:
        """Return users for ``user_ids`` in the given order, skipping unknown ids."""
        if not user_ids:
            return []
        with handle_sqlalchemy_errors(entity="user"), self._session_factory() as session:
            models = session.query(UserModel).filter(UserModel.id.in_(list(user_ids))).all()
            by_id = {model.id: self._to_domain(model) for model in models}
        return [by_id[user_id] for user_id in user_ids if user_id in by_id]

    def find_by_login(
        self, *, username: str | None = None, email: str | None = None
    ) -> UserRecord | None:
        """Return the user matching ``username`` or ``email``, if any."""
        clauses = []
        if username:
            clauses.append(UserModel.username == username.lower())
        if email:
            clauses.append(UserModel.email == email)
        if not clauses:
            return None
        with handle_sqlalchemy_errors(entity="user"), self._session_factory() as session:
            model = session.query(UserModel).filter(or_(*clauses)).first()
            return self._to_domain(model) if model is not None else None

    def set_refresh_token(self, user_id: str, token: str | None) -> None:
        """Overwrite the stored refresh token; ``None`` clears the session."""
        self._update_fields(user_id, refresh_token=token)

    def swap_refresh_token(self, user_id: str, *, expected: str, new: str) -> bool:
        """Replace the refresh token only while it still equals ``expected``.

        The comparison and the write happen in a single UPDATE statement, so
        of two callers presenting the same token at most one sees a match.
        """
        statement = (
            update(UserModel)
            .where(UserModel.id == user_id, UserModel.refresh_token == expected)
            .values(refresh_token=new, updated_at=datetime.utcnow())
        )
        with handle_sqlalchemy_errors(entity="user"), self._session_factory() as session:
            result = session.execute(statement)
            session.commit()
            return result.rowcount == 1

    def update_account(self, user_id: str, *, full_name: str | None, email: str | None) -> UserRecord:
        values: dict[str, Any] = {}
        if full_name:
            values["full_name"] = full_name
        if email:
            values["email"] = email
        if values:
            self._update_fields(user_id, **values)
        return self.get_user(user_id)

    def set_password_hash(self, user_id: str, password_hash: str) -> None:
        self._update_fields(user_id, password_hash=password_hash)

    def slot_kind(self, slot: str) -> ResourceKind:
        try:
            return USER_ASSET_SLOTS[slot]
        except KeyError as exc:
            raise NotFoundError(f"user asset slot '{slot}' not found") from exc

    def get_asset_reference(self, record_id: str, slot: str) -> str | None:
        self.slot_kind(slot)
        return getattr(self.get_user(record_id), slot)

    def set_asset_reference(self, record_id: str, slot: str, reference: str | None) -> None:
        self.slot_kind(slot)
        self._update_fields(record_id, **{slot: reference})

    def _update_fields(self, user_id: str, **values: Any) -> None:
        statement = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(updated_at=datetime.utcnow(), **values)
        )
        with handle_sqlalchemy_errors(entity="user"), self._session_factory() as session:
            result = session.execute(statement)
            if result.rowcount == 0:
                session.rollback()
                raise NotFoundError(f"user '{user_id}' not found")
            session.commit()

    @staticmethod
    def _to_domain(model: UserModel) -> UserRecord:
        return UserRecord(
            id=model.id,
            username=model.username,
            email=model.email,
            full_name=model.full_name,
            password_hash=model.password_hash,
            refresh_token=model.refresh_token,
            avatar=model.avatar,
            cover_image=model.cover_image,
            created_at=model.created_at,
        )
