"""Domain level exceptions and helpers for repository layers."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from sqlalchemy import exc as sa_exc

__all__ = [
    "AppError",
    "ValidationError",
    "Unauthorized",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "IssuanceError",
    "UploadError",
    "PersistenceError",
    "RepositoryError",
    "IntegrityConstraintViolation",
    "DatabaseOperationError",
    "handle_sqlalchemy_errors",
]


class AppError(Exception):
    """Base class for application specific errors."""


class ValidationError(AppError):
    """Raised when the caller supplied nothing usable; no side effects occurred."""


class Unauthorized(AppError):
    """Raised for missing, invalid, expired or reused credentials."""


class ForbiddenError(AppError):
    """Raised when an authenticated principal may not touch a record."""


class NotFoundError(AppError):
    """Raised when a record could not be located."""


class ConflictError(AppError):
    """Raised when a unique handle or email is already taken."""


class IssuanceError(AppError):
    """Raised when a token pair could not be minted or persisted."""


class UploadError(AppError):
    """Raised when the remote upload failed; the staged file is already gone."""


class PersistenceError(AppError):
    """Raised when the store write failed after a successful remote upload."""


class RepositoryError(AppError):
    """Base class for persistence layer failures."""


class IntegrityConstraintViolation(RepositoryError):
    """Raised when a database constraint is violated."""


class DatabaseOperationError(RepositoryError):
    """Raised for unexpected database errors."""


@dataclass(slots=True)
class _EntityContext:
    """Internal helper describing the entity for error messages."""

    entity: str | None = None

    def format(self, message: str) -> str:
        if self.entity:
            return f"{self.entity}: {message}"
        return message


def _translate_sqlalchemy_error(exc: Exception, *, context: _EntityContext) -> RepositoryError:
    if isinstance(exc, sa_exc.IntegrityError):
        return IntegrityConstraintViolation(context.format("integrity constraint violated"))
    if isinstance(exc, sa_exc.DBAPIError):
        return DatabaseOperationError(context.format("database operation failed"))
    return RepositoryError(context.format(str(exc)))


@contextmanager
def handle_sqlalchemy_errors(*, entity: str | None = None) -> Iterator[None]:
    """Translate SQLAlchemy errors into domain specific ones."""

    context = _EntityContext(entity)
    try:
        yield
    except (sa_exc.IntegrityError, sa_exc.DBAPIError) as exc:
        raise _translate_sqlalchemy_error(exc, context=context) from exc
