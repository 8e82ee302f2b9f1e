"""Reusable error primitives for API exception handling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from fastapi import Request, status
from fastapi.responses import JSONResponse

from ..exceptions import (
    AppError,
    ConflictError,
    ForbiddenError,
    IssuanceError,
    NotFoundError,
    PersistenceError,
    Unauthorized,
    UploadError,
    ValidationError,
)


@dataclass(slots=True)
class ApiError(Exception):
    """Structured application-level error for HTTP handlers."""

    status_code: int
    code: str
    message: str
    headers: Mapping[str, str] | None = None

    def to_response(self) -> JSONResponse:
        """Materialise the error into a ``JSONResponse`` instance."""

        return JSONResponse(
            status_code=self.status_code,
            content={"error": {"code": self.code, "message": self.message}},
            headers=dict(self.headers or {}),
        )


_DOMAIN_ERRORS: tuple[tuple[type[AppError], int, str], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST, "validation_error"),
    (Unauthorized, status.HTTP_401_UNAUTHORIZED, "unauthorized"),
    (ForbiddenError, status.HTTP_403_FORBIDDEN, "forbidden"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "not_found"),
    (ConflictError, status.HTTP_409_CONFLICT, "conflict"),
    (IssuanceError, status.HTTP_500_INTERNAL_SERVER_ERROR, "issuance_failed"),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR, "persistence_failed"),
    (UploadError, status.HTTP_502_BAD_GATEWAY, "upload_failed"),
)


def to_api_error(exc: AppError) -> ApiError:
    """Translate a domain error into its HTTP representation."""

    for error_type, status_code, code in _DOMAIN_ERRORS:
        if isinstance(exc, error_type):
            return ApiError(status_code, code, str(exc))
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", "internal error")


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    """Convert domain errors raised by services into JSON payloads."""

    return to_api_error(exc).to_response()


__all__ = [
    "ApiError",
    "app_error_handler",
    "to_api_error",
]
