import json

import pytest

from src.vidhub.api.errors import to_api_error
from src.vidhub.exceptions import (
    AppError,
    ConflictError,
    DatabaseOperationError,
    ForbiddenError,
    IssuanceError,
    NotFoundError,
    PersistenceError,
    Unauthorized,
    UploadError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("error", "status_code", "code"),
    [
        (ValidationError("bad"), 400, "validation_error"),
        (Unauthorized("no"), 401, "unauthorized"),
        (ForbiddenError("mine"), 403, "forbidden"),
        (NotFoundError("gone"), 404, "not_found"),
        (ConflictError("taken"), 409, "conflict"),
        (IssuanceError("mint"), 500, "issuance_failed"),
        (PersistenceError("save"), 500, "persistence_failed"),
        (UploadError("push"), 502, "upload_failed"),
    ],
)
def test_domain_errors_map_to_http(error: AppError, status_code: int, code: str) -> None:
    api_error = to_api_error(error)

    assert api_error.status_code == status_code
    assert api_error.code == code
    assert api_error.message == str(error)


def test_unmapped_errors_hide_details() -> None:
    response = to_api_error(DatabaseOperationError("user: database operation failed")).to_response()

    assert response.status_code == 500
    assert json.loads(response.body) == {
        "error": {"code": "internal_error", "message": "internal error"}
    }
