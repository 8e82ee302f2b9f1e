"""Common authentication dependencies for FastAPI routers."""

from __future__ import annotations

from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..exceptions import Unauthorized
from ..users.users_models import Principal
from .auth_service import CredentialIssuer, TokenPair

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"
COOKIE_OPTIONS = {"httponly": True, "secure": True, "samesite": "none"}

security = HTTPBearer(auto_error=False)


def get_credential_issuer(request: Request) -> CredentialIssuer:
    try:
        return request.app.state.credential_issuer  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("CredentialIssuer is not configured") from exc


def _access_token(
    request: Request, credentials: HTTPAuthorizationCredentials | None
) -> str | None:
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    if credentials is not None:
        return credentials.credentials
    return None


def require_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    issuer: CredentialIssuer = Depends(get_credential_issuer),
) -> Principal:
    principal = issuer.authenticate(_access_token(request, credentials))
    if principal is None:  # pragma: no cover - required mode raises instead
        raise Unauthorized("unauthorized request")
    return principal


def optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    issuer: CredentialIssuer = Depends(get_credential_issuer),
) -> Principal | None:
    return issuer.authenticate(_access_token(request, credentials), optional=True)


def set_token_cookies(response: Response, pair: TokenPair) -> None:
    response.set_cookie(ACCESS_COOKIE, pair.access_token, **COOKIE_OPTIONS)
    response.set_cookie(REFRESH_COOKIE, pair.refresh_token, **COOKIE_OPTIONS)


def clear_token_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_COOKIE, **COOKIE_OPTIONS)
    response.delete_cookie(REFRESH_COOKIE, **COOKIE_OPTIONS)


__all__ = [
    "ACCESS_COOKIE",
    "REFRESH_COOKIE",
    "clear_token_cookies",
    "get_credential_issuer",
    "optional_user",
    "require_user",
    "set_token_cookies",
]
