"""Session endpoints: login, logout and token refresh."""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Request, Response
from pydantic import BaseModel

from ..users.users_models import Principal
from ..users.users_schemas import UserResponse
from ..users.users_service import AccountService
from .auth_dependencies import (
    REFRESH_COOKIE,
    clear_token_cookies,
    get_credential_issuer,
    require_user,
    set_token_cookies,
)
from .auth_service import CredentialIssuer

router = APIRouter(prefix="/api/v1/users", tags=["auth"])


class LoginRequest(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str


class LoginResponse(BaseModel):
    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str | None = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


def get_account_service(request: Request) -> AccountService:
    try:
        return request.app.state.account_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("AccountService is not configured") from exc


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    response: Response,
    service: AccountService = Depends(get_account_service),
) -> LoginResponse:
    principal, pair = service.login(
        password=payload.password, username=payload.username, email=payload.email
    )
    set_token_cookies(response, pair)
    return LoginResponse(
        user=UserResponse.from_principal(principal),
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
    )


@router.post("/logout")
def logout(
    response: Response,
    principal: Principal = Depends(require_user),
    service: AccountService = Depends(get_account_service),
) -> dict[str, str]:
    service.logout(principal.id)
    clear_token_cookies(response)
    return {"status": "ok"}


@router.post("/refresh-token", response_model=TokenResponse)
def refresh_token(
    request: Request,
    response: Response,
    payload: RefreshRequest | None = Body(None),
    issuer: CredentialIssuer = Depends(get_credential_issuer),
) -> TokenResponse:
    presented = request.cookies.get(REFRESH_COOKIE) or (payload.refresh_token if payload else None)
    pair = issuer.rotate(presented)
    set_token_cookies(response, pair)
    return TokenResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)
