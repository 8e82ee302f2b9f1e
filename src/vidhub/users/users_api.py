"""HTTP routes for user accounts and profile assets."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status

from ..auth.auth_api import get_account_service
from ..auth.auth_dependencies import require_user
from ..media.staged_upload import StagingArea
from .users_models import Principal
from .users_schemas import ChangePasswordRequest, UpdateAccountRequest, UserResponse
from .users_service import AccountService

router = APIRouter(prefix="/api/v1/users", tags=["users"])


def get_staging_area(request: Request) -> StagingArea:
    try:
        return request.app.state.staging_area  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("StagingArea is not configured") from exc


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    full_name: str = Form(..., alias="fullName"),
    email: str = Form(...),
    username: str = Form(...),
    password: str = Form(...),
    avatar: UploadFile | None = File(None),
    cover_image: UploadFile | None = File(None, alias="coverImage"),
    staging: StagingArea = Depends(get_staging_area),
    service: AccountService = Depends(get_account_service),
) -> UserResponse:
    principal = await service.register(
        full_name=full_name,
        email=email,
        username=username,
        password=password,
        avatar=await staging.stage(avatar),
        cover_image=await staging.stage(cover_image),
    )
    return UserResponse.from_principal(principal)


@router.get("/current-user", response_model=UserResponse)
def current_user(principal: Principal = Depends(require_user)) -> UserResponse:
    return UserResponse.from_principal(principal)


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    principal: Principal = Depends(require_user),
    service: AccountService = Depends(get_account_service),
) -> dict[str, str]:
    service.change_password(
        principal.id, old_password=payload.old_password, new_password=payload.new_password
    )
    return {"status": "ok"}


@router.patch("/update-account", response_model=UserResponse)
def update_account(
    payload: UpdateAccountRequest,
    principal: Principal = Depends(require_user),
    service: AccountService = Depends(get_account_service),
) -> UserResponse:
    updated = service.update_account(
        principal.id, full_name=payload.full_name, email=payload.email
    )
    return UserResponse.from_principal(updated)


@router.patch("/avatar", response_model=UserResponse)
async def update_avatar(
    avatar: UploadFile | None = File(None),
    principal: Principal = Depends(require_user),
    staging: StagingArea = Depends(get_staging_area),
    service: AccountService = Depends(get_account_service),
) -> UserResponse:
    updated = await service.replace_profile_asset(principal.id, "avatar", await staging.stage(avatar))
    return UserResponse.from_principal(updated)


@router.patch("/cover-image", response_model=UserResponse)
async def update_cover_image(
    cover_image: UploadFile | None = File(None, alias="coverImage"),
    principal: Principal = Depends(require_user),
    staging: StagingArea = Depends(get_staging_area),
    service: AccountService = Depends(get_account_service),
) -> UserResponse:
    updated = await service.replace_profile_asset(
        principal.id, "cover_image", await staging.stage(cover_image)
    )
    return UserResponse.from_principal(updated)
