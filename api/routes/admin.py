"""
管理后台路由 - 账户引导、登录/登出、捐赠列表（含对账）
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, Response

from api.dependencies import (
    get_admin_service,
    get_current_admin,
    get_donation_service,
    get_optional_admin,
    get_session_token,
)
from application.dto import (
    CredentialsDTO,
    DonationListDTO,
    DonationResponseDTO,
    SetupStatusDTO,
)
from application.services.admin_service import AdminApplicationService
from application.services.donation_service import DonationLedgerService
from core.config import settings
from core.response import MessageResponse, message_response
from domain.admin.entity import AdminUser


router = APIRouter(prefix="/admin-api", tags=["Admin"])


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        samesite="lax",
        secure=not settings.is_development,
    )


@router.get("/check-setup", summary="是否已存在管理员", response_model=SetupStatusDTO)
async def check_setup(service: AdminApplicationService = Depends(get_admin_service)):
    return SetupStatusDTO(setup=await service.is_setup())


@router.post("/register", summary="注册管理员（首个账户免登录）", response_model=MessageResponse)
async def register(
    creds: Optional[CredentialsDTO] = Body(default=None),
    current_admin: Optional[AdminUser] = Depends(get_optional_admin),
    service: AdminApplicationService = Depends(get_admin_service),
):
    await service.register(creds or CredentialsDTO(), current_admin)
    return message_response("Admin user registered successfully.")


@router.post("/login", summary="管理员登录", response_model=MessageResponse)
async def login(
    response: Response,
    creds: Optional[CredentialsDTO] = Body(default=None),
    service: AdminApplicationService = Depends(get_admin_service),
):
    token = await service.login(creds or CredentialsDTO())
    _set_session_cookie(response, token)
    return message_response("Login successful.")


@router.post("/logout", summary="管理员登出", response_model=MessageResponse)
async def logout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    service: AdminApplicationService = Depends(get_admin_service),
):
    await service.logout(token)
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        samesite="lax",
        secure=not settings.is_development,
    )
    return message_response("Logged out.")


@router.get("/donations", summary="捐赠列表（同步刷新 pending 状态）", response_model=DonationListDTO)
async def list_donations(
    _admin: AdminUser = Depends(get_current_admin),
    service: DonationLedgerService = Depends(get_donation_service),
):
    donations = await service.list_and_reconcile()
    return DonationListDTO(donations=[DonationResponseDTO.from_entity(d) for d in donations])


@router.post("/users", summary="添加管理员", response_model=MessageResponse)
async def add_user(
    creds: Optional[CredentialsDTO] = Body(default=None),
    _admin: AdminUser = Depends(get_current_admin),
    service: AdminApplicationService = Depends(get_admin_service),
):
    await service.add_account(creds or CredentialsDTO())
    return message_response("New admin user added successfully.")
