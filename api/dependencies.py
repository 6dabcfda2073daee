"""
API依赖项 - 服务装配与管理员会话认证
"""
from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends, Request

from application.ports.payment_gateway import PaymentGateway
from application.services.admin_service import AdminApplicationService
from application.services.donation_service import DonationLedgerService
from application.services.session_service import SessionTokenService
from core.config import settings
from core.exceptions import UnauthorizedException
from core.settings import payment_settings
from domain.admin.entity import AdminUser
from domain.common.unit_of_work import AbstractUnitOfWork
from infrastructure.database import AsyncSessionLocal
from infrastructure.external.payments import get_payment_gateway as build_payment_gateway
from infrastructure.unit_of_work import sqlalchemy_uow_factory


def get_uow_factory() -> Callable[..., AbstractUnitOfWork]:
    return sqlalchemy_uow_factory(AsyncSessionLocal)


@lru_cache(maxsize=1)
def get_payment_gateway() -> PaymentGateway:
    """进程级支付网关实例"""
    return build_payment_gateway()


def get_donation_service(
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> DonationLedgerService:
    return DonationLedgerService(uow_factory, gateway, currency=payment_settings.currency)


def get_session_service(
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
) -> SessionTokenService:
    return SessionTokenService(uow_factory)


def get_admin_service(
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
    session_service: SessionTokenService = Depends(get_session_service),
) -> AdminApplicationService:
    return AdminApplicationService(uow_factory, session_service)


def get_session_token(request: Request) -> Optional[str]:
    """从 Cookie 中读取会话令牌"""
    return request.cookies.get(settings.SESSION_COOKIE_NAME) or None


async def get_optional_admin(
    token: Optional[str] = Depends(get_session_token),
    service: AdminApplicationService = Depends(get_admin_service),
) -> Optional[AdminUser]:
    """当前登录的管理员；未登录或会话无效时为 None"""
    return await service.authenticate_session(token)


async def get_current_admin(
    admin: Optional[AdminUser] = Depends(get_optional_admin),
) -> AdminUser:
    """获取当前登录管理员，未登录返回 401"""
    if admin is None:
        raise UnauthorizedException()
    return admin
