"""
管理员应用服务 - 账户引导注册、添加、登录与登出
"""
from typing import Callable, Optional

import anyio

from application.dto import CredentialsDTO
from application.services.session_service import SessionTokenService
from domain.admin.entity import AdminUser
from domain.admin.service import PasswordService
from domain.common.exceptions import (
    InvalidCredentialsException,
    MissingCredentialsException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from core.exceptions import UnauthorizedException
from core.logging_config import get_logger


logger = get_logger(__name__)

# 未知用户名时也做一次等价的哈希校验，避免响应时间泄露用户是否存在
_DUMMY_PASSWORD_HASH = PasswordService.hash_password("dummy-password-for-timing")


class AdminApplicationService:
    """管理员应用服务"""

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        session_service: SessionTokenService,
    ):
        self._uow_factory = uow_factory
        self.session_service = session_service

    @staticmethod
    def _require_credentials(creds: CredentialsDTO) -> tuple[str, str]:
        username = (creds.username or "").strip()
        password = creds.password or ""
        if not username or not password:
            raise MissingCredentialsException()
        return username, password

    async def account_count(self) -> int:
        async with self._uow_factory(readonly=True) as uow:
            return await uow.admin_user_repository.count_all()

    async def is_setup(self) -> bool:
        return await self.account_count() > 0

    async def create_account(self, username: str, password: str) -> AdminUser:
        """创建管理员账户；用户名重复抛出 UsernameAlreadyExistsException"""
        # PBKDF2 是 CPU 密集运算，放到工作线程避免阻塞事件循环
        hashed = await anyio.to_thread.run_sync(PasswordService.hash_password, password)
        async with self._uow_factory() as uow:
            user = await uow.admin_user_repository.create(
                AdminUser(id=None, username=username, hashed_password=hashed)
            )
        return user

    async def register(self, creds: CredentialsDTO, current_admin: Optional[AdminUser] = None) -> AdminUser:
        """
        注册管理员

        尚无任何账户时允许匿名注册（首个账户引导）；之后必须已登录。
        计数与写入之间不加锁，并发引导可能创建多个首账户。
        """
        username, password = self._require_credentials(creds)
        if current_admin is None and await self.account_count() > 0:
            raise UnauthorizedException("Unauthorized. Please log in as admin to add new users.")
        return await self.create_account(username, password)

    async def add_account(self, creds: CredentialsDTO) -> AdminUser:
        username, password = self._require_credentials(creds)
        return await self.create_account(username, password)

    async def verify_credentials(self, username: str, password: str) -> AdminUser:
        async with self._uow_factory(readonly=True) as uow:
            user = await uow.admin_user_repository.get_by_username(username)

        if user is None:
            await anyio.to_thread.run_sync(PasswordService.verify_password, password, _DUMMY_PASSWORD_HASH)
            logger.info("admin_login_failed", reason="unknown_user")
            raise InvalidCredentialsException()
        if not await anyio.to_thread.run_sync(PasswordService.verify_password, password, user.hashed_password):
            logger.info("admin_login_failed", reason="bad_password", user_id=user.id)
            raise InvalidCredentialsException()
        return user

    async def login(self, creds: CredentialsDTO) -> str:
        """校验凭证并签发会话令牌"""
        username, password = self._require_credentials(creds)
        user = await self.verify_credentials(username, password)
        token = await self.session_service.issue(user)
        logger.info("admin_login_succeeded", user_id=user.id)
        return token

    async def logout(self, token: Optional[str]) -> None:
        await self.session_service.revoke(token)

    async def authenticate_session(self, token: Optional[str]) -> Optional[AdminUser]:
        return await self.session_service.resolve(token)
