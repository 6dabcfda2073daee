"""
管理员仓储接口
"""
from abc import ABC, abstractmethod
from typing import Optional

from .entity import AdminUser, AdminSession


class AdminUserRepository(ABC):
    """管理员账户仓储抽象接口"""

    @abstractmethod
    async def count_all(self) -> int:
        """统计管理员数量"""
        pass

    @abstractmethod
    async def create(self, user: AdminUser) -> AdminUser:
        """创建管理员；用户名冲突抛出 UsernameAlreadyExistsException"""
        pass

    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional[AdminUser]:
        pass

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[AdminUser]:
        pass


class AdminSessionRepository(ABC):
    """管理员会话仓储抽象接口"""

    @abstractmethod
    async def create(self, session: AdminSession) -> AdminSession:
        pass

    @abstractmethod
    async def get_by_jti(self, jti: str) -> Optional[AdminSession]:
        pass

    @abstractmethod
    async def delete_by_jti(self, jti: str) -> bool:
        """删除会话，返回是否存在"""
        pass
