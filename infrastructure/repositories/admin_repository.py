"""
管理员与会话仓储实现 - 使用SQLAlchemy实现数据访问
"""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from domain.admin.entity import AdminUser, AdminSession
from domain.admin.repository import AdminUserRepository, AdminSessionRepository
from domain.common.exceptions import PersistenceException, UsernameAlreadyExistsException
from infrastructure.models.admin import AdminUserModel, AdminSessionModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyAdminUserRepository(AdminUserRepository):
    """管理员仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: AdminUserModel) -> AdminUser:
        return AdminUser(
            id=model.id,
            username=model.username,
            hashed_password=model.hashed_password,
        )

    async def count_all(self) -> int:
        """统计管理员数量"""
        try:
            result = await self.session.execute(select(func.count(AdminUserModel.id)))
        except SQLAlchemyError as exc:
            raise PersistenceException("admin_user.count") from exc
        return int(result.scalar_one())

    async def create(self, user: AdminUser) -> AdminUser:
        """创建管理员"""
        db_user = AdminUserModel(username=user.username, hashed_password=user.hashed_password)
        try:
            self.session.add(db_user)
            await self.session.flush()
            await self.session.refresh(db_user)
        except IntegrityError as exc:
            logger.warning("admin_user_create_conflict", username=user.username)
            raise UsernameAlreadyExistsException(user.username) from exc
        except SQLAlchemyError as exc:
            raise PersistenceException("admin_user.create") from exc
        logger.info("admin_user_created", user_id=db_user.id, username=db_user.username)
        return self._to_entity(db_user)

    async def get_by_id(self, user_id: int) -> Optional[AdminUser]:
        try:
            result = await self.session.execute(
                select(AdminUserModel).where(AdminUserModel.id == user_id)
            )
        except SQLAlchemyError as exc:
            raise PersistenceException("admin_user.get") from exc
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    async def get_by_username(self, username: str) -> Optional[AdminUser]:
        try:
            result = await self.session.execute(
                select(AdminUserModel).where(AdminUserModel.username == username)
            )
        except SQLAlchemyError as exc:
            raise PersistenceException("admin_user.get_by_username") from exc
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None


class SQLAlchemyAdminSessionRepository(AdminSessionRepository):
    """管理员会话仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: AdminSessionModel) -> AdminSession:
        return AdminSession(
            id=model.id,
            jti=model.jti,
            user_id=model.user_id,
            token_hash=model.token_hash,
            expires_at=model.expires_at,
            created_at=model.created_at,
        )

    async def create(self, session: AdminSession) -> AdminSession:
        """创建会话记录"""
        db_session = AdminSessionModel(
            jti=session.jti,
            user_id=session.user_id,
            token_hash=session.token_hash,
            expires_at=session.expires_at,
        )
        try:
            self.session.add(db_session)
            await self.session.flush()
            await self.session.refresh(db_session)
        except SQLAlchemyError as exc:
            raise PersistenceException("admin_session.create") from exc
        logger.info("admin_session_created", jti=session.jti, user_id=session.user_id)
        return self._to_entity(db_session)

    async def get_by_jti(self, jti: str) -> Optional[AdminSession]:
        try:
            result = await self.session.execute(
                select(AdminSessionModel).where(AdminSessionModel.jti == jti)
            )
        except SQLAlchemyError as exc:
            raise PersistenceException("admin_session.get") from exc
        db_session = result.scalar_one_or_none()
        return self._to_entity(db_session) if db_session else None

    async def delete_by_jti(self, jti: str) -> bool:
        try:
            result = await self.session.execute(
                delete(AdminSessionModel).where(AdminSessionModel.jti == jti)
            )
        except SQLAlchemyError as exc:
            raise PersistenceException("admin_session.delete") from exc
        deleted = result.rowcount > 0
        if deleted:
            logger.info("admin_session_deleted", jti=jti)
        return deleted
