"""
会话服务 - 管理员登录会话的签发、解析与撤销

会话令牌为签名 JWT，服务端另存一份（仅哈希）以支持登出即失效。
"""
from typing import Optional, Callable
from datetime import datetime, timedelta, timezone
import hashlib
import uuid

import jwt

from domain.admin.entity import AdminUser, AdminSession
from domain.common.unit_of_work import AbstractUnitOfWork
from core.config import settings
from core.logging_config import get_logger


logger = get_logger(__name__)

SESSION_TOKEN_TYPE = "admin_session"


class SessionTokenService:
    """管理员会话令牌服务"""

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        *,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        expire_days: Optional[int] = None,
    ):
        self._uow_factory = uow_factory
        self._secret_key = secret_key or settings.SECRET_KEY
        self._algorithm = algorithm or settings.ALGORITHM
        self._expire_days = expire_days if expire_days is not None else settings.SESSION_EXPIRE_DAYS

    @staticmethod
    def _hash_token(token: str) -> str:
        """计算令牌的SHA-256哈希"""
        return hashlib.sha256(token.encode()).hexdigest()

    def _decode(self, token: str) -> Optional[dict]:
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            logger.info("admin_session_token_expired")
            return None
        except jwt.InvalidTokenError:
            return None
        if payload.get("type") != SESSION_TOKEN_TYPE or not payload.get("jti"):
            return None
        return payload

    async def issue(self, user: AdminUser) -> str:
        """签发会话令牌并落库"""
        jti = str(uuid.uuid4())
        expire = datetime.now(timezone.utc) + timedelta(days=self._expire_days)
        to_encode = {
            "sub": str(user.id),
            "username": user.username,
            "jti": jti,
            "type": SESSION_TOKEN_TYPE,
            "exp": expire,
        }
        token = jwt.encode(to_encode, self._secret_key, algorithm=self._algorithm)

        async with self._uow_factory() as uow:
            await uow.admin_session_repository.create(
                AdminSession(
                    jti=jti,
                    user_id=user.id,
                    token_hash=self._hash_token(token),
                    expires_at=expire,
                )
            )
        logger.info("admin_session_issued", user_id=user.id, jti=jti)
        return token

    async def resolve(self, token: Optional[str]) -> Optional[AdminUser]:
        """解析会话令牌，返回对应管理员；任何校验失败均视为未登录"""
        if not token:
            return None
        payload = self._decode(token)
        if payload is None:
            return None

        async with self._uow_factory(readonly=True) as uow:
            session = await uow.admin_session_repository.get_by_jti(payload["jti"])
            if session is None or session.is_expired():
                return None
            if session.token_hash != self._hash_token(token):
                logger.warning("admin_session_hash_mismatch", jti=payload["jti"])
                return None
            return await uow.admin_user_repository.get_by_id(session.user_id)

    async def revoke(self, token: Optional[str]) -> bool:
        """撤销会话（幂等）；令牌无效时直接返回 False"""
        if not token:
            return False
        payload = self._decode(token)
        if payload is None:
            return False
        async with self._uow_factory() as uow:
            removed = await uow.admin_session_repository.delete_by_jti(payload["jti"])
        if removed:
            logger.info("admin_session_revoked", jti=payload["jti"], user_id=payload.get("sub"))
        return removed
