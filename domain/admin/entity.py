"""
管理员领域实体
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from domain.common.exceptions import DomainValidationException


@dataclass
class AdminUser:
    """管理员账户 - 创建后不修改、不删除"""

    id: Optional[int]
    username: str
    hashed_password: str

    def __post_init__(self):
        if not self.username:
            raise DomainValidationException("Username is required", field="username")
        if not self.hashed_password:
            raise DomainValidationException("Password hash is required", field="password")


@dataclass
class AdminSession:
    """服务端会话记录，只保存令牌哈希"""

    jti: str
    user_id: int
    token_hash: str
    expires_at: datetime
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if self.expires_at.tzinfo is None:
            self.expires_at = self.expires_at.replace(tzinfo=timezone.utc)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return self.expires_at <= now
