"""
管理员与会话数据库模型
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index
from datetime import datetime, timezone

from .base import Base


class AdminUserModel(Base):
    """管理员账户表"""
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(150), unique=True, index=True, nullable=False, comment="用户名")
    # 列名沿用 password，存放的是哈希
    hashed_password = Column("password", String(255), nullable=False, comment="密码哈希")

    def __repr__(self):
        return f"<AdminUserModel(id={self.id}, username='{self.username}')>"


class AdminSessionModel(Base):
    """
    管理员会话表

    - 以 JWT 的 jti 为键
    - 存储令牌哈希而非明文
    - 登出即删除
    """
    __tablename__ = "admin_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    jti = Column(String(64), unique=True, index=True, nullable=False, comment="令牌唯一标识符")
    user_id = Column(
        Integer,
        ForeignKey("admin_users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="管理员ID"
    )
    token_hash = Column(String(128), nullable=False, comment="令牌SHA-256哈希")
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )
    expires_at = Column(DateTime(timezone=True), nullable=False, comment="过期时间")

    __table_args__ = (
        Index("ix_admin_sessions_expires", "expires_at"),
    )

    def __repr__(self):
        return f"<AdminSessionModel(id={self.id}, jti='{self.jti}', user_id={self.user_id})>"
