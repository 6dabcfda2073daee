"""
捐赠数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from sqlalchemy import Column, Integer, String, DateTime, Index
from datetime import datetime, timezone

from .base import Base


class DonationModel(Base):
    """
    捐赠数据库模型

    这是数据库表的映射，不包含业务逻辑
    所有业务规则都在 domain.donation.entity.Donation 中
    """
    __tablename__ = "donations"

    # 主键
    id = Column(Integer, primary_key=True, autoincrement=True)

    # 金额（最小货币单位，美分）
    donation_amount = Column(Integer, nullable=False, comment="捐赠金额（美分）")

    # 捐赠人信息
    email = Column(String(255), nullable=False, comment="邮箱")
    first_name = Column(String(100), nullable=True, comment="名")
    last_name = Column(String(100), nullable=True, comment="姓")
    card_name = Column(String(200), nullable=True, comment="持卡人姓名")
    country = Column(String(64), nullable=True, comment="账单国家")
    postal_code = Column(String(32), nullable=True, comment="账单邮编")

    # 支付授权
    payment_intent_id = Column(String(200), nullable=False, comment="Stripe PaymentIntent ID")
    payment_intent_status = Column(
        String(50),
        nullable=False,
        default="pending",
        comment="支付状态，按 Stripe 原样保存"
    )

    # 时间戳
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )

    # 索引
    __table_args__ = (
        Index("ix_donations_payment_intent_id", "payment_intent_id"),
        Index("ix_donations_status", "payment_intent_status"),
        Index("ix_donations_created_at", "created_at"),
    )

    def __repr__(self):
        return (
            f"<DonationModel(id={self.id}, amount={self.donation_amount}, "
            f"payment_intent_id='{self.payment_intent_id}', status='{self.payment_intent_status}')>"
        )
