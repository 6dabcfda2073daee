"""
捐赠领域实体 - 捐赠记录与支付状态规则
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Optional, Union

from domain.common.exceptions import (
    DomainValidationException,
    InvalidDonationAmountException,
)


class DonationStatus(str, Enum):
    """常见的支付状态；实际取值以 Stripe 返回为准，不做封闭校验"""
    PENDING = "pending"                 # 已创建授权，等待确认
    SUCCEEDED = "succeeded"             # 支付成功
    FAILED = "failed"
    CANCELED = "canceled"
    REQUIRES_ACTION = "requires_action"


def to_minor_units(amount: Union[int, float, str, Decimal]) -> int:
    """主币种单位（美元）转换为最小单位（美分），按分四舍五入（half-up）

    12.345 -> 1235, 10 -> 1000
    """
    if isinstance(amount, bool):
        amount = int(amount)
    try:
        # 经 str 转换，避免二进制浮点误差（12.345 * 100 == 1234.4999...）
        major = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidDonationAmountException(amount) from exc
    if not major.is_finite():
        raise InvalidDonationAmountException(amount)
    try:
        # 超出 Decimal 精度（约 28 位）时 quantize 抛 InvalidOperation
        cents = int((major * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation as exc:
        raise InvalidDonationAmountException(amount) from exc
    if cents <= 0:
        raise InvalidDonationAmountException(amount)
    return cents


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区（SQLite 读回的是 naive datetime）"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class Donation:
    """
    捐赠记录 - 本地对 Stripe PaymentIntent 的镜像

    业务规则：
    1. 金额（美分）必须大于0，邮箱必填
    2. payment_intent_id 创建后不可变，唯一标识所跟踪的授权
    3. 初始状态为 pending，之后只由 webhook 或对账流程更新
    4. 状态按上游原样保存，后写覆盖先写，终态不设防护
    """

    id: Optional[int]
    amount_cents: int
    email: str
    payment_intent_id: str
    status: str = DonationStatus.PENDING.value
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    card_name: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if self.amount_cents is None or self.amount_cents <= 0:
            raise DomainValidationException(
                f"Donation amount must be positive: {self.amount_cents}",
                field="donation_amount",
            )
        if not self.email:
            raise DomainValidationException("Donation email is required", field="email")
        if isinstance(self.status, DonationStatus):
            self.status = self.status.value
        self.created_at = _ensure_utc(self.created_at)

    @property
    def is_pending(self) -> bool:
        return self.status == DonationStatus.PENDING.value

    def apply_status(self, status: str) -> bool:
        """同步上游状态；返回是否发生变化"""
        if isinstance(status, DonationStatus):
            status = status.value
        if status == self.status:
            return False
        self.status = status
        return True
