"""
捐赠仓储接口 - 定义数据访问的抽象接口
"""
from abc import ABC, abstractmethod
from typing import List

from .entity import Donation


class DonationRepository(ABC):
    """捐赠仓储抽象接口；写失败统一抛出 PersistenceException"""

    @abstractmethod
    async def create(self, donation: Donation) -> Donation:
        """创建捐赠记录，返回带 id 与 created_at 的实体"""
        pass

    @abstractmethod
    async def list_recent(self) -> List[Donation]:
        """按创建时间倒序获取全部捐赠"""
        pass

    @abstractmethod
    async def update_status(self, donation_id: int, status: str) -> bool:
        """按ID更新支付状态，返回是否命中记录"""
        pass

    @abstractmethod
    async def update_status_by_payment_intent(self, payment_intent_id: str, status: str) -> int:
        """按 PaymentIntent ID 更新支付状态，返回受影响行数"""
        pass
