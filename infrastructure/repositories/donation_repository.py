"""
捐赠仓储实现 - 使用SQLAlchemy实现数据访问
"""
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from domain.donation.entity import Donation
from domain.donation.repository import DonationRepository
from domain.common.exceptions import PersistenceException
from infrastructure.models.donation import DonationModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyDonationRepository(DonationRepository):
    """捐赠仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: DonationModel) -> Donation:
        """将数据库模型转换为领域实体"""
        return Donation(
            id=model.id,
            amount_cents=model.donation_amount,
            email=model.email,
            first_name=model.first_name,
            last_name=model.last_name,
            card_name=model.card_name,
            country=model.country,
            postal_code=model.postal_code,
            payment_intent_id=model.payment_intent_id,
            status=model.payment_intent_status,
            created_at=model.created_at,
        )

    def _to_model(self, entity: Donation) -> DonationModel:
        """将领域实体转换为数据库模型"""
        model = DonationModel(
            donation_amount=entity.amount_cents,
            email=entity.email,
            first_name=entity.first_name,
            last_name=entity.last_name,
            card_name=entity.card_name,
            country=entity.country,
            postal_code=entity.postal_code,
            payment_intent_id=entity.payment_intent_id,
            payment_intent_status=entity.status,
        )
        # 未赋值时交给列默认值
        if entity.id is not None:
            model.id = entity.id
        if entity.created_at is not None:
            model.created_at = entity.created_at
        return model

    async def create(self, donation: Donation) -> Donation:
        """创建捐赠记录"""
        try:
            db_donation = self._to_model(donation)
            self.session.add(db_donation)
            await self.session.flush()
            await self.session.refresh(db_donation)
        except SQLAlchemyError as exc:
            raise PersistenceException(
                "donation.create",
                details={"payment_intent_id": donation.payment_intent_id},
            ) from exc
        logger.info(
            "donation_created",
            donation_id=db_donation.id,
            payment_intent_id=db_donation.payment_intent_id,
            amount=db_donation.donation_amount,
        )
        return self._to_entity(db_donation)

    async def list_recent(self) -> List[Donation]:
        """按创建时间倒序获取全部捐赠（同一时间按ID倒序）"""
        try:
            result = await self.session.execute(
                select(DonationModel).order_by(
                    DonationModel.created_at.desc(),
                    DonationModel.id.desc(),
                )
            )
        except SQLAlchemyError as exc:
            raise PersistenceException("donation.list") from exc
        return [self._to_entity(d) for d in result.scalars().all()]

    async def update_status(self, donation_id: int, status: str) -> bool:
        """按ID更新支付状态"""
        try:
            result = await self.session.execute(
                update(DonationModel)
                .where(DonationModel.id == donation_id)
                .values(payment_intent_status=status)
            )
        except SQLAlchemyError as exc:
            raise PersistenceException(
                "donation.update_status", details={"donation_id": donation_id}
            ) from exc
        updated = result.rowcount > 0
        if updated:
            logger.info("donation_status_updated", donation_id=donation_id, status=status)
        return updated

    async def update_status_by_payment_intent(self, payment_intent_id: str, status: str) -> int:
        """按 PaymentIntent ID 更新支付状态"""
        try:
            result = await self.session.execute(
                update(DonationModel)
                .where(DonationModel.payment_intent_id == payment_intent_id)
                .values(payment_intent_status=status)
            )
        except SQLAlchemyError as exc:
            raise PersistenceException(
                "donation.update_status", details={"payment_intent_id": payment_intent_id}
            ) from exc
        return int(result.rowcount or 0)
