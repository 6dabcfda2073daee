"""
捐赠对账应用服务 - 维护 PaymentIntent 与本地捐赠记录的映射及状态同步

三条写入路径：
1. 创建：先向 Stripe 申请授权，成功后写入 pending 记录
2. Webhook：payment_intent.succeeded 事件把记录置为 succeeded
3. 对账：管理员列表请求时逐条拉取 pending 记录的上游状态

状态按上游原样镜像，后写覆盖先写；不跨越 “读 -> 调用 Stripe -> 写” 加锁。
"""
from __future__ import annotations

from typing import Any, Callable, List

from application.dto import DonationCreateDTO
from application.dtos.payments import CreatePayment, QueryPayment, WebhookEvent
from application.ports.payment_gateway import PaymentGateway
from domain.common.exceptions import MissingDonationFieldsException, PersistenceException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.donation.entity import Donation, DonationStatus, to_minor_units
from core.logging_config import get_logger


logger = get_logger(__name__)

PAYMENT_SUCCEEDED_EVENT = "payment_intent.succeeded"


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class DonationLedgerService:
    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        gateway: PaymentGateway,
        *,
        currency: str = "usd",
    ) -> None:
        self._uow_factory = uow_factory
        self.gateway = gateway
        self.currency = currency

    async def record_donation_attempt(self, data: DonationCreateDTO) -> str:
        """创建支付授权并记录 pending 捐赠，返回前端确认用的 client secret。

        校验失败时不会调用 Stripe，也不会写库。若授权成功而写库失败，
        上游授权将成为孤儿（不回滚、不自动补偿），异常照常抛给调用方。
        """
        email = (data.email or "").strip()
        if not data.donation_amount or not email:
            raise MissingDonationFieldsException()
        amount_cents = to_minor_units(data.donation_amount)

        intent = await self.gateway.create_payment(
            CreatePayment(amount_minor=amount_cents, currency=self.currency, receipt_email=email)
        )

        donation = Donation(
            id=None,
            amount_cents=amount_cents,
            email=email,
            payment_intent_id=intent.intent_id,
            status=DonationStatus.PENDING.value,
            first_name=_blank_to_none(data.first_name),
            last_name=_blank_to_none(data.last_name),
            card_name=_blank_to_none(data.card_name),
            country=_blank_to_none(data.country),
            postal_code=_blank_to_none(data.postal_code),
        )
        try:
            async with self._uow_factory() as uow:
                created = await uow.donation_repository.create(donation)
        except PersistenceException:
            logger.error(
                "donation_orphan_authorization",
                payment_intent_id=intent.intent_id,
                amount=amount_cents,
            )
            raise

        logger.info(
            "donation_recorded",
            donation_id=created.id,
            payment_intent_id=created.payment_intent_id,
            amount=created.amount_cents,
            currency=self.currency,
        )
        return intent.client_secret or ""

    def parse_webhook(self, headers: dict[str, Any], body: bytes) -> WebhookEvent:
        event = self.gateway.parse_webhook(headers, body)
        logger.info(
            "payment_webhook_parsed",
            provider=self.gateway.provider,
            event_type=event.type,
            event_id=event.id,
            verified=event.verified,
        )
        return event

    async def apply_webhook_event(self, event: WebhookEvent) -> bool:
        """应用 webhook 事件，返回是否修改了记录。

        只处理 payment_intent.succeeded；其它类型直接忽略。
        不校验事件时间顺序，迟到的事件同样会覆盖当前状态。
        """
        if event.type != PAYMENT_SUCCEEDED_EVENT:
            logger.info("webhook_event_ignored", event_type=event.type, event_id=event.id)
            return False

        payment_intent_id = event.object_id
        if not payment_intent_id:
            logger.warning("webhook_event_missing_object_id", event_id=event.id)
            return False

        async with self._uow_factory() as uow:
            updated = await uow.donation_repository.update_status_by_payment_intent(
                payment_intent_id, DonationStatus.SUCCEEDED.value
            )

        if not updated:
            # 可能是写库失败留下的孤儿授权
            logger.warning("webhook_donation_not_found", payment_intent_id=payment_intent_id, event_id=event.id)
            return False
        logger.info("webhook_donation_updated", payment_intent_id=payment_intent_id, rows=updated)
        return True

    async def handle_webhook(self, headers: dict[str, Any], body: bytes) -> WebhookEvent:
        event = self.parse_webhook(headers, body)
        await self.apply_webhook_event(event)
        return event

    async def list_and_reconcile(self) -> List[Donation]:
        """按创建时间倒序返回全部捐赠，并同步刷新其中 pending 记录的状态。

        每条记录独立处理：单条拉取或写库失败只记录日志，不影响其它记录。
        """
        async with self._uow_factory(readonly=True) as uow:
            donations = await uow.donation_repository.list_recent()

        for donation in donations:
            if not donation.is_pending:
                continue
            try:
                await self._refresh_status(donation)
            except Exception as exc:
                logger.error(
                    "donation_reconcile_failed",
                    donation_id=donation.id,
                    payment_intent_id=donation.payment_intent_id,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
        return donations

    async def _refresh_status(self, donation: Donation) -> bool:
        intent = await self.gateway.query_payment(QueryPayment(intent_id=donation.payment_intent_id))
        if intent.status == donation.status:
            return False
        async with self._uow_factory() as uow:
            await uow.donation_repository.update_status(donation.id, intent.status)
        previous = donation.status
        donation.apply_status(intent.status)
        logger.info(
            "donation_reconciled",
            donation_id=donation.id,
            payment_intent_id=donation.payment_intent_id,
            previous_status=previous,
            status=donation.status,
        )
        return True
