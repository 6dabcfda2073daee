"""
Base payment client implementing shared concerns: thread offload and logging.

Concrete providers should subclass and implement provider-specific logic.
"""
from __future__ import annotations

import functools
from typing import Any, Callable, TypeVar

import anyio

from core.logging_config import get_logger
from application.dtos.payments import (
    CreatePayment,
    PaymentIntent,
    QueryPayment,
    WebhookEvent,
)
from application.ports.payment_gateway import PaymentGateway


logger = get_logger(__name__)

T = TypeVar("T")


class BasePaymentClient(PaymentGateway):
    provider: str = "base"

    async def _call(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a blocking SDK call in a worker thread (single attempt, no retry)."""
        return await anyio.to_thread.run_sync(functools.partial(fn, *args, **kwargs))

    # Default implementations raise to force override where needed
    async def create_payment(self, req: CreatePayment) -> PaymentIntent:  # type: ignore[override]
        raise NotImplementedError

    async def query_payment(self, query: QueryPayment) -> PaymentIntent:  # type: ignore[override]
        raise NotImplementedError

    def parse_webhook(self, headers: dict[str, Any], body: bytes) -> WebhookEvent:  # type: ignore[override]
        raise NotImplementedError

    def _log(self, event: str, **kwargs) -> None:
        logger.info(
            event,
            provider=self.provider,
            **kwargs,
        )
