"""
Payment gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
"""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from application.dtos.payments import (
    CreatePayment,
    PaymentIntent,
    QueryPayment,
    WebhookEvent,
)


@runtime_checkable
class PaymentGateway(Protocol):
    """Gateway protocol for the payment authorization service.

    Calls are single-attempt; failures surface as PaymentProviderError.
    """

    provider: str

    async def create_payment(self, req: CreatePayment) -> PaymentIntent: ...

    async def query_payment(self, query: QueryPayment) -> PaymentIntent: ...

    def parse_webhook(self, headers: dict[str, Any], body: bytes) -> WebhookEvent: ...
