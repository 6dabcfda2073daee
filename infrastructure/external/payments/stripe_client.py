"""
Stripe PaymentIntents adapter using the official stripe-python SDK.

Notes on SDK usage:
- Module-level helpers (`stripe.PaymentIntent.create/retrieve`) are blocking;
  they run in a worker thread so the event loop stays responsive.
- Calls are single-attempt (`max_network_retries = 0`).
- Webhook verification uses `stripe.Webhook.construct_event` with the
  `Stripe-Signature` header. The event payload itself is taken from the
  raw body once the signature checks out.
"""
from __future__ import annotations

import json
from typing import Any, Optional

import stripe

from application.dtos.payments import (
    CreatePayment,
    PaymentIntent,
    QueryPayment,
    WebhookEvent,
)
from infrastructure.external.payments.base import BasePaymentClient
from infrastructure.external.payments.exceptions import (
    PaymentProviderError,
    PaymentSignatureError,
)
from core.settings import PaymentSettings, payment_settings
from core.logging_config import get_logger


logger = get_logger(__name__)

SIGNATURE_HEADER = "stripe-signature"


def _header(headers: dict[str, Any], name: str) -> Optional[str]:
    for key, value in (headers or {}).items():
        if key.lower() == name:
            return value
    return None


class StripeClient(BasePaymentClient):
    provider = "stripe"

    def __init__(self, settings: Optional[PaymentSettings] = None):
        self._settings = settings or payment_settings
        self._secret_key = self._settings.stripe.secret_key
        if self._secret_key:
            # Configure module-level key for compatibility across SDK variants
            stripe.api_key = self._secret_key
        else:
            logger.warning("stripe_secret_key_missing")
        stripe.max_network_retries = 0

    def _ensure_configured(self) -> None:
        if not self._secret_key:
            raise PaymentProviderError("STRIPE__SECRET_KEY not configured", provider=self.provider)

    def _to_intent(self, pi: Any) -> PaymentIntent:
        return PaymentIntent(
            intent_id=str(pi.id),
            status=str(pi.status),
            client_secret=getattr(pi, "client_secret", None),
            provider=self.provider,
            amount_minor=getattr(pi, "amount", None),
        )

    async def create_payment(self, req: CreatePayment) -> PaymentIntent:  # type: ignore[override]
        self._ensure_configured()
        params: dict[str, Any] = {
            "amount": req.amount_minor,
            "currency": req.currency,
        }
        if req.receipt_email:
            params["receipt_email"] = req.receipt_email

        try:
            pi = await self._call(stripe.PaymentIntent.create, **params)
        except Exception as exc:
            logger.error(
                "stripe_create_payment_failed",
                amount=req.amount_minor,
                currency=req.currency,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise PaymentProviderError(
                str(exc),
                provider=self.provider,
                provider_code=getattr(exc, "code", None),
            ) from exc

        intent = self._to_intent(pi)
        self._log("payment_intent_created", intent_id=intent.intent_id, status=intent.status)
        return intent

    async def query_payment(self, query: QueryPayment) -> PaymentIntent:  # type: ignore[override]
        self._ensure_configured()
        try:
            pi = await self._call(stripe.PaymentIntent.retrieve, query.intent_id)
        except Exception as exc:
            logger.warning(
                "stripe_query_payment_failed",
                intent_id=query.intent_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise PaymentProviderError(
                str(exc),
                provider=self.provider,
                provider_code=getattr(exc, "code", None),
                details={"intent_id": query.intent_id},
            ) from exc
        return self._to_intent(pi)

    def parse_webhook(self, headers: dict[str, Any], body: bytes) -> WebhookEvent:  # type: ignore[override]
        """
        Verify (when possible) and parse a webhook delivery.

        - webhook secret configured: signature must verify
        - no secret and require_signed_webhooks on: rejected
        - no secret and require_signed_webhooks off: payload trusted as-is
        """
        secret = self._settings.stripe.webhook_secret
        verified = False
        if secret:
            sig = _header(headers, SIGNATURE_HEADER)
            if not sig:
                raise PaymentSignatureError("Missing Stripe-Signature header", provider=self.provider)
            try:
                stripe.Webhook.construct_event(
                    payload=body,
                    sig_header=sig,
                    secret=secret,
                    tolerance=self._settings.webhook.tolerance_seconds,
                )
            except Exception as exc:
                logger.warning("stripe_webhook_signature_invalid", error=str(exc))
                raise PaymentSignatureError(f"Webhook Error: {exc}", provider=self.provider) from exc
            verified = True
        elif self._settings.stripe.require_signed_webhooks:
            raise PaymentSignatureError("Missing STRIPE__WEBHOOK_SECRET", provider=self.provider)
        else:
            logger.warning("stripe_webhook_unverified")

        try:
            event = json.loads(body)
        except (TypeError, ValueError) as exc:
            raise PaymentSignatureError(f"Webhook Error: {exc}", provider=self.provider) from exc
        if not isinstance(event, dict) or not event.get("type"):
            raise PaymentSignatureError("Webhook Error: malformed event", provider=self.provider)

        data = event.get("data")
        return WebhookEvent(
            id=str(event.get("id") or ""),
            type=str(event["type"]),
            provider=self.provider,
            data=data if isinstance(data, dict) else {},
            verified=verified,
        )
