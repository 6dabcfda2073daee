import json
from types import SimpleNamespace

import pytest


stripe = pytest.importorskip("stripe")

from application.dtos.payments import CreatePayment, QueryPayment
from core.settings import PaymentSettings, StripeSettings
from infrastructure.external.payments import get_payment_gateway
from infrastructure.external.payments.exceptions import PaymentProviderError, PaymentSignatureError
from infrastructure.external.payments.stripe_client import StripeClient


BODY = json.dumps({
    "id": "evt_1",
    "type": "payment_intent.succeeded",
    "data": {"object": {"id": "pi_123", "status": "succeeded"}},
}).encode()


def _settings(**stripe_kwargs) -> PaymentSettings:
    stripe_kwargs.setdefault("secret_key", "sk_test_123")
    return PaymentSettings(stripe=StripeSettings(**stripe_kwargs))


class _FakeWebhook:
    calls = []

    @staticmethod
    def construct_event(payload, sig_header, secret, tolerance=None):
        _FakeWebhook.calls.append((payload, sig_header, secret, tolerance))
        if sig_header != "t=1,v1=good":
            raise ValueError("No signatures found matching the expected signature for payload")
        return json.loads(payload)


@pytest.fixture(autouse=True)
def fake_webhook(monkeypatch):
    # Fake construct_event to bypass cryptography
    _FakeWebhook.calls = []
    monkeypatch.setattr(stripe, "Webhook", _FakeWebhook)
    return _FakeWebhook


def test_factory_returns_stripe_client():
    gw = get_payment_gateway("stripe", _settings())
    assert isinstance(gw, StripeClient)
    with pytest.raises(ValueError):
        get_payment_gateway("paypal", _settings())


def test_signed_webhook_verified(fake_webhook):
    gw = StripeClient(_settings(webhook_secret="whsec_test"))
    evt = gw.parse_webhook({"stripe-signature": "t=1,v1=good"}, BODY)

    assert evt.type == "payment_intent.succeeded"
    assert evt.provider == "stripe"
    assert evt.verified is True
    assert evt.object_id == "pi_123"
    assert set(evt.model_dump()) == {"id", "type", "provider", "data", "verified"}
    payload, sig, secret, tolerance = fake_webhook.calls[0]
    assert payload == BODY
    assert secret == "whsec_test"
    assert tolerance == 300


def test_bad_signature_rejected():
    gw = StripeClient(_settings(webhook_secret="whsec_test"))
    with pytest.raises(PaymentSignatureError) as exc_info:
        gw.parse_webhook({"Stripe-Signature": "t=1,v1=forged"}, BODY)
    assert exc_info.value.message.startswith("Webhook Error:")


def test_missing_signature_header_rejected(fake_webhook):
    gw = StripeClient(_settings(webhook_secret="whsec_test"))
    with pytest.raises(PaymentSignatureError):
        gw.parse_webhook({}, BODY)
    assert fake_webhook.calls == []


def test_unsigned_rejected_when_signing_required():
    gw = StripeClient(_settings(webhook_secret=None, require_signed_webhooks=True))
    with pytest.raises(PaymentSignatureError):
        gw.parse_webhook({}, BODY)


def test_unsigned_trusted_when_signing_not_required(fake_webhook):
    gw = StripeClient(_settings(webhook_secret=None, require_signed_webhooks=False))
    evt = gw.parse_webhook({}, BODY)

    assert evt.verified is False
    assert evt.object_id == "pi_123"
    assert fake_webhook.calls == []


@pytest.mark.parametrize("body", [b"not json", b"[]", b'{"id": "evt_1"}'])
def test_malformed_payload_rejected(body):
    gw = StripeClient(_settings(webhook_secret=None, require_signed_webhooks=False))
    with pytest.raises(PaymentSignatureError):
        gw.parse_webhook({}, body)


@pytest.mark.asyncio
async def test_create_payment_uses_minor_units(monkeypatch):
    captured = {}

    def fake_create(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(id="pi_9", status="requires_payment_method", client_secret="pi_9_secret", amount=kwargs["amount"])

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    gw = StripeClient(_settings())
    intent = await gw.create_payment(CreatePayment(amount_minor=1235, currency="USD", receipt_email="d@example.com"))

    assert captured == {"amount": 1235, "currency": "usd", "receipt_email": "d@example.com"}
    assert intent.intent_id == "pi_9"
    assert intent.client_secret == "pi_9_secret"
    assert intent.status == "requires_payment_method"


@pytest.mark.asyncio
async def test_query_payment_failure_wrapped(monkeypatch):
    def fake_retrieve(intent_id):
        raise stripe.APIConnectionError("connection reset")

    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", fake_retrieve)
    gw = StripeClient(_settings())
    with pytest.raises(PaymentProviderError) as exc_info:
        await gw.query_payment(QueryPayment(intent_id="pi_9"))
    assert exc_info.value.details["intent_id"] == "pi_9"


@pytest.mark.asyncio
async def test_missing_secret_key_is_provider_error():
    gw = StripeClient(_settings(secret_key=None))
    with pytest.raises(PaymentProviderError):
        await gw.create_payment(CreatePayment(amount_minor=100))
