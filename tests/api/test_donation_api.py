import json

import pytest

from infrastructure.external.payments.exceptions import PaymentProviderError, PaymentSignatureError


async def _stored(uow_factory):
    async with uow_factory(readonly=True) as uow:
        return await uow.donation_repository.list_recent()


@pytest.mark.asyncio
async def test_create_payment_intent_returns_client_secret(client, gateway, uow_factory):
    resp = await client.post(
        "/create-payment-intent",
        json={
            "donationAmount": "12.345",
            "email": "donor@example.com",
            "firstName": "Ada",
            "lastName": "Lovelace",
            "cardName": "A Lovelace",
            "country": "UK",
            "postalCode": "NW1",
        },
    )

    assert resp.status_code == 200
    assert resp.json() == {"clientSecret": "pi_1_secret_abc"}
    donations = await _stored(uow_factory)
    assert donations[0].amount_cents == 1235
    assert donations[0].card_name == "A Lovelace"
    assert donations[0].postal_code == "NW1"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload, message",
    [
        ({"email": "donor@example.com"}, "Donation amount and email are required."),
        ({"donationAmount": 10}, "Donation amount and email are required."),
        ({"donationAmount": "ten", "email": "donor@example.com"}, "Invalid donation amount."),
        ({"donationAmount": -3, "email": "donor@example.com"}, "Invalid donation amount."),
        ({"donationAmount": 1e30, "email": "donor@example.com"}, "Invalid donation amount."),
    ],
)
async def test_create_payment_intent_validation(client, gateway, uow_factory, payload, message):
    resp = await client.post("/create-payment-intent", json=payload)

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == message
    assert body["type"] == "ValidationError"
    assert body["request_id"] == resp.headers["X-Request-ID"]
    assert body["timestamp"].endswith("Z")
    assert gateway.created == []
    assert await _stored(uow_factory) == []


@pytest.mark.asyncio
async def test_create_payment_intent_empty_body(client, gateway):
    resp = await client.post("/create-payment-intent")
    assert resp.status_code == 400
    assert resp.json()["error"] == "Donation amount and email are required."


@pytest.mark.asyncio
async def test_processor_failure_is_generic_500(client, gateway, uow_factory):
    gateway.fail_create = PaymentProviderError("Your card was declined: sk_live_leak", provider="stub")

    resp = await client.post("/create-payment-intent", json={"donationAmount": 5, "email": "d@example.com"})

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "An internal server error occurred."
    assert "details" not in body
    assert "sk_live_leak" not in resp.text
    assert await _stored(uow_factory) == []


@pytest.mark.asyncio
async def test_webhook_marks_donation_succeeded(client, uow_factory):
    await client.post("/create-payment-intent", json={"donationAmount": 5, "email": "d@example.com"})
    event = {"id": "evt_1", "type": "payment_intent.succeeded", "data": {"object": {"id": "pi_1"}}}

    resp = await client.post("/webhook", content=json.dumps(event), headers={"content-type": "application/json"})

    assert resp.status_code == 200
    assert resp.json() == {"received": True}
    donations = await _stored(uow_factory)
    assert donations[0].status == "succeeded"


@pytest.mark.asyncio
async def test_webhook_unknown_intent_acknowledged(client, uow_factory):
    event = {"id": "evt_2", "type": "payment_intent.succeeded", "data": {"object": {"id": "pi_missing"}}}
    resp = await client.post("/webhook", content=json.dumps(event))
    assert resp.status_code == 200
    assert await _stored(uow_factory) == []


@pytest.mark.asyncio
async def test_webhook_signature_failure_is_400(client, gateway, monkeypatch):
    def reject(headers, body):
        raise PaymentSignatureError("Webhook Error: bad signature", provider="stub")

    monkeypatch.setattr(gateway, "parse_webhook", reject)
    resp = await client.post("/webhook", content=b"{}")

    assert resp.status_code == 400
    assert resp.json()["error"] == "Webhook Error: bad signature"
