"""
Public donation routes: create a PaymentIntent and receive Stripe webhooks.

Keep this thin: no SDK details here.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Request

from api.dependencies import get_donation_service
from application.dto import ClientSecretDTO, DonationCreateDTO, WebhookAckDTO
from application.services.donation_service import DonationLedgerService


router = APIRouter(tags=["Donations"])


@router.post(
    "/create-payment-intent",
    summary="Create a PaymentIntent and record a pending donation",
    response_model=ClientSecretDTO,
    response_model_by_alias=True,
)
async def create_payment_intent(
    data: Optional[DonationCreateDTO] = Body(default=None),
    service: DonationLedgerService = Depends(get_donation_service),
):
    client_secret = await service.record_donation_attempt(data or DonationCreateDTO())
    return ClientSecretDTO(client_secret=client_secret)


@router.post("/webhook", summary="Stripe webhook receiver", response_model=WebhookAckDTO)
async def stripe_webhook(
    request: Request,
    service: DonationLedgerService = Depends(get_donation_service),
):
    # Signature is computed over the exact bytes received
    raw_body = await request.body()
    headers = {k: v for k, v in request.headers.items()}
    await service.handle_webhook(headers, raw_body)
    return WebhookAckDTO(received=True)
