"""
Payment DTOs (Pydantic v2) used at application boundaries.
"""
from __future__ import annotations

from typing import Any, Optional
from pydantic import BaseModel, Field, field_validator


class CreatePayment(BaseModel):
    # Amount already normalized to minor units (cents)
    amount_minor: int = Field(gt=0)
    currency: str = Field(default="usd")
    receipt_email: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def _validate_currency(cls, v: str) -> str:
        u = (v or "").strip()
        if len(u) != 3 or not u.isalpha():
            raise ValueError("currency must be ISO-4217 alpha-3")
        # Stripe expects lowercase codes
        return u.lower()


class QueryPayment(BaseModel):
    intent_id: str


class PaymentIntent(BaseModel):
    intent_id: str
    # Provider status, verbatim
    status: str
    client_secret: Optional[str] = None
    provider: str
    amount_minor: Optional[int] = None


class WebhookEvent(BaseModel):
    id: str
    type: str
    provider: str
    data: dict[str, Any]
    verified: bool = True

    @property
    def object_id(self) -> Optional[str]:
        """ID of the object the event is about (e.g. the PaymentIntent id)."""
        obj = self.data.get("object") if isinstance(self.data, dict) else None
        if isinstance(obj, dict) and obj.get("id"):
            return str(obj["id"])
        return None
