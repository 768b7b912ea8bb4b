"""Pydantic schemas for Paystack payloads and billing endpoints."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PaystackCustomer(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str
    customer_code: Optional[str] = None
    phone: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class PaystackAuthorization(BaseModel):
    model_config = ConfigDict(extra="allow")

    authorization_code: Optional[str] = None
    bin: Optional[str] = None
    last4: Optional[str] = None
    exp_month: Optional[str] = None
    exp_year: Optional[str] = None
    channel: Optional[str] = None
    card_type: Optional[str] = None
    bank: Optional[str] = None
    country_code: Optional[str] = None
    brand: Optional[str] = None
    reusable: Optional[bool] = None


class PaystackTransaction(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    status: Optional[str] = None
    reference: str
    amount: int = 0
    gateway_response: Optional[str] = None
    paid_at: Optional[str] = None
    created_at: Optional[str] = None
    channel: Optional[str] = None
    currency: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    customer: PaystackCustomer
    authorization: Optional[PaystackAuthorization] = None

    @field_validator("metadata", mode="before")
    @classmethod
    def _coerce_metadata(cls, value: Any) -> Dict[str, Any]:
        # Paystack sends "" or null when no metadata was attached.
        return value if isinstance(value, dict) else {}


class PaystackEvent(BaseModel):
    model_config = ConfigDict(extra="allow")

    event: str
    data: Dict[str, Any] = Field(default_factory=dict)

    def transaction(self) -> PaystackTransaction:
        return PaystackTransaction.model_validate(self.data)


class WebhookAck(BaseModel):
    received: bool = True
    error: Optional[str] = None
