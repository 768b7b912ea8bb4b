"""Hosted-checkout initialization for membership subscriptions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import secrets
import time
from typing import Any, Dict, List, Optional

from membership_billing.billing.base import CheckoutSession, PaymentGateway
from membership_billing.billing.formatting import split_name
from membership_billing.billing.paystack_client import PaystackClientError
from membership_billing.core.config import Settings, get_settings
from membership_billing.core.logger import get_logger


logger = get_logger("membership_billing.checkout")


class CheckoutError(RuntimeError):
    """Raised when the gateway refuses to start a checkout."""


@dataclass(frozen=True)
class SubscriptionRequest:
    name: str
    email: str
    phone: str
    body_goals: Optional[str] = None
    referral_name: Optional[str] = None


def generate_reference(*, now: Optional[float] = None) -> str:
    millis = int((now if now is not None else time.time()) * 1000)
    return f"SUB_{millis}_{secrets.token_hex(3)}"


def _custom_fields(request: SubscriptionRequest) -> List[Dict[str, str]]:
    fields = [
        {"display_name": "Full Name", "variable_name": "full_name", "value": request.name},
        {"display_name": "Phone", "variable_name": "phone", "value": request.phone},
    ]
    if request.body_goals:
        fields.append({"display_name": "Body Goals", "variable_name": "body_goals", "value": request.body_goals})
    if request.referral_name:
        fields.append(
            {"display_name": "Referred By", "variable_name": "referral_name", "value": request.referral_name}
        )
    return fields


def build_initialize_payload(
    request: SubscriptionRequest,
    *,
    customer_code: str,
    reference: str,
    settings: Settings,
) -> Dict[str, Any]:
    first_name, last_name = split_name(request.name)
    payload: Dict[str, Any] = {
        "email": request.email,
        "customer": customer_code,
        "amount": settings.subscription_amount_minor,
        "reference": reference,
        "callback_url": settings.paystack_callback_url,
        "currency": settings.subscription_currency.strip().upper(),
        "metadata": {
            "custom_fields": _custom_fields(request),
            "first_name": first_name,
            "last_name": last_name,
            "phone": request.phone,
            "body_goals": request.body_goals or "",
            "referral_name": request.referral_name or "",
            "subscription_type": "recurring",
        },
        "channels": settings.paystack_channel_list,
    }
    if settings.paystack_plan_code.strip():
        payload["plan"] = settings.paystack_plan_code.strip()
    return payload


def initialize_subscription(
    gateway: PaymentGateway,
    request: SubscriptionRequest,
    *,
    settings: Optional[Settings] = None,
) -> CheckoutSession:
    """Register the customer and open a hosted checkout for the membership fee."""

    resolved = settings or get_settings()
    first_name, last_name = split_name(request.name)

    try:
        customer_code = gateway.create_or_get_customer(
            email=request.email,
            first_name=first_name,
            last_name=last_name,
            phone=request.phone,
            metadata={
                "body_goals": request.body_goals or "",
                "referral_name": request.referral_name or "",
                "created_at": datetime.now(timezone.utc).isoformat(),
            },
        )
    except PaystackClientError as exc:
        logger.error("paystack_customer_failed", email=request.email, error=exc.message)
        raise CheckoutError(exc.message or "Failed to create customer") from exc

    payload = build_initialize_payload(
        request,
        customer_code=customer_code,
        reference=generate_reference(),
        settings=resolved,
    )
    try:
        data = gateway.initialize_transaction(payload)
    except PaystackClientError as exc:
        logger.error("paystack_initialization_failed", email=request.email, error=exc.message)
        raise CheckoutError(exc.message or "Failed to initialize payment") from exc
    if not data.get("authorization_url"):
        raise CheckoutError("Failed to initialize payment")

    session = CheckoutSession(
        authorization_url=str(data["authorization_url"]),
        reference=str(data.get("reference") or payload["reference"]),
        access_code=data.get("access_code"),
    )
    logger.info(
        "checkout_initialized",
        email=request.email,
        reference=session.reference,
        amount=payload["amount"],
        currency=payload["currency"],
    )
    return session
