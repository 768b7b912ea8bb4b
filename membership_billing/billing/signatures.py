"""Paystack webhook signature verification and envelope parsing."""

from __future__ import annotations

import hashlib
import hmac
import json
from typing import Optional

from pydantic import ValidationError

from membership_billing.schemas.billing import PaystackEvent


SIGNATURE_HEADER = "x-paystack-signature"


class PaystackWebhookError(ValueError):
    """Raised when webhook payload is not a usable Paystack event."""


def compute_paystack_signature(payload: bytes, secret_key: str) -> str:
    return hmac.new(
        secret_key.encode("utf-8"),
        payload,
        digestmod=hashlib.sha512,
    ).hexdigest()


def verify_paystack_signature(
    *,
    payload: bytes,
    signature: Optional[str],
    secret_key: str,
) -> bool:
    """Return True only when the header equals HMAC-SHA512(raw body)."""

    # compare_digest rejects non-ASCII str, and headers arrive latin-1 decoded.
    if not signature or not secret_key or not signature.isascii():
        return False
    expected = compute_paystack_signature(payload, secret_key)
    return hmac.compare_digest(expected, signature)


def parse_paystack_event(payload: bytes) -> PaystackEvent:
    try:
        event = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise PaystackWebhookError("Invalid Paystack JSON payload") from exc

    if not isinstance(event, dict):
        raise PaystackWebhookError("Paystack payload must be a JSON object")
    if not isinstance(event.get("event"), str) or not event["event"]:
        raise PaystackWebhookError("Paystack payload missing required field: event")
    if event.get("data") is None:
        event["data"] = {}
    try:
        return PaystackEvent.model_validate(event)
    except ValidationError as exc:
        raise PaystackWebhookError("Paystack payload data must be an object") from exc
