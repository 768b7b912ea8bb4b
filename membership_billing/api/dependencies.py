"""FastAPI dependency providers for external capabilities."""

from __future__ import annotations

from membership_billing.billing.base import PaymentGateway
from membership_billing.billing.paystack_client import get_paystack_client
from membership_billing.notifications.service import Notifier, get_email_notifier


def get_payment_gateway() -> PaymentGateway:
    return get_paystack_client()


def get_notifier() -> Notifier:
    return get_email_notifier()
