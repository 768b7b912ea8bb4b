"""Independent re-verification of gateway transactions."""

from __future__ import annotations

from membership_billing.billing.base import PaymentGateway, TransactionConfirmation
from membership_billing.billing.paystack_client import PaystackClientError
from membership_billing.core.logger import get_logger


logger = get_logger("membership_billing.confirmation")


def confirm_transaction(gateway: PaymentGateway, reference: str) -> TransactionConfirmation:
    """Ask the gateway whether ``reference`` really succeeded.

    Webhook bodies are never trusted on their own: a transaction counts as
    paid only when the verify endpoint answers with a truthy top-level
    ``status`` and ``data.status == "success"``.
    """

    try:
        envelope = gateway.verify_transaction(reference)
    except PaystackClientError as exc:
        logger.error("paystack_verification_error", reference=reference, error=exc.message)
        return TransactionConfirmation(confirmed=False, reference=reference, error=exc.message)

    data = envelope.get("data") if isinstance(envelope, dict) else None
    if not isinstance(data, dict):
        data = {}
    message = envelope.get("message") if isinstance(envelope, dict) else None

    if not (isinstance(envelope, dict) and envelope.get("status")):
        return TransactionConfirmation(
            confirmed=False,
            reference=reference,
            data=data,
            error=str(message or "Payment verification failed"),
        )
    if data.get("status") != "success":
        return TransactionConfirmation(
            confirmed=False,
            reference=reference,
            data=data,
            error=f"Transaction status is {data.get('status') or 'unknown'}",
        )
    return TransactionConfirmation(confirmed=True, reference=reference, data=data)
