"""Paystack webhook endpoint and event dispatch."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from membership_billing.api.dependencies import get_notifier, get_payment_gateway
from membership_billing.billing.base import PaymentGateway
from membership_billing.billing.confirmation import confirm_transaction
from membership_billing.billing.formatting import format_amount, format_payment_date
from membership_billing.billing.recurring import enable_recurring_subscription
from membership_billing.billing.signatures import (
    SIGNATURE_HEADER,
    PaystackWebhookError,
    parse_paystack_event,
    verify_paystack_signature,
)
from membership_billing.core.config import Settings, get_settings
from membership_billing.core.logger import get_logger
from membership_billing.core.metrics import record_webhook_event
from membership_billing.core.observability import capture_exception
from membership_billing.notifications.service import (
    Notifier,
    send_payment_confirmation_email,
    send_payment_failed_email,
    send_payment_received_notification,
)
from membership_billing.notifications.templates import (
    PaymentConfirmationEmailData,
    PaymentFailedEmailData,
    branding_from_settings,
)
from membership_billing.schemas.billing import PaystackEvent, PaystackTransaction, WebhookAck


router = APIRouter(prefix="/api/webhook", tags=["webhooks"])
logger = get_logger("membership_billing.webhooks")

PROCESSING_ERROR = "Processing error"


def _verified_int(data: Dict[str, Any], key: str, fallback: int) -> int:
    value = data.get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return fallback


def _verified_str(data: Dict[str, Any], key: str, fallback: Optional[str]) -> Optional[str]:
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return fallback


def _transaction(event: PaystackEvent) -> PaystackTransaction:
    try:
        return event.transaction()
    except ValidationError as exc:
        raise PaystackWebhookError(f"Paystack {event.event} payload is missing transaction fields") from exc


def handle_payment_success(
    transaction: PaystackTransaction,
    *,
    gateway: PaymentGateway,
    notifier: Notifier,
    background_tasks: BackgroundTasks,
    settings: Settings,
) -> str:
    confirmation = confirm_transaction(gateway, transaction.reference)
    if not confirmation.confirmed:
        logger.warning(
            "paystack_payment_unverified",
            reference=transaction.reference,
            error=confirmation.error,
        )
        return "unverified"

    customer = transaction.customer
    authorization = transaction.authorization
    currency = _verified_str(confirmation.data, "currency", transaction.currency) or settings.subscription_currency
    amount = format_amount(_verified_int(confirmation.data, "amount", transaction.amount), currency)
    paid_at = _verified_str(confirmation.data, "paid_at", transaction.paid_at)

    logger.info(
        "paystack_payment_confirmed",
        reference=transaction.reference,
        email=customer.email,
        amount=amount,
    )

    authorization_code = authorization.authorization_code if authorization else None
    if authorization_code:
        recurring = enable_recurring_subscription(
            gateway,
            authorization_code=authorization_code,
            email=customer.email,
            plan_code=settings.paystack_plan_code,
        )
        if recurring.enabled:
            logger.info(
                "recurring_subscription_enabled",
                email=customer.email,
                subscription_code=recurring.subscription_code,
            )
        else:
            logger.warning("recurring_subscription_not_enabled", email=customer.email, error=recurring.error)

    email_data = PaymentConfirmationEmailData(
        name=customer.full_name or customer.email,
        email=customer.email,
        amount=amount,
        payment_date=format_payment_date(paid_at),
        reference=transaction.reference,
        subscription_token=authorization_code or transaction.reference,
        card_last4=authorization.last4 if authorization else None,
        card_type=authorization.card_type if authorization else None,
    )
    branding = branding_from_settings(settings)
    background_tasks.add_task(send_payment_confirmation_email, notifier, email_data, branding=branding)
    background_tasks.add_task(send_payment_received_notification, notifier, email_data, branding=branding)
    return "confirmed"


def handle_payment_failed(
    transaction: PaystackTransaction,
    *,
    notifier: Notifier,
    background_tasks: BackgroundTasks,
    settings: Settings,
) -> str:
    customer = transaction.customer
    reason = transaction.gateway_response or "Payment could not be processed"
    logger.info(
        "paystack_payment_failed",
        reference=transaction.reference,
        email=customer.email,
        reason=reason,
    )

    email_data = PaymentFailedEmailData(
        name=customer.full_name or customer.email,
        email=customer.email,
        amount=format_amount(transaction.amount, transaction.currency or settings.subscription_currency),
        reference=transaction.reference,
        reason=reason,
    )
    background_tasks.add_task(
        send_payment_failed_email,
        notifier,
        email_data,
        branding=branding_from_settings(settings),
    )
    return "failure_notified"


def dispatch_paystack_event(
    event: PaystackEvent,
    *,
    gateway: PaymentGateway,
    notifier: Notifier,
    background_tasks: BackgroundTasks,
    settings: Settings,
) -> str:
    reference = event.data.get("reference")
    logger.info("paystack_webhook_received", paystack_event=event.event, reference=reference)

    if event.event == "charge.success":
        return handle_payment_success(
            _transaction(event),
            gateway=gateway,
            notifier=notifier,
            background_tasks=background_tasks,
            settings=settings,
        )
    if event.event == "charge.failed":
        return handle_payment_failed(
            _transaction(event),
            notifier=notifier,
            background_tasks=background_tasks,
            settings=settings,
        )
    if event.event == "subscription.create":
        logger.info("paystack_subscription_created", reference=reference)
        return "logged"
    if event.event == "subscription.disable":
        logger.info("paystack_subscription_disabled", reference=reference)
        return "logged"

    logger.info("paystack_webhook_unhandled", paystack_event=event.event)
    return "unhandled"


def _reject() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid signature"},
    )


@router.post("/paystack", response_model=WebhookAck, response_model_exclude_none=True)
async def paystack_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    gateway: PaymentGateway = Depends(get_payment_gateway),
    notifier: Notifier = Depends(get_notifier),
):
    settings = get_settings()
    payload_bytes = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)

    if not signature:
        logger.warning("paystack_webhook_signature_missing")
        record_webhook_event(event="unknown", outcome="rejected")
        return _reject()
    if not settings.paystack_secret_key.strip():
        logger.error("paystack_webhook_secret_missing")
        record_webhook_event(event="unknown", outcome="rejected")
        return _reject()
    if not verify_paystack_signature(
        payload=payload_bytes,
        signature=signature,
        secret_key=settings.paystack_secret_key.strip(),
    ):
        logger.warning("paystack_webhook_signature_invalid")
        record_webhook_event(event="unknown", outcome="rejected")
        return _reject()

    event_name = "unknown"
    try:
        event = parse_paystack_event(payload_bytes)
        event_name = event.event
        outcome = await run_in_threadpool(
            dispatch_paystack_event,
            event,
            gateway=gateway,
            notifier=notifier,
            background_tasks=background_tasks,
            settings=settings,
        )
    except PaystackWebhookError as exc:
        logger.warning("paystack_webhook_malformed", error=str(exc))
        record_webhook_event(event=event_name, outcome="malformed")
        return WebhookAck(error=PROCESSING_ERROR)
    except Exception as exc:
        logger.exception("paystack_webhook_processing_failed", paystack_event=event_name, error=str(exc))
        capture_exception(exc, paystack_event=event_name)
        record_webhook_event(event=event_name, outcome="error")
        return WebhookAck(error=PROCESSING_ERROR)

    record_webhook_event(event=event_name, outcome=outcome)
    return WebhookAck()
