"""Membership signup and contact form API routes."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from membership_billing.api.dependencies import get_notifier, get_payment_gateway
from membership_billing.billing.base import PaymentGateway
from membership_billing.billing.checkout import CheckoutError, SubscriptionRequest, initialize_subscription
from membership_billing.core.config import get_settings
from membership_billing.core.logger import get_logger
from membership_billing.core.metrics import record_checkout
from membership_billing.notifications.service import (
    Notifier,
    send_form_submission_email,
    send_new_subscription_notification,
    send_subscription_initiated_email,
)
from membership_billing.notifications.templates import SubscriptionEmailData, branding_from_settings
from membership_billing.schemas.subscribe import (
    ContactRequest,
    ContactResponse,
    ErrorResponse,
    SubscribeRequest,
    SubscribeResponse,
)


router = APIRouter(prefix="/api", tags=["subscribe"])
logger = get_logger("membership_billing.subscribe")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post(
    "/subscribe",
    response_model=SubscribeResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def subscribe(
    payload: SubscribeRequest,
    background_tasks: BackgroundTasks,
    gateway: PaymentGateway = Depends(get_payment_gateway),
    notifier: Notifier = Depends(get_notifier),
):
    if payload.missing_required:
        record_checkout(status="invalid")
        return _error(status.HTTP_400_BAD_REQUEST, "Missing required fields")

    settings = get_settings()
    request = SubscriptionRequest(
        name=payload.name or "",
        email=str(payload.email),
        phone=payload.phone or "",
        body_goals=payload.body_goals,
        referral_name=payload.referral_name,
    )
    try:
        session = await run_in_threadpool(initialize_subscription, gateway, request, settings=settings)
    except CheckoutError as exc:
        record_checkout(status="failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Failed to initialize payment")

    email_data = SubscriptionEmailData(
        name=request.name,
        email=request.email,
        phone=request.phone,
        body_goals=request.body_goals,
        referral_name=request.referral_name,
        payment_link=session.authorization_url,
    )
    branding = branding_from_settings(settings)
    background_tasks.add_task(send_subscription_initiated_email, notifier, email_data, branding=branding)
    background_tasks.add_task(send_new_subscription_notification, notifier, email_data, branding=branding)

    record_checkout(status="initialized")
    return SubscribeResponse(redirect_url=session.authorization_url, reference=session.reference)


@router.post(
    "/contact",
    response_model=ContactResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={400: {"model": ErrorResponse}},
)
async def contact(
    payload: ContactRequest,
    background_tasks: BackgroundTasks,
    notifier: Notifier = Depends(get_notifier),
):
    fields = {key.strip(): value.strip() for key, value in payload.fields.items() if key.strip() and value.strip()}
    if not fields:
        return _error(status.HTTP_400_BAD_REQUEST, "Missing required fields")

    logger.info("contact_form_received", form_type=payload.form_type, field_count=len(fields))
    background_tasks.add_task(send_form_submission_email, notifier, fields, form_type=payload.form_type)
    return ContactResponse()
