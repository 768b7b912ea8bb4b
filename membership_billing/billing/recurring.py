"""Turn a first successful charge into a recurring membership."""

from __future__ import annotations

from membership_billing.billing.base import PaymentGateway, RecurringResult
from membership_billing.billing.paystack_client import PaystackClientError
from membership_billing.core.logger import get_logger


logger = get_logger("membership_billing.recurring")


def enable_recurring_subscription(
    gateway: PaymentGateway,
    *,
    authorization_code: str,
    email: str,
    plan_code: str = "",
) -> RecurringResult:
    """Subscribe the customer to ``plan_code`` or keep the authorization code as the token.

    Without a plan the reusable authorization code is what future charges
    are made against, so it doubles as the subscription token.
    """

    if not plan_code.strip():
        return RecurringResult(enabled=True, subscription_code=authorization_code)

    try:
        customer_code = gateway.create_or_get_customer(email=email)
    except PaystackClientError as exc:
        logger.warning("recurring_customer_lookup_failed", email=email, error=exc.message)
        return RecurringResult(enabled=False, error=exc.message)

    try:
        subscription = gateway.create_subscription(
            customer_code=customer_code,
            plan_code=plan_code.strip(),
        )
    except PaystackClientError as exc:
        # The authorization code still charges the card, so the member keeps a token.
        logger.warning("recurring_plan_subscription_failed", email=email, error=exc.message)
        return RecurringResult(enabled=True, subscription_code=authorization_code, error=exc.message)

    subscription_code = subscription.get("subscription_code")
    return RecurringResult(
        enabled=True,
        subscription_code=str(subscription_code) if subscription_code else authorization_code,
    )
