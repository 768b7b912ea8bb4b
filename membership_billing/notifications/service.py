"""Best-effort delivery of transactional emails."""

from __future__ import annotations

from functools import lru_cache
from typing import Mapping, Optional, Protocol

from membership_billing.core.logger import get_logger
from membership_billing.core.metrics import record_email_send
from membership_billing.integrations.email import EmailClientError, PlunkClient, get_plunk_client
from membership_billing.notifications.templates import (
    Branding,
    EmailMessage,
    PaymentConfirmationEmailData,
    PaymentFailedEmailData,
    SubscriptionEmailData,
    branding_from_settings,
    form_submission_email,
    new_subscription_email,
    payment_confirmed_email,
    payment_failed_email,
    payment_received_email,
    subscription_initiated_email,
)


logger = get_logger("membership_billing.notifications")


class Notifier(Protocol):
    def send(self, message: EmailMessage, *, scenario: str = "generic") -> bool:
        """Deliver ``message``; return False instead of raising on failure."""


class EmailNotifier:
    def __init__(self, *, client: Optional[PlunkClient] = None) -> None:
        self._client = client

    def _resolve_client(self) -> PlunkClient:
        if self._client is not None:
            return self._client
        return get_plunk_client()

    def send(self, message: EmailMessage, *, scenario: str = "generic") -> bool:
        try:
            self._resolve_client().send_email(to=message.to, subject=message.subject, body=message.html)
        except EmailClientError as exc:
            logger.error("email_send_failed", scenario=scenario, to=message.to, error=str(exc))
            record_email_send(scenario=scenario, status="failed")
            return False
        except Exception as exc:
            logger.exception("email_send_crashed", scenario=scenario, to=message.to, error=str(exc))
            record_email_send(scenario=scenario, status="failed")
            return False

        logger.info("email_sent", scenario=scenario, to=message.to)
        record_email_send(scenario=scenario, status="sent")
        return True


@lru_cache(maxsize=1)
def get_email_notifier() -> EmailNotifier:
    return EmailNotifier()


def _deliver(notifier: Notifier, message: EmailMessage, *, scenario: str) -> bool:
    # Never raises, whatever the notifier does.
    try:
        return bool(notifier.send(message, scenario=scenario))
    except Exception as exc:
        logger.exception("email_notifier_crashed", scenario=scenario, to=message.to, error=str(exc))
        record_email_send(scenario=scenario, status="failed")
        return False


def send_subscription_initiated_email(
    notifier: Notifier,
    data: SubscriptionEmailData,
    *,
    branding: Optional[Branding] = None,
) -> bool:
    message = subscription_initiated_email(data, branding or branding_from_settings())
    return _deliver(notifier, message, scenario="subscription_initiated")


def send_new_subscription_notification(
    notifier: Notifier,
    data: SubscriptionEmailData,
    *,
    branding: Optional[Branding] = None,
) -> bool:
    message = new_subscription_email(data, branding or branding_from_settings())
    return _deliver(notifier, message, scenario="new_subscription")


def send_payment_confirmation_email(
    notifier: Notifier,
    data: PaymentConfirmationEmailData,
    *,
    branding: Optional[Branding] = None,
) -> bool:
    message = payment_confirmed_email(data, branding or branding_from_settings())
    return _deliver(notifier, message, scenario="payment_confirmed")


def send_payment_received_notification(
    notifier: Notifier,
    data: PaymentConfirmationEmailData,
    *,
    branding: Optional[Branding] = None,
) -> bool:
    message = payment_received_email(data, branding or branding_from_settings())
    return _deliver(notifier, message, scenario="payment_received")


def send_payment_failed_email(
    notifier: Notifier,
    data: PaymentFailedEmailData,
    *,
    branding: Optional[Branding] = None,
) -> bool:
    message = payment_failed_email(data, branding or branding_from_settings())
    return _deliver(notifier, message, scenario="payment_failed")


def send_form_submission_email(
    notifier: Notifier,
    fields: Mapping[str, str],
    *,
    form_type: str = "Contact Form",
    branding: Optional[Branding] = None,
) -> bool:
    message = form_submission_email(fields, branding or branding_from_settings(), form_type=form_type)
    return _deliver(notifier, message, scenario="form_submission")
