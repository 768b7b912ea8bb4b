"""Transactional email notifications."""

from membership_billing.notifications.service import (
    EmailNotifier,
    Notifier,
    get_email_notifier,
    send_form_submission_email,
    send_new_subscription_notification,
    send_payment_confirmation_email,
    send_payment_failed_email,
    send_payment_received_notification,
    send_subscription_initiated_email,
)
from membership_billing.notifications.templates import (
    EmailMessage,
    PaymentConfirmationEmailData,
    PaymentFailedEmailData,
    SubscriptionEmailData,
)

__all__ = [
    "EmailMessage",
    "EmailNotifier",
    "Notifier",
    "PaymentConfirmationEmailData",
    "PaymentFailedEmailData",
    "SubscriptionEmailData",
    "get_email_notifier",
    "send_form_submission_email",
    "send_new_subscription_notification",
    "send_payment_confirmation_email",
    "send_payment_failed_email",
    "send_payment_received_notification",
    "send_subscription_initiated_email",
]
