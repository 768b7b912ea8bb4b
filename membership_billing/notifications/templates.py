"""HTML email templates for membership payment notifications.

Every function here is pure: it takes the scenario data plus the branding
and returns one ``EmailMessage``. Values coming from members or the gateway
are HTML-escaped before interpolation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from html import escape
from typing import Mapping, Optional

from membership_billing.billing.formatting import format_amount
from membership_billing.core.config import Settings, get_settings


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str


@dataclass(frozen=True)
class Branding:
    brand_name: str
    admin_email: str
    support_email: str
    monthly_price: str


@dataclass(frozen=True)
class SubscriptionEmailData:
    name: str
    email: str
    phone: str
    body_goals: Optional[str] = None
    referral_name: Optional[str] = None
    payment_link: Optional[str] = None


@dataclass(frozen=True)
class PaymentConfirmationEmailData:
    name: str
    email: str
    amount: str
    payment_date: str
    reference: str
    subscription_token: Optional[str] = None
    card_last4: Optional[str] = None
    card_type: Optional[str] = None


@dataclass(frozen=True)
class PaymentFailedEmailData:
    name: str
    email: str
    amount: str
    reference: str
    reason: Optional[str] = None


REMEDIATION_STEPS = (
    "Check that your card has sufficient funds",
    "Verify your card details are correct",
    "Contact your bank if the issue persists",
    "Try again with a different payment method",
)


def branding_from_settings(settings: Optional[Settings] = None) -> Branding:
    resolved = settings or get_settings()
    return Branding(
        brand_name=resolved.brand_name,
        admin_email=resolved.admin_email,
        support_email=resolved.admin_email or resolved.support_email,
        monthly_price=format_amount(resolved.subscription_amount_minor, resolved.subscription_currency),
    )


def _e(value: Optional[str]) -> str:
    return escape(value or "", quote=True)


def _detail_row(label: str, value: Optional[str]) -> str:
    if not value:
        return ""
    return f"<p><strong>{_e(label)}:</strong> {_e(value)}</p>"


def subscription_initiated_email(data: SubscriptionEmailData, branding: Branding) -> EmailMessage:
    brand = _e(branding.brand_name)
    payment_block = ""
    if data.payment_link:
        payment_block = (
            '<div style="background-color: #E91E63; padding: 20px; border-radius: 8px; '
            'margin: 30px 0; text-align: center;">'
            '<h3 style="color: white; margin-top: 0;">Complete Your Subscription</h3>'
            '<p style="color: white;">Click the button below to set up your recurring monthly membership</p>'
            f'<a href="{_e(data.payment_link)}" style="display: inline-block; background-color: white; '
            'color: #E91E63; padding: 15px 40px; text-decoration: none; border-radius: 5px; '
            'font-weight: bold;">Complete Payment</a>'
            "</div>"
        )
    goals_block = ""
    if data.body_goals:
        goals_block = (
            "<p><strong>Your Body Goals:</strong></p>"
            f'<p style="font-style: italic; color: #666;">"{_e(data.body_goals)}"</p>'
            "<p>We'll help you achieve these goals!</p>"
        )

    html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #E91E63;">Welcome to {brand}!</h2>
  <p>Hi {_e(data.name)},</p>
  <p>Thank you for starting your subscription with {brand}! We're excited to have you join our community.</p>
  {payment_block}
  <div style="background-color: #f9f9f9; padding: 20px; border-radius: 8px; margin: 20px 0;">
    <h3 style="color: #333; margin-top: 0;">What Happens Next:</h3>
    <ol style="color: #555;">
      <li>Click the payment button above to complete your subscription</li>
      <li>Set up your recurring monthly payment ({_e(branding.monthly_price)}/month)</li>
      <li>You'll receive a confirmation email once payment is processed</li>
      <li>Access your membership benefits immediately</li>
    </ol>
  </div>
  {goals_block}
  <p>If you have any questions, feel free to reach out to us.</p>
  <p>Stay strong,<br><strong>The {brand} Team</strong></p>
  <p style="color: #999; font-size: 12px; text-align: center;">
    This email was sent because you initiated a subscription at {brand}.
  </p>
</div>
"""
    return EmailMessage(
        to=data.email,
        subject=f"Welcome to {branding.brand_name} - Complete Your Payment",
        html=html,
    )


def new_subscription_email(data: SubscriptionEmailData, branding: Branding) -> EmailMessage:
    html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">New Subscription Request</h2>
  <p>A new member has submitted a subscription request:</p>
  <div style="background-color: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;">
    {_detail_row("Name", data.name)}
    {_detail_row("Email", data.email)}
    {_detail_row("Phone", data.phone)}
    {_detail_row("Body Goals", data.body_goals)}
    {_detail_row("Referred By", data.referral_name)}
  </div>
  <p style="color: #666; font-size: 14px;">
    This is an automated notification from {_e(branding.brand_name)} subscription system.
  </p>
</div>
"""
    return EmailMessage(
        to=branding.admin_email,
        subject=f"New Subscription: {data.name}",
        html=html,
    )


def payment_confirmed_email(data: PaymentConfirmationEmailData, branding: Branding) -> EmailMessage:
    brand = _e(branding.brand_name)
    support = _e(branding.support_email)
    card_row = ""
    if data.card_last4:
        card_label = f"{_e(data.card_type)} ending with" if data.card_type else "Ending with"
        card_row = (
            '<tr><td style="padding: 15px 0; border-bottom: 1px solid #555;">Card</td>'
            '<td style="padding: 15px 0; border-bottom: 1px solid #555; text-align: right;">'
            f"{card_label} {_e(data.card_last4)}</td></tr>"
        )

    html = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><meta name="viewport" content="width=device-width, initial-scale=1.0"></head>
<body style="margin: 0; padding: 20px; font-family: Arial, sans-serif; background-color: #2d2d2d;">
  <div style="max-width: 600px; margin: 0 auto; color: #ffffff;">
    <div style="text-align: center; padding: 30px 20px;">
      <p style="color: #999; margin: 0; font-size: 14px;">If you have any issues with payment, kindly reply to this email or send an email to</p>
      <a href="mailto:{support}" style="color: #4a90e2; text-decoration: none;">{support}</a>
    </div>
    <div style="background-color: #d32f2f; padding: 20px; text-align: center; margin: 0 20px;">
      <p style="margin: 0; font-size: 16px;">This receipt is for a confirmed transaction.</p>
    </div>
    <div style="background-color: #4a6fa5; padding: 40px 20px; text-align: center; margin: 0 20px;">
      <p style="margin: 0 0 10px 0; font-size: 18px;">{brand} received your payment of</p>
      <h1 style="margin: 0; font-size: 48px;">{_e(data.amount)}</h1>
    </div>
    <div style="background-color: #3d3d3d; padding: 30px 20px; margin: 0 20px;">
      <h2 style="margin: 0 0 20px 0; font-size: 20px; text-align: center;">Transaction Details</h2>
      <table style="width: 100%; border-collapse: collapse; color: #ffffff;">
        <tr><td style="padding: 15px 0; border-bottom: 1px solid #555;">Reference</td>
            <td style="padding: 15px 0; border-bottom: 1px solid #555; text-align: right;">{_e(data.reference or data.subscription_token or "N/A")}</td></tr>
        <tr><td style="padding: 15px 0; border-bottom: 1px solid #555;">Date</td>
            <td style="padding: 15px 0; border-bottom: 1px solid #555; text-align: right;">{_e(data.payment_date)}</td></tr>
        {card_row}
      </table>
    </div>
    <div style="text-align: center; padding: 30px 20px;">
      <p style="font-size: 18px;">{brand}</p>
      <a href="mailto:{support}" style="color: #4a90e2; text-decoration: none;">{support}</a>
      <p style="color: #999; font-size: 14px;">Your recurring monthly subscription is now active</p>
      <p style="color: #999; font-size: 14px;">Visit the gym anytime during operating hours</p>
    </div>
  </div>
</body>
</html>
"""
    return EmailMessage(
        to=data.email,
        subject=f"Payment Receipt - {branding.brand_name} Membership",
        html=html,
    )


def payment_received_email(data: PaymentConfirmationEmailData, branding: Branding) -> EmailMessage:
    html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #4CAF50;">Payment Received</h2>
  <p>A payment has been successfully processed:</p>
  <div style="background-color: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;">
    {_detail_row("Member", data.name)}
    {_detail_row("Email", data.email)}
    {_detail_row("Amount", data.amount)}
    {_detail_row("Date", data.payment_date)}
    {_detail_row("Token", data.subscription_token)}
  </div>
  <p style="color: #666; font-size: 14px;">Member has been sent a confirmation email.</p>
</div>
"""
    return EmailMessage(
        to=branding.admin_email,
        subject=f"Payment Received: {data.name} - {data.amount}",
        html=html,
    )


def payment_failed_email(data: PaymentFailedEmailData, branding: Branding) -> EmailMessage:
    brand = _e(branding.brand_name)
    support = _e(branding.support_email)
    reason_block = ""
    if data.reason:
        reason_block = (
            '<div style="background-color: #fff3cd; padding: 20px; border-left: 4px solid #ff9800; margin: 20px 0;">'
            f'<p style="margin: 0; color: #856404;"><strong>Reason:</strong> {_e(data.reason)}</p>'
            "</div>"
        )
    steps = "".join(f"<li>{_e(step)}</li>" for step in REMEDIATION_STEPS)

    html = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><meta name="viewport" content="width=device-width, initial-scale=1.0"></head>
<body style="margin: 0; padding: 20px; font-family: Arial, sans-serif; background-color: #f5f5f5;">
  <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff;">
    <div style="background-color: #d32f2f; color: white; padding: 30px; text-align: center;">
      <h1 style="margin: 0; font-size: 24px;">Payment Failed</h1>
    </div>
    <div style="padding: 40px 30px;">
      <p style="font-size: 16px; color: #333;">Hi {_e(data.name)},</p>
      <p style="font-size: 16px; color: #333; line-height: 1.6;">
        Unfortunately, your payment for {brand} membership could not be processed.
      </p>
      {reason_block}
      <div style="background-color: #f9f9f9; padding: 20px; border-radius: 8px; margin: 20px 0;">
        <h3 style="margin-top: 0; color: #333;">Payment Details</h3>
        <p style="margin: 5px 0; color: #666;"><strong>Amount:</strong> {_e(data.amount)}</p>
        <p style="margin: 5px 0; color: #666;"><strong>Reference:</strong> {_e(data.reference)}</p>
      </div>
      <div style="background-color: #e3f2fd; padding: 20px; border-radius: 8px; margin: 20px 0;">
        <h3 style="margin-top: 0; color: #1976d2;">What to do next:</h3>
        <ul style="color: #1565c0; line-height: 1.8;">{steps}</ul>
      </div>
      <div style="text-align: center; margin: 30px 0;">
        <p style="color: #666;">Need help? Contact us:</p>
        <a href="mailto:{support}" style="display: inline-block; background-color: #E91E63; color: white; padding: 12px 30px; text-decoration: none; border-radius: 5px; font-weight: bold;">Contact Support</a>
      </div>
      <p style="color: #666; font-size: 14px;">Best regards,<br><strong>The {brand} Team</strong></p>
    </div>
    <div style="background-color: #f5f5f5; padding: 20px; text-align: center; border-top: 1px solid #ddd;">
      <p style="margin: 0; color: #999; font-size: 12px;">This is an automated notification from {brand}</p>
    </div>
  </div>
</body>
</html>
"""
    return EmailMessage(
        to=data.email,
        subject=f"Payment Failed - {branding.brand_name} Membership",
        html=html,
    )


def form_submission_email(
    fields: Mapping[str, str],
    branding: Branding,
    *,
    form_type: str = "Contact Form",
    submitted_at: Optional[datetime] = None,
) -> EmailMessage:
    rows = "\n    ".join(_detail_row(str(key), str(value)) for key, value in fields.items())
    stamp = (submitted_at or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M:%S %Z").strip()
    html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">New {_e(form_type)} Submission</h2>
  <div style="background-color: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;">
    {rows}
  </div>
  <p style="color: #666; font-size: 14px;">Submitted on {_e(stamp)}</p>
</div>
"""
    return EmailMessage(
        to=branding.admin_email,
        subject=f"New {form_type} Submission",
        html=html,
    )
