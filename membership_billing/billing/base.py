"""Shared payment gateway contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol


@dataclass(frozen=True)
class CheckoutSession:
    authorization_url: str
    reference: str
    access_code: str | None = None


@dataclass(frozen=True)
class TransactionConfirmation:
    confirmed: bool
    reference: str
    data: Dict[str, Any] = field(default_factory=dict)
    error: str | None = None


@dataclass(frozen=True)
class RecurringResult:
    enabled: bool
    subscription_code: str | None = None
    error: str | None = None


class PaymentGateway(Protocol):
    def create_or_get_customer(
        self,
        *,
        email: str,
        first_name: str = "",
        last_name: str = "",
        phone: str = "",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Return the gateway customer code for this email."""

    def initialize_transaction(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Start a hosted checkout and return authorization_url/access_code/reference."""

    def verify_transaction(self, reference: str) -> Dict[str, Any]:
        """Return the gateway's full verification envelope ({status, message, data})."""

    def create_subscription(self, *, customer_code: str, plan_code: str) -> Dict[str, Any]:
        """Attach a customer to a recurring plan."""
