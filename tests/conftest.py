from __future__ import annotations

import hashlib
import hmac
import json
from typing import Any, Dict, List, Optional

from fastapi.testclient import TestClient
import pytest

import membership_billing.api.main as api_main
from membership_billing.api.dependencies import get_notifier, get_payment_gateway
from membership_billing.billing.paystack_client import PaystackClientError
from membership_billing.core.config import get_settings
from membership_billing.core.metrics import reset_metrics_for_tests
from membership_billing.notifications.templates import EmailMessage


TEST_SECRET = "sk_test_membership_secret_0123456789"


def sign(payload: bytes, secret: str = TEST_SECRET) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha512).hexdigest()


def encode_event(event: Dict[str, Any]) -> bytes:
    return json.dumps(event, separators=(",", ":")).encode("utf-8")


def charge_event(
    event: str = "charge.success",
    *,
    reference: str = "SUB_1700000000000_abc123",
    amount: int = 39900,
    email: str = "thandi@example.com",
    gateway_response: str = "Approved",
    authorization: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    return {
        "event": event,
        "data": {
            "id": 302961,
            "status": "success" if event == "charge.success" else "failed",
            "reference": reference,
            "amount": amount,
            "currency": "ZAR",
            "gateway_response": gateway_response,
            "paid_at": "2026-10-18T09:15:00.000Z",
            "created_at": "2026-10-18T09:14:30.000Z",
            "metadata": "",
            "customer": {
                "id": 84312,
                "first_name": "Thandi",
                "last_name": "Mokoena",
                "email": email,
                "customer_code": "CUS_xnxdt6s1zg1f4nx",
                "phone": None,
            },
            "authorization": authorization
            if authorization is not None
            else {
                "authorization_code": "AUTH_8dfhjjdt",
                "last4": "4081",
                "card_type": "visa",
                "bank": "TEST BANK",
                "reusable": True,
            },
        },
    }


class FakeGateway:
    def __init__(
        self,
        *,
        verify_envelope: Optional[Dict[str, Any]] = None,
        verify_error: Optional[BaseException] = None,
        customer_error: Optional[PaystackClientError] = None,
        initialize_error: Optional[PaystackClientError] = None,
        subscription_error: Optional[PaystackClientError] = None,
    ) -> None:
        self.verify_envelope = verify_envelope
        self.verify_error = verify_error
        self.customer_error = customer_error
        self.initialize_error = initialize_error
        self.subscription_error = subscription_error
        self.customers: List[Dict[str, Any]] = []
        self.initialized: List[Dict[str, Any]] = []
        self.verified: List[str] = []
        self.subscriptions: List[Dict[str, str]] = []

    def create_or_get_customer(self, *, email, first_name="", last_name="", phone="", metadata=None) -> str:
        self.customers.append(
            {
                "email": email,
                "first_name": first_name,
                "last_name": last_name,
                "phone": phone,
                "metadata": dict(metadata or {}),
            }
        )
        if self.customer_error is not None:
            raise self.customer_error
        return "CUS_xnxdt6s1zg1f4nx"

    def initialize_transaction(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.initialized.append(payload)
        if self.initialize_error is not None:
            raise self.initialize_error
        return {
            "authorization_url": "https://checkout.paystack.com/0peioxfhpn",
            "access_code": "0peioxfhpn",
            "reference": payload["reference"],
        }

    def verify_transaction(self, reference: str) -> Dict[str, Any]:
        self.verified.append(reference)
        if self.verify_error is not None:
            raise self.verify_error
        if self.verify_envelope is not None:
            return self.verify_envelope
        return {
            "status": True,
            "message": "Verification successful",
            "data": {
                "status": "success",
                "reference": reference,
                "amount": 39900,
                "currency": "ZAR",
                "paid_at": "2026-10-18T09:15:00.000Z",
            },
        }

    def create_subscription(self, *, customer_code: str, plan_code: str) -> Dict[str, Any]:
        self.subscriptions.append({"customer_code": customer_code, "plan_code": plan_code})
        if self.subscription_error is not None:
            raise self.subscription_error
        return {"subscription_code": "SUB_vsyqdmlzble3uii"}


class FakeNotifier:
    def __init__(self, *, fail: bool = False, crash: bool = False) -> None:
        self.fail = fail
        self.crash = crash
        self.sent: List[Dict[str, Any]] = []

    def send(self, message: EmailMessage, *, scenario: str = "generic") -> bool:
        self.sent.append({"message": message, "scenario": scenario})
        if self.crash:
            raise RuntimeError("email provider exploded")
        return not self.fail

    def scenarios(self) -> List[str]:
        return [item["scenario"] for item in self.sent]


@pytest.fixture
def paystack_env(monkeypatch):
    monkeypatch.setenv("ENV", "development")
    monkeypatch.setenv("PAYSTACK_SECRET_KEY", TEST_SECRET)
    monkeypatch.setenv("PAYSTACK_PLAN_CODE", "")
    monkeypatch.setenv("SUBSCRIPTION_AMOUNT", "399")
    monkeypatch.setenv("SUBSCRIPTION_CURRENCY", "ZAR")
    monkeypatch.setenv("ADMIN_EMAIL", "admin@shegymz.com")
    get_settings.cache_clear()
    reset_metrics_for_tests()
    yield
    get_settings.cache_clear()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def client(paystack_env, gateway, notifier):
    api_main.app.dependency_overrides[get_payment_gateway] = lambda: gateway
    api_main.app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(api_main.app)
    finally:
        api_main.app.dependency_overrides.clear()
