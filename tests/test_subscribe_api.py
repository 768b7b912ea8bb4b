from __future__ import annotations

import re

import membership_billing.api.main as api_main
from membership_billing.api.dependencies import get_notifier, get_payment_gateway
from membership_billing.billing.paystack_client import PaystackClientError

from conftest import FakeGateway, FakeNotifier


SIGNUP = {
    "name": "Thandi van der Merwe",
    "email": "thandi@example.com",
    "phone": "+27821234567",
    "bodyGoals": "Build strength <fast>",
    "referralName": "Lerato",
}


def test_subscribe_returns_redirect_and_reference(client, gateway, notifier) -> None:
    response = client.post("/api/subscribe", json=SIGNUP)

    assert response.status_code == 200
    payload = response.json()
    assert payload["redirectUrl"] == "https://checkout.paystack.com/0peioxfhpn"
    assert re.fullmatch(r"SUB_\d{13}_[0-9a-f]{6}", payload["reference"])

    assert gateway.customers[0]["first_name"] == "Thandi"
    assert gateway.customers[0]["last_name"] == "van der Merwe"
    assert gateway.customers[0]["metadata"]["body_goals"] == "Build strength <fast>"

    initialized = gateway.initialized[0]
    assert initialized["amount"] == 39900
    assert initialized["currency"] == "ZAR"
    assert initialized["customer"] == "CUS_xnxdt6s1zg1f4nx"
    assert initialized["channels"] == ["card", "bank", "ussd", "mobile_money"]
    assert "plan" not in initialized
    variables = [field["variable_name"] for field in initialized["metadata"]["custom_fields"]]
    assert variables == ["full_name", "phone", "body_goals", "referral_name"]
    assert initialized["metadata"]["subscription_type"] == "recurring"


def test_subscribe_sends_welcome_and_admin_emails(client, notifier) -> None:
    client.post("/api/subscribe", json=SIGNUP)

    assert notifier.scenarios() == ["subscription_initiated", "new_subscription"]
    welcome = notifier.sent[0]["message"]
    assert welcome.to == "thandi@example.com"
    assert 'href="https://checkout.paystack.com/0peioxfhpn"' in welcome.html
    assert "Build strength &lt;fast&gt;" in welcome.html
    assert "R399.00/month" in welcome.html

    admin = notifier.sent[1]["message"]
    assert admin.to == "admin@shegymz.com"
    assert admin.subject == "New Subscription: Thandi van der Merwe"
    assert "Lerato" in admin.html


def test_subscribe_without_phone_is_rejected_before_gateway(client, gateway, notifier) -> None:
    body = {key: value for key, value in SIGNUP.items() if key != "phone"}
    response = client.post("/api/subscribe", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}
    assert gateway.customers == []
    assert gateway.initialized == []
    assert notifier.sent == []


def test_subscribe_with_blank_name_is_rejected(client, gateway) -> None:
    response = client.post("/api/subscribe", json={**SIGNUP, "name": "   "})

    assert response.status_code == 400
    assert gateway.initialized == []


def test_subscribe_with_invalid_email_returns_error_body(client, gateway) -> None:
    response = client.post("/api/subscribe", json={**SIGNUP, "email": "not-an-email"})

    assert response.status_code == 400
    assert "email" in response.json()["error"]
    assert gateway.customers == []


def test_subscribe_with_malformed_json_returns_error_body(client, gateway) -> None:
    response = client.post(
        "/api/subscribe",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert "error" in response.json()
    assert gateway.customers == []


def test_subscribe_surfaces_gateway_error(client, notifier) -> None:
    failing = FakeGateway(initialize_error=PaystackClientError("Invalid Amount Sent", status_code=400))
    api_main.app.dependency_overrides[get_payment_gateway] = lambda: failing

    response = client.post("/api/subscribe", json=SIGNUP)

    assert response.status_code == 500
    assert response.json() == {"error": "Invalid Amount Sent"}
    assert notifier.sent == []


def test_subscribe_surfaces_customer_error(client) -> None:
    failing = FakeGateway(customer_error=PaystackClientError("Invalid email address"))
    api_main.app.dependency_overrides[get_payment_gateway] = lambda: failing

    response = client.post("/api/subscribe", json=SIGNUP)

    assert response.status_code == 500
    assert response.json() == {"error": "Invalid email address"}
    assert failing.initialized == []


def test_subscribe_succeeds_when_emails_fail(client) -> None:
    crashing = FakeNotifier(crash=True)
    api_main.app.dependency_overrides[get_notifier] = lambda: crashing

    response = client.post("/api/subscribe", json=SIGNUP)

    assert response.status_code == 200
    assert response.json()["redirectUrl"]
    assert crashing.scenarios() == ["subscription_initiated", "new_subscription"]


def test_subscribe_includes_plan_code_when_configured(client, gateway, monkeypatch) -> None:
    from membership_billing.core.config import get_settings

    monkeypatch.setenv("PAYSTACK_PLAN_CODE", "PLN_gx2wn530m0i3w3m")
    get_settings.cache_clear()

    response = client.post("/api/subscribe", json=SIGNUP)

    assert response.status_code == 200
    assert gateway.initialized[0]["plan"] == "PLN_gx2wn530m0i3w3m"


def test_contact_form_emails_admin(client, notifier) -> None:
    response = client.post(
        "/api/contact",
        json={"formType": "Trial Class", "fields": {"Name": "Naledi", "Message": "Saturday <slot>?", "Empty": " "}},
    )

    assert response.status_code == 202
    assert response.json() == {"received": True}
    assert notifier.scenarios() == ["form_submission"]
    message = notifier.sent[0]["message"]
    assert message.subject == "New Trial Class Submission"
    assert "Saturday &lt;slot&gt;?" in message.html
    assert "Empty" not in message.html


def test_contact_form_without_fields_is_rejected(client, notifier) -> None:
    response = client.post("/api/contact", json={"fields": {}})

    assert response.status_code == 400
    assert notifier.sent == []
