from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import pytest

from membership_billing.billing.paystack_client import PaystackClient, PaystackClientError
from membership_billing.billing.recurring import enable_recurring_subscription


class _FakeHTTPClient:
    def __init__(self, responses: List[Any]) -> None:
        self._responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def request(self, method: str, url: str, *, headers: Dict[str, str], json: Optional[Dict[str, Any]] = None):
        self.calls.append({"method": method, "url": url, "headers": dict(headers), "json": json})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _client(responses: List[Any], *, secret_key: str = "sk_test_abc") -> tuple[PaystackClient, _FakeHTTPClient]:
    fake = _FakeHTTPClient(responses)
    return PaystackClient(secret_key=secret_key, base_url="https://api.paystack.co/", client=fake), fake


def test_initialize_transaction_posts_with_bearer_auth() -> None:
    client, fake = _client(
        [
            httpx.Response(
                200,
                json={
                    "status": True,
                    "message": "Authorization URL created",
                    "data": {
                        "authorization_url": "https://checkout.paystack.com/0peioxfhpn",
                        "access_code": "0peioxfhpn",
                        "reference": "SUB_1_abcdef",
                    },
                },
            )
        ]
    )

    data = client.initialize_transaction({"email": "thandi@example.com", "amount": 39900})

    assert data["authorization_url"] == "https://checkout.paystack.com/0peioxfhpn"
    assert fake.calls[0]["method"] == "POST"
    assert fake.calls[0]["url"] == "https://api.paystack.co/transaction/initialize"
    assert fake.calls[0]["headers"]["Authorization"] == "Bearer sk_test_abc"
    assert fake.calls[0]["json"]["amount"] == 39900


def test_create_or_get_customer_falls_back_to_fetch_when_customer_exists() -> None:
    client, fake = _client(
        [
            httpx.Response(400, json={"status": False, "message": "Customer already exists"}),
            httpx.Response(
                200,
                json={"status": True, "message": "Customer retrieved", "data": {"customer_code": "CUS_existing"}},
            ),
        ]
    )

    code = client.create_or_get_customer(
        email="thandi+gym@example.com",
        first_name="Thandi",
        last_name="Mokoena",
        phone="+27821234567",
    )

    assert code == "CUS_existing"
    assert fake.calls[0]["url"] == "https://api.paystack.co/customer"
    assert fake.calls[1]["method"] == "GET"
    assert fake.calls[1]["url"] == "https://api.paystack.co/customer/thandi%2Bgym%40example.com"


def test_create_or_get_customer_propagates_other_errors() -> None:
    client, fake = _client([httpx.Response(400, json={"status": False, "message": "Invalid email address"})])

    with pytest.raises(PaystackClientError) as excinfo:
        client.create_or_get_customer(email="bad", first_name="", last_name="", phone="")

    assert excinfo.value.message == "Invalid email address"
    assert excinfo.value.status_code == 400
    assert len(fake.calls) == 1


def test_negative_status_with_http_200_is_an_error() -> None:
    client, _ = _client([httpx.Response(200, json={"status": False, "message": "Duplicate Transaction Reference"})])

    with pytest.raises(PaystackClientError, match="Duplicate Transaction Reference"):
        client.initialize_transaction({"reference": "SUB_1_abcdef"})


def test_verify_transaction_returns_full_envelope() -> None:
    envelope = {"status": True, "message": "Verification successful", "data": {"status": "success", "amount": 39900}}
    client, fake = _client([httpx.Response(200, json=envelope)])

    assert client.verify_transaction("SUB_1700000000000_abc123") == envelope
    assert fake.calls[0]["url"] == "https://api.paystack.co/transaction/verify/SUB_1700000000000_abc123"


def test_transport_and_payload_failures_raise_client_error() -> None:
    request = httpx.Request("GET", "https://api.paystack.co/transaction/verify/x")
    client, _ = _client(
        [
            httpx.ConnectError("connection refused", request=request),
            httpx.Response(502, text="<html>Bad gateway</html>"),
            httpx.Response(200, json=["not", "an", "object"]),
        ]
    )

    for _ in range(3):
        with pytest.raises(PaystackClientError):
            client.verify_transaction("SUB_1700000000000_abc123")


def test_missing_secret_key_fails_before_any_request() -> None:
    client, fake = _client([], secret_key="  ")

    assert client.configured is False
    with pytest.raises(PaystackClientError, match="paystack_secret_key_missing"):
        client.verify_transaction("SUB_1700000000000_abc123")
    assert fake.calls == []


def test_create_subscription_sends_customer_and_plan() -> None:
    client, fake = _client(
        [httpx.Response(200, json={"status": True, "data": {"subscription_code": "SUB_vsyqdmlzble3uii"}})]
    )

    data = client.create_subscription(customer_code="CUS_xnxdt6s1zg1f4nx", plan_code="PLN_gx2wn530m0i3w3m")

    assert data["subscription_code"] == "SUB_vsyqdmlzble3uii"
    assert fake.calls[0]["json"] == {"customer": "CUS_xnxdt6s1zg1f4nx", "plan": "PLN_gx2wn530m0i3w3m"}


def test_create_customer_sends_only_filled_fields() -> None:
    client, fake = _client(
        [httpx.Response(200, json={"status": True, "data": {"customer_code": "CUS_xnxdt6s1zg1f4nx"}})]
    )

    client.create_customer(
        email="thandi@example.com",
        first_name=" Thandi ",
        last_name="",
        phone="+27821234567",
        metadata={"body_goals": "Strength"},
    )

    assert fake.calls[0]["json"] == {
        "email": "thandi@example.com",
        "first_name": "Thandi",
        "phone": "+27821234567",
        "metadata": {"body_goals": "Strength"},
    }


def test_recurring_customer_lookup_posts_email_only() -> None:
    client, fake = _client(
        [
            httpx.Response(200, json={"status": True, "data": {"customer_code": "CUS_xnxdt6s1zg1f4nx"}}),
            httpx.Response(200, json={"status": True, "data": {"subscription_code": "SUB_vsyqdmlzble3uii"}}),
        ]
    )

    result = enable_recurring_subscription(
        client,
        authorization_code="AUTH_8dfhjjdt",
        email="a@b.co",
        plan_code="PLN_gx2wn530m0i3w3m",
    )

    assert result.enabled is True
    assert result.subscription_code == "SUB_vsyqdmlzble3uii"
    assert fake.calls[0]["url"] == "https://api.paystack.co/customer"
    assert fake.calls[0]["json"] == {"email": "a@b.co"}
    assert fake.calls[1]["json"] == {"customer": "CUS_xnxdt6s1zg1f4nx", "plan": "PLN_gx2wn530m0i3w3m"}
