"""HTTP client for the Paystack REST API."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from membership_billing.core.config import get_settings
from membership_billing.core.logger import get_logger


logger = get_logger("membership_billing.paystack")


class PaystackClientError(RuntimeError):
    """Raised when a Paystack API request fails."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _customer_body(
    *,
    email: str,
    first_name: str,
    last_name: str,
    phone: str,
    metadata: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    # Blank values would overwrite what Paystack already stores for the email.
    body: Dict[str, Any] = {"email": email}
    for key, value in (("first_name", first_name), ("last_name", last_name), ("phone", phone)):
        if value.strip():
            body[key] = value.strip()
    if metadata:
        body["metadata"] = dict(metadata)
    return body


class PaystackClient:
    def __init__(
        self,
        *,
        secret_key: str,
        base_url: str = "https://api.paystack.co",
        timeout_seconds: int = 20,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._secret_key = secret_key.strip()
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = max(1, timeout_seconds)
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._secret_key)

    def _headers(self) -> Dict[str, str]:
        if not self._secret_key:
            raise PaystackClientError("paystack_secret_key_missing")
        return {
            "Authorization": f"Bearer {self._secret_key}",
            "Content-Type": "application/json",
        }

    def _safe_json(self, response: httpx.Response, *, context: str) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise PaystackClientError(
                f"{context} returned invalid JSON",
                status_code=response.status_code,
            ) from exc
        if not isinstance(payload, dict):
            raise PaystackClientError(
                f"{context} returned invalid payload format",
                status_code=response.status_code,
            )
        return payload

    def _request(
        self,
        method: str,
        path: str,
        *,
        context: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = f"{self._base_url}{path}"
        headers = self._headers()
        try:
            if self._client is not None:
                response = self._client.request(method, url, headers=headers, json=json)
            else:
                with httpx.Client(timeout=self._timeout_seconds) as client:
                    response = client.request(method, url, headers=headers, json=json)
        except httpx.HTTPError as exc:
            raise PaystackClientError(f"{context} request failed") from exc

        payload = self._safe_json(response, context=context)
        if response.status_code >= 400 or not payload.get("status"):
            message = payload.get("message")
            if not isinstance(message, str) or not message.strip():
                message = f"{context} failed with status {response.status_code}"
            raise PaystackClientError(message.strip(), status_code=response.status_code)
        return payload

    @staticmethod
    def _data(payload: Dict[str, Any], *, context: str) -> Dict[str, Any]:
        data = payload.get("data")
        if not isinstance(data, dict):
            raise PaystackClientError(f"{context} response missing data")
        return data

    def create_customer(
        self,
        *,
        email: str,
        first_name: str = "",
        last_name: str = "",
        phone: str = "",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload = self._request(
            "POST",
            "/customer",
            context="Paystack customer creation",
            json=_customer_body(
                email=email,
                first_name=first_name,
                last_name=last_name,
                phone=phone,
                metadata=metadata,
            ),
        )
        return self._data(payload, context="Paystack customer creation")

    def fetch_customer(self, email_or_code: str) -> Dict[str, Any]:
        payload = self._request(
            "GET",
            f"/customer/{quote(email_or_code, safe='')}",
            context="Paystack customer fetch",
        )
        return self._data(payload, context="Paystack customer fetch")

    def create_or_get_customer(
        self,
        *,
        email: str,
        first_name: str = "",
        last_name: str = "",
        phone: str = "",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        try:
            customer = self.create_customer(
                email=email,
                first_name=first_name,
                last_name=last_name,
                phone=phone,
                metadata=metadata,
            )
        except PaystackClientError as exc:
            if "already exists" not in exc.message.lower():
                raise
            logger.info("paystack_customer_exists", email=email)
            customer = self.fetch_customer(email)

        customer_code = customer.get("customer_code")
        if not isinstance(customer_code, str) or not customer_code:
            raise PaystackClientError("Paystack customer response missing customer_code")
        return customer_code

    def initialize_transaction(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = self._request(
            "POST",
            "/transaction/initialize",
            context="Paystack transaction initialization",
            json=payload,
        )
        data = self._data(response, context="Paystack transaction initialization")
        if not data.get("authorization_url"):
            raise PaystackClientError("Paystack initialization response missing authorization_url")
        return data

    def verify_transaction(self, reference: str) -> Dict[str, Any]:
        if not reference.strip():
            raise PaystackClientError("Transaction reference is required")
        return self._request(
            "GET",
            f"/transaction/verify/{quote(reference.strip(), safe='')}",
            context="Paystack transaction verification",
        )

    def create_subscription(self, *, customer_code: str, plan_code: str) -> Dict[str, Any]:
        payload = self._request(
            "POST",
            "/subscription",
            context="Paystack subscription creation",
            json={"customer": customer_code, "plan": plan_code},
        )
        return self._data(payload, context="Paystack subscription creation")


@lru_cache(maxsize=1)
def get_paystack_client() -> PaystackClient:
    settings = get_settings()
    return PaystackClient(
        secret_key=settings.paystack_secret_key,
        base_url=settings.paystack_base_url,
        timeout_seconds=settings.paystack_timeout_seconds,
    )
