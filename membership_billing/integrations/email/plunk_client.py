"""Plunk transactional email API client."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Optional

import httpx

from membership_billing.core.config import get_settings


class EmailClientError(RuntimeError):
    """Raised when email provider operations fail."""


def _truncate(detail: str, limit: int = 200) -> str:
    detail = detail.strip()
    return detail if len(detail) <= limit else detail[:limit] + "..."


class PlunkClient:
    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.useplunk.com/v1",
        timeout_seconds: int = 20,
        sender_name: str = "",
        reply_to: str = "",
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._api_key = api_key.strip()
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = max(1, timeout_seconds)
        self._sender_name = sender_name.strip()
        self._reply_to = reply_to.strip()
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _headers(self) -> Dict[str, str]:
        if not self._api_key:
            raise EmailClientError("email_api_key_missing")
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def _post(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        url = f"{self._base_url}{path}"
        headers = self._headers()
        try:
            if self._client is not None:
                return self._client.post(url, headers=headers, json=payload)
            with httpx.Client(timeout=self._timeout_seconds) as client:
                return client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            raise EmailClientError(f"email_provider_transport_failed error={exc}") from exc

    def send_email(self, *, to: str, subject: str, body: str) -> Dict[str, Any]:
        """Send one HTML email; ``body`` is passed to Plunk untouched."""

        recipient = to.strip()
        if not recipient:
            raise EmailClientError("email_recipient_missing")
        if not subject.strip():
            raise EmailClientError("email_subject_missing")
        if not body.strip():
            raise EmailClientError("email_body_missing")

        payload: Dict[str, Any] = {"to": recipient, "subject": subject.strip(), "body": body}
        if self._sender_name:
            payload["name"] = self._sender_name
        if self._reply_to:
            payload["reply"] = self._reply_to

        response = self._post("/send", payload)
        if not 200 <= response.status_code < 300:
            raise EmailClientError(
                f"email_provider_request_failed status={response.status_code} detail={_truncate(response.text)}"
            )

        try:
            result = response.json()
        except ValueError as exc:
            raise EmailClientError("email_provider_invalid_json_response") from exc
        if not isinstance(result, dict):
            raise EmailClientError("email_provider_invalid_payload")
        if result.get("success") is False:
            raise EmailClientError("email_provider_rejected_message")
        return result


@lru_cache(maxsize=1)
def get_plunk_client() -> PlunkClient:
    settings = get_settings()
    return PlunkClient(
        api_key=settings.plunk_api_key,
        base_url=settings.plunk_api_base_url,
        timeout_seconds=settings.plunk_timeout_seconds,
        sender_name=settings.brand_name,
        reply_to=settings.support_email,
    )
