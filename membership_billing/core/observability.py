"""Sentry wiring for membership_billing."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

from membership_billing.core.config import get_settings
from membership_billing.core.logger import get_logger


_SENTRY_INITIALIZED = False

SCRUBBED_HEADERS = frozenset({"authorization", "cookie", "x-paystack-signature"})


def _call_sentry_init(**kwargs: Any) -> None:
    sentry_sdk.init(**kwargs)


def scrub_event(event: Dict[str, Any], hint: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Drop credentials and webhook signatures from outgoing Sentry events."""

    del hint
    request = event.get("request")
    if isinstance(request, dict):
        headers = request.get("headers")
        if isinstance(headers, dict):
            request["headers"] = {
                key: ("[Filtered]" if key.lower() in SCRUBBED_HEADERS else value)
                for key, value in headers.items()
            }
        if "data" in request:
            request["data"] = "[Filtered]"
    return event


def init_sentry() -> bool:
    """Initialize Sentry once when DSN is configured."""

    global _SENTRY_INITIALIZED
    if _SENTRY_INITIALIZED:
        return True

    settings = get_settings()
    dsn = settings.sentry_dsn.strip()
    if not dsn:
        return False

    _call_sentry_init(
        dsn=dsn,
        environment=settings.env,
        release=f"{settings.app_name}@{settings.app_version}",
        traces_sample_rate=settings.sentry_traces_sample_rate,
        send_default_pii=False,
        before_send=scrub_event,
        integrations=[FastApiIntegration()],
    )
    _SENTRY_INITIALIZED = True
    get_logger("membership_billing.observability").info(
        "sentry_initialized",
        env=settings.env,
        traces_sample_rate=settings.sentry_traces_sample_rate,
    )
    return True


@contextmanager
def sentry_scope(*, request_id: str | None = None):
    if not _SENTRY_INITIALIZED:
        yield
        return

    with sentry_sdk.new_scope() as scope:
        if request_id:
            scope.set_tag("request_id", request_id)
        yield


def capture_exception(exc: BaseException, **tags: str) -> None:
    """Report ``exc`` with billing tags such as the Paystack event name."""

    if not _SENTRY_INITIALIZED:
        return
    with sentry_sdk.new_scope() as scope:
        for key, value in tags.items():
            if value:
                scope.set_tag(key, value)
        sentry_sdk.capture_exception(exc)


def reset_observability_for_tests() -> None:
    global _SENTRY_INITIALIZED
    _SENTRY_INITIALIZED = False
