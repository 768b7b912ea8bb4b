from types import SimpleNamespace

from membership_billing.core import observability


def test_init_sentry_skips_when_dsn_missing(monkeypatch) -> None:
    observability.reset_observability_for_tests()

    called = {"count": 0}

    def fake_init(**kwargs):  # noqa: ARG001
        called["count"] += 1

    monkeypatch.setattr(observability, "_call_sentry_init", fake_init)
    monkeypatch.setattr(
        observability,
        "get_settings",
        lambda: SimpleNamespace(
            sentry_dsn="",
            env="development",
            app_name="membership_billing",
            app_version="0.1.0",
            sentry_traces_sample_rate=0.0,
        ),
    )

    assert observability.init_sentry() is False
    assert called["count"] == 0
    observability.reset_observability_for_tests()


def test_init_sentry_initializes_once(monkeypatch) -> None:
    observability.reset_observability_for_tests()

    calls = []

    def fake_init(**kwargs):
        calls.append(kwargs)

    monkeypatch.setattr(observability, "FastApiIntegration", lambda: object())
    monkeypatch.setattr(observability, "_call_sentry_init", fake_init)
    monkeypatch.setattr(
        observability,
        "get_settings",
        lambda: SimpleNamespace(
            sentry_dsn="https://abc@example.ingest.sentry.io/1",
            env="production",
            app_name="membership_billing",
            app_version="0.1.0",
            sentry_traces_sample_rate=0.2,
        ),
    )

    assert observability.init_sentry() is True
    assert observability.init_sentry() is True
    assert len(calls) == 1
    assert calls[0]["dsn"] == "https://abc@example.ingest.sentry.io/1"
    assert calls[0]["environment"] == "production"
    assert calls[0]["release"] == "membership_billing@0.1.0"
    assert calls[0]["traces_sample_rate"] == 0.2
    observability.reset_observability_for_tests()


def test_capture_and_scope_are_noops_before_init(monkeypatch) -> None:
    observability.reset_observability_for_tests()
    captured = []
    monkeypatch.setattr(observability.sentry_sdk, "capture_exception", captured.append)

    with observability.sentry_scope(request_id="req-1"):
        observability.capture_exception(RuntimeError("boom"))

    assert captured == []


def test_scrub_event_filters_signature_and_body() -> None:
    event = {
        "request": {
            "headers": {"X-Paystack-Signature": "abc123", "Authorization": "Bearer sk_live", "Accept": "*/*"},
            "data": '{"event":"charge.success"}',
        }
    }

    scrubbed = observability.scrub_event(event)

    assert scrubbed["request"]["headers"]["X-Paystack-Signature"] == "[Filtered]"
    assert scrubbed["request"]["headers"]["Authorization"] == "[Filtered]"
    assert scrubbed["request"]["headers"]["Accept"] == "*/*"
    assert scrubbed["request"]["data"] == "[Filtered]"


def test_init_sentry_registers_scrubber(monkeypatch) -> None:
    observability.reset_observability_for_tests()
    calls = []
    monkeypatch.setattr(observability, "FastApiIntegration", lambda: object())
    monkeypatch.setattr(observability, "_call_sentry_init", lambda **kwargs: calls.append(kwargs))
    monkeypatch.setattr(
        observability,
        "get_settings",
        lambda: SimpleNamespace(
            sentry_dsn="https://abc@example.ingest.sentry.io/1",
            env="production",
            app_name="membership_billing",
            app_version="0.1.0",
            sentry_traces_sample_rate=0.0,
        ),
    )

    assert observability.init_sentry() is True
    assert calls[0]["before_send"] is observability.scrub_event
    assert calls[0]["send_default_pii"] is False
    observability.reset_observability_for_tests()
