"""FastAPI application entrypoint for membership_billing."""

from __future__ import annotations

from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from membership_billing.billing.paystack_client import get_paystack_client
from membership_billing.billing.webhooks import router as webhook_router
from membership_billing.core.config import get_settings
from membership_billing.core.logger import bind_request_context, clear_request_context, get_logger
from membership_billing.core.metrics import record_http_request, record_rate_limit_block, render_prometheus_metrics
from membership_billing.core.observability import init_sentry, sentry_scope
from membership_billing.core.rate_limit import RateLimitDecision, get_ip_rate_limiter, is_rate_limited_path
from membership_billing.integrations.email import get_plunk_client
from membership_billing.subscribe.router import router as subscribe_router


settings = get_settings()
logger = get_logger("membership_billing.api")

app = FastAPI(title=settings.app_name, version=settings.app_version)


def _resolve_client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _apply_rate_limit_headers(response: Response, decision: RateLimitDecision) -> None:
    response.headers["x-rate-limit-limit"] = str(decision.limit)
    response.headers["x-rate-limit-remaining"] = str(decision.remaining)
    response.headers["x-rate-limit-reset"] = str(decision.reset_seconds)


def _gateway_configured() -> bool:
    return get_paystack_client().configured


def _email_configured() -> bool:
    return get_plunk_client().configured


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    started_at = perf_counter()
    request_id = request.headers.get("x-request-id", str(uuid4()))
    bind_request_context(request_id, path=request.url.path)

    response = None
    decision = None
    status_code = 500

    try:
        with sentry_scope(request_id=request_id):
            if (
                settings.ip_rate_limit_enabled
                and settings.env.lower() in {"prod", "production"}
                and is_rate_limited_path(request.url.path)
            ):
                limiter = get_ip_rate_limiter()
                decision = limiter.check(ip=_resolve_client_ip(request), scope=request.url.path)
                if not decision.allowed:
                    record_rate_limit_block(kind="ip")
                    response = JSONResponse(
                        status_code=429,
                        content={
                            "error": "Rate limit exceeded",
                            "limit": decision.limit,
                            "remaining": decision.remaining,
                            "reset_seconds": decision.reset_seconds,
                        },
                    )
                else:
                    response = await call_next(request)
            else:
                response = await call_next(request)
        status_code = int(response.status_code)
    finally:
        duration = perf_counter() - started_at
        if settings.metrics_enabled:
            record_http_request(
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_seconds=duration,
            )
        clear_request_context()

    if decision is not None:
        _apply_rate_limit_headers(response, decision)
    response.headers["x-request-id"] = request_id
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = str(first.get("msg") or "Invalid request body")
    detail = f"{location}: {message}" if location else message
    logger.info("request_validation_failed", path=request.url.path, error=detail)
    return JSONResponse(status_code=400, content={"error": detail})


@app.on_event("startup")
def on_startup() -> None:
    sentry_enabled = init_sentry()
    logger.info(
        "application_startup",
        env=settings.env,
        version=settings.app_version,
        sentry_enabled=sentry_enabled,
        metrics_enabled=settings.metrics_enabled,
        ip_rate_limit_enabled=settings.ip_rate_limit_enabled,
        gateway_configured=_gateway_configured(),
        email_configured=_email_configured(),
    )


@app.get("/health")
def health() -> JSONResponse:
    gateway_ok = _gateway_configured()
    email_ok = _email_configured()
    services = {
        "paystack": {"ok": gateway_ok, "error": None if gateway_ok else "paystack_secret_key_missing"},
        "email": {"ok": email_ok, "error": None if email_ok else "email_api_key_missing"},
    }
    healthy = gateway_ok and email_ok
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "ok" if healthy else "degraded", "services": services},
    )


@app.get("/version")
def version() -> dict[str, str]:
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "env": settings.env,
    }


@app.get("/metrics")
def metrics() -> PlainTextResponse:
    if not settings.metrics_enabled:
        return PlainTextResponse("metrics disabled\n", status_code=404)

    payload = render_prometheus_metrics(
        app_name=settings.app_name,
        app_version=settings.app_version,
        env=settings.env,
    )
    return PlainTextResponse(
        payload,
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )


app.include_router(subscribe_router)
app.include_router(webhook_router)
