"""Central runtime configuration for membership_billing."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    env: str = "development"
    log_level: str = "INFO"
    app_name: str = "membership_billing"
    app_version: str = "0.1.0"
    brand_name: str = "SheGymz"
    paystack_secret_key: str = ""
    paystack_public_key: str = ""
    paystack_base_url: str = "https://api.paystack.co"
    paystack_timeout_seconds: int = 20
    paystack_callback_url: str = "http://localhost:3000/payment-success"
    paystack_plan_code: str = ""
    paystack_channels: str = "card,bank,ussd,mobile_money"
    subscription_amount: str = "399"
    subscription_currency: str = "ZAR"
    plunk_api_key: str = ""
    plunk_api_base_url: str = "https://api.useplunk.com/v1"
    plunk_timeout_seconds: int = 20
    admin_email: str = "admin@shegymz.com"
    support_email: str = "support@shegymz.com"
    sentry_dsn: str = ""
    sentry_traces_sample_rate: float = 0.0
    metrics_enabled: bool = True
    ip_rate_limit_enabled: bool = True
    ip_rate_limit_requests_per_window: int = 120
    ip_rate_limit_window_seconds: int = 60

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def subscription_amount_minor(self) -> int:
        """Subscription price in the currency's minor units (kobo/cents)."""

        return int((Decimal(self.subscription_amount.strip()) * 100).quantize(Decimal("1")))

    @property
    def paystack_channel_list(self) -> list[str]:
        return [item.strip() for item in self.paystack_channels.split(",") if item.strip()]


def _validate(settings: Settings) -> Settings:
    is_production = settings.env.lower() in {"prod", "production"}
    if is_production:
        required_production_values = {
            "PAYSTACK_SECRET_KEY": settings.paystack_secret_key,
            "PAYSTACK_CALLBACK_URL": settings.paystack_callback_url,
            "PLUNK_API_KEY": settings.plunk_api_key,
            "ADMIN_EMAIL": settings.admin_email,
        }
        missing = [name for name, value in required_production_values.items() if not str(value).strip()]
        if missing:
            joined = ", ".join(sorted(missing))
            raise ValueError(f"Missing required production secrets/config: {joined}.")
    try:
        amount = Decimal(settings.subscription_amount.strip())
    except InvalidOperation as exc:
        raise ValueError("SUBSCRIPTION_AMOUNT must be a decimal number.") from exc
    if not amount.is_finite() or amount <= 0:
        raise ValueError("SUBSCRIPTION_AMOUNT must be positive.")
    currency = settings.subscription_currency.strip()
    if len(currency) != 3 or not currency.isalpha():
        raise ValueError("SUBSCRIPTION_CURRENCY must be a 3-letter currency code.")
    if settings.paystack_timeout_seconds <= 0:
        raise ValueError("PAYSTACK_TIMEOUT_SECONDS must be positive.")
    if settings.plunk_timeout_seconds <= 0:
        raise ValueError("PLUNK_TIMEOUT_SECONDS must be positive.")
    if settings.sentry_traces_sample_rate < 0 or settings.sentry_traces_sample_rate > 1:
        raise ValueError("SENTRY_TRACES_SAMPLE_RATE must be between 0 and 1.")
    if settings.ip_rate_limit_requests_per_window <= 0:
        raise ValueError("IP_RATE_LIMIT_REQUESTS_PER_WINDOW must be positive.")
    if settings.ip_rate_limit_window_seconds <= 0:
        raise ValueError("IP_RATE_LIMIT_WINDOW_SECONDS must be positive.")
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return validated settings as a cached singleton."""

    return _validate(Settings())
