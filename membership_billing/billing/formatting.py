"""Display helpers for gateway amounts, dates and names."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Tuple


CURRENCY_SYMBOLS = {
    "ZAR": "R",
    "NGN": "₦",
    "GHS": "GH₵",
    "KES": "KSh",
    "USD": "$",
}


def format_amount(amount_minor: int, currency: str = "ZAR") -> str:
    """Render an amount in minor units as ``<symbol><major>.<cents>``."""

    major = (Decimal(int(amount_minor)) / Decimal(100)).quantize(Decimal("0.01"))
    code = (currency or "").strip().upper()
    symbol = CURRENCY_SYMBOLS.get(code, f"{code} " if code else "")
    return f"{symbol}{major}"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    raw = (value or "").strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def format_payment_date(value: Optional[str], *, now: Optional[datetime] = None) -> str:
    """Long-form date such as ``18 October 2026``; unparseable input uses today."""

    parsed = parse_timestamp(value) or now or datetime.now(timezone.utc)
    return f"{parsed.day} {parsed.strftime('%B %Y')}"


def split_name(full_name: str) -> Tuple[str, str]:
    parts = full_name.split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])
