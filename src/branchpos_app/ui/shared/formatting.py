from __future__ import annotations

from datetime import datetime, tzinfo
from decimal import ROUND_HALF_UP, Decimal

DEFAULT_CURRENCY_SYMBOL = "₱"


def format_price(amount: Decimal, symbol: str = DEFAULT_CURRENCY_SYMBOL) -> str:
    return f"{symbol}{amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)}"


def _local(timestamp_ms: int, tz: tzinfo | None) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=tz)


def format_date(timestamp_ms: int, tz: tzinfo | None = None) -> str:
    """``Jan 05, 2026``"""
    return _local(timestamp_ms, tz).strftime("%b %d, %Y")


def format_time(timestamp_ms: int, tz: tzinfo | None = None) -> str:
    """``02:30 PM``"""
    return _local(timestamp_ms, tz).strftime("%I:%M %p")
