"""Money / display formatting helpers.

Centralized so routers render IDR, USD, percentages and token amounts with
identical rounding semantics (Decimal, half-up).
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP

_CURRENCY_FORMAT = {
    # currency: (prefix, decimals)
    "IDR": ("Rp", 0),
    "USD": ("US$", 2),
}


def quantize(value: float, places: int) -> Decimal:
    exp = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(exp, rounding=ROUND_HALF_UP)


def _group_id(value: Decimal, places: int) -> str:
    # id-ID convention: '.' groups thousands, ',' separates decimals
    text = f"{abs(value):,.{places}f}"
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"-{text}" if value < 0 else text


def format_currency(amount: float, currency: str) -> str:
    prefix, places = _CURRENCY_FORMAT.get(currency.upper(), _CURRENCY_FORMAT["USD"])
    return f"{prefix} {_group_id(quantize(amount, places), places)}"


def format_percent(fraction: float) -> str:
    return f"{quantize(fraction * 100, 2)}%"


def format_token_amount(amount: float, symbol: str) -> str:
    return f"{quantize(amount, 8)} {symbol}"
