"""Locale-tolerant money parsing and pt-BR formatting"""

import math
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

_NON_NUMERIC = re.compile(r"[^\d,.\-]")
_NON_DIGIT = re.compile(r"\D")

CURRENCY_PREFIXES = {
    "BRL": "R$",
    "USD": "US$",
    "EUR": "€",
}


def parse_amount(raw) -> float:
    """
    Parse free-text money input into a float. Never raises.

    Rules:
    - Everything except digits, ',', '.', '-' is dropped
    - ',' and '.' both present: '.' groups thousands, ',' is the decimal mark
    - Only ',': it is the decimal mark
    - Only '.', more than once: all but the last group thousands
    - A '-' anywhere but the first position is dropped

    Empty or unparseable input returns 0.

    Example:
        "R$ 1.234,56" -> 1234.56
        "1.234.567"   -> 1234.567
    """
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return float(raw) if math.isfinite(raw) else 0.0
    if not isinstance(raw, str):
        return 0.0

    sanitized = _NON_NUMERIC.sub("", raw.strip())
    if not sanitized:
        return 0.0

    has_comma = "," in sanitized
    has_dot = "." in sanitized
    normalized = sanitized

    if has_comma and has_dot:
        normalized = sanitized.replace(".", "").replace(",", ".", 1)
    elif has_comma:
        normalized = sanitized.replace(",", ".", 1)
    elif has_dot:
        parts = sanitized.split(".")
        if len(parts) > 2:
            normalized = "".join(parts[:-1]) + "." + parts[-1]

    normalized = normalized[:1] + normalized[1:].replace("-", "")
    return _parse_float_prefix(normalized)


def _parse_float_prefix(text: str) -> float:
    # Leading numeric prefix only, so "12.5.3" or "1,2,3" degrade instead of failing
    match = re.match(r"-?(\d+\.?\d*|\.\d+)", text)
    if not match:
        return 0.0
    value = float(match.group(0))
    return value if math.isfinite(value) else 0.0


def _with_prefix(formatted: str, prefix: str) -> str:
    prefix = (prefix or "").strip()
    return f"{prefix} {formatted}" if prefix else formatted


def _format_pt_br(value: float) -> str:
    # 1234567.891 -> "1.234.567,89"; half-cents round away from zero
    cents = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{cents:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")


def format_currency_input(value: str, prefix: str = "R$") -> str:
    """Format a stream of typed digits as cents: "123456" -> "R$ 1.234,56" """
    digits = _NON_DIGIT.sub("", value or "")
    if not digits:
        return ""
    return _with_prefix(_format_pt_br(int(digits) / 100), prefix)


def format_amount(value, prefix: str = "R$") -> str:
    """
    Format a number with two decimals, ',' decimal mark and '.' thousands.

    Strings are treated as typed digits (see format_currency_input).
    None and non-finite numbers format as "".
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return format_currency_input(value, prefix)
    if not math.isfinite(value):
        return ""
    return _with_prefix(_format_pt_br(value), prefix)


def format_currency(amount: Optional[float], currency: str = "BRL") -> str:
    """Format an amount for display in one of the supported currencies"""
    safe_amount = amount if isinstance(amount, (int, float)) and math.isfinite(amount) else 0.0
    return f"{CURRENCY_PREFIXES[currency]} {_format_pt_br(safe_amount)}"


def parse_int_value(raw) -> int:
    """Leading integer of `raw`, or 0"""
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if not isinstance(raw, str):
        return 0
    match = re.match(r"\s*([+-]?\d+)", raw)
    return int(match.group(1)) if match else 0


def parse_positive_int(raw) -> Optional[int]:
    value = parse_int_value(raw)
    return value if value > 0 else None
