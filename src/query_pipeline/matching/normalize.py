"""Case folding and value coercion shared by every stage.

``to_comparable_string`` is the single conversion used whenever a non-string
value is compared against text. ``to_number`` follows JavaScript ``Number()``
rules so ordering comparisons against non-numeric data yield NaN (and
therefore ``False``) instead of raising.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, time, timezone
from decimal import Decimal
import math
import re
from typing import Any

import orjson

from query_pipeline.matching.fields import is_sequence


_DECIMAL_LITERAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_RADIX_PREFIXES = {"0x": 16, "0o": 8, "0b": 2}


def normalize_case(value: str, case_sensitive: bool) -> str:
    """Return ``value`` unchanged when case sensitive, else lowercased."""
    return value if case_sensitive else value.lower()


def _as_utc(value: date) -> datetime:
    if not isinstance(value, datetime):
        value = datetime.combine(value, time(), tzinfo=timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_iso_utc(value: date) -> str:
    """Render a date/datetime as ISO-8601 UTC with millisecond precision.

    Naive datetimes are taken to be UTC; plain dates are midnight UTC.

    Examples:
        >>> format_iso_utc(datetime(2024, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc))
        '2024-01-02T03:04:05.678Z'
    """
    utc = _as_utc(value)
    return f"{utc.strftime('%Y-%m-%dT%H:%M:%S')}.{utc.microsecond // 1000:03d}Z"


def _format_number(value: int | float) -> str:
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    text = repr(value)
    if "e" not in text:
        return text
    mantissa, exponent = text.split("e")
    power = int(exponent)
    # JavaScript writes 1e-6 <= |x| < 1e21 positionally and drops exponent zero padding
    if -7 < power < 21:
        return format(Decimal(text), "f")
    return f"{mantissa}e{power:+d}"


def to_comparable_string(value: Any) -> str:
    """Convert any record value to the string used for text comparison."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return _format_number(value)
    if isinstance(value, date):
        return format_iso_utc(value)
    if isinstance(value, Mapping):
        return orjson.dumps(value, default=str, option=orjson.OPT_NON_STR_KEYS).decode("utf-8")
    if is_sequence(value):
        return ",".join("" if item is None else to_comparable_string(item) for item in value)
    return str(value)


def _parse_number(text: str) -> float:
    stripped = text.strip()
    if not stripped:
        return 0.0
    if stripped in ("Infinity", "+Infinity"):
        return math.inf
    if stripped == "-Infinity":
        return -math.inf
    base = _RADIX_PREFIXES.get(stripped[:2].lower())
    if base is not None:
        if not stripped[2:].isalnum():
            return math.nan
        try:
            return float(int(stripped[2:], base))
        except ValueError:
            return math.nan
    if _DECIMAL_LITERAL.fullmatch(stripped):
        return float(stripped)
    return math.nan


def to_number(value: Any) -> float:
    """Coerce ``value`` to a float following JavaScript ``Number()`` rules.

    Examples:
        >>> to_number(" 42 ")
        42.0
        >>> to_number("abc")
        nan
        >>> to_number(True)
        1.0
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return _parse_number(value)
    if isinstance(value, date):
        return _as_utc(value).timestamp() * 1000
    return math.nan
