"""Lenient numeric parsing for spreadsheet and API values."""
import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_decimal(value: Any) -> Decimal:
    """Parse a money value; blank or malformed input becomes 0."""
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value)) if math.isfinite(value) else Decimal("0")
    text = str(value).strip().replace(",", "")
    if not text:
        return Decimal("0")
    try:
        result = Decimal(text)
    except InvalidOperation:
        return Decimal("0")
    if not result.is_finite():
        return Decimal("0")
    return result


def parse_int(value: Any) -> int:
    """Parse a unit count the way a lenient integer parse would.

    Leading digits win ("12abc" -> 12, "3.9" -> 3); anything else is 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    match = _LEADING_INT.match(str(value))
    if not match:
        return 0
    return int(match.group(1))
