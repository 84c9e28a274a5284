"""Value coercion helpers for loosely-typed records.

Records arrive from arbitrary data sources, so the same field may hold ints,
floats, numeric strings, booleans or nothing at all. These helpers define one
consistent coercion used by filters, aggregation and geometry code:

- numeric coercion never raises and yields NaN for non-numeric input,
- string coercion renders integral floats without a trailing `.0`,
- missing means "key absent or value None".
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from decimal import Decimal
from typing import Any


def is_missing(record: Mapping[str, Any], field: str) -> bool:
    """Return True when `field` is absent from `record` or holds None."""

    return record.get(field) is None


def to_number(value: object) -> float:
    """Coerce a value to float, returning NaN when it is not numeric.

    Args:
        value: Raw record value.

    Returns:
        The numeric value, or `math.nan` for None, blank strings and any
        value that cannot be parsed as a number.
    """

    if value is None:
        return math.nan
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return math.nan
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def to_finite(value: object, *, default: float = 0.0) -> float:
    """Coerce a value to a finite float, substituting `default` otherwise."""

    number = to_number(value)
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def to_text(value: object) -> str:
    """Coerce a value to its display string.

    Notes:
        None becomes "", booleans become "true"/"false" and integral floats
        drop their fractional part so `1.0` and `"1"` compare equal.
    """

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)

