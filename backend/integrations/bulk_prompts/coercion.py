import math
import re
from typing import Any

TRUTHY_VALUES = frozenset({"true", "1", "yes"})

_LEADING_INT = re.compile(r"^[+-]?\d+")


def coerce_non_negative_int(value: Any, default: int) -> int:
    """Parse a base-10 integer, clamping negatives to 0.

    Unparseable or empty values return ``default``. Only the leading digits
    are read, so "12 views" gives 12.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return default
        return max(0, int(value))

    text = str(value).strip()
    if not text:
        return default
    match = _LEADING_INT.match(text)
    if not match:
        return default
    try:
        return max(0, int(match.group(0)))
    except ValueError:
        return default


def coerce_boolean(value: Any, default: bool) -> bool:
    """Return True for "true"/"1"/"yes" (any case), else ``default``."""
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    text = str(value).strip().lower()
    if text in TRUTHY_VALUES:
        return True
    return default
