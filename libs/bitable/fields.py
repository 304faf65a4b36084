"""Lenient accessors for Bitable cell values.

Bitable returns cells in several shapes depending on the column type:
text columns as lists of rich-text spans (``[{"type": "text", "text": "..."}]``),
link columns as ``{"link_record_ids": [...]}`` (or a bare list of ids when
echoing what was written), formula columns as ``{"type": 2, "value": [x]}``,
attachments as lists of file dicts. Every helper here is total: malformed or
missing values fall back to the supplied default instead of raising.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from libs.common.datetime_utils import from_epoch_ms


def text_value(value: Any, default: str = "") -> str:
    """Flatten a text cell (plain string or rich-text span list) to a string."""
    if value is None:
        return default
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, dict):
        if "text" in value:
            return text_value(value.get("text"), default)
        if "value" in value:
            return text_value(value.get("value"), default)
        return default
    if isinstance(value, list):
        parts = [text_value(span, "") for span in value]
        joined = "".join(parts)
        return joined if joined else default
    return default


def _unwrap_scalar(value: Any) -> Any:
    # Formula and lookup cells wrap their result as {"value": [x]}
    if isinstance(value, dict):
        value = value.get("value")
    if isinstance(value, list):
        value = value[0] if value else None
        if isinstance(value, dict):
            value = value.get("text")
    return value


def decimal_value(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    value = _unwrap_scalar(value)
    if value is None or isinstance(value, bool):
        return default
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default
    # NaN and Infinity parse but are not usable amounts
    return number if number.is_finite() else default


def int_value(value: Any, default: int = 0) -> int:
    number = decimal_value(value, Decimal(default))
    try:
        return int(number)
    except (ValueError, OverflowError):
        # NaN / Infinity
        return default


def link_ids(value: Any) -> list[str]:
    """Record ids referenced by a link cell."""
    if isinstance(value, dict):
        value = value.get("link_record_ids")
    if not isinstance(value, list):
        return []
    ids = []
    for item in value:
        if isinstance(item, str):
            ids.append(item)
        elif isinstance(item, dict) and item.get("record_ids"):
            ids.extend(str(rid) for rid in item["record_ids"])
    return ids


def first_attachment(value: Any) -> Optional[dict]:
    if isinstance(value, list) and value and isinstance(value[0], dict):
        return value[0]
    return None


def timestamp_value(value: Any) -> Optional[datetime]:
    """Parse a millisecond timestamp cell, or None when absent/unreadable."""
    value = _unwrap_scalar(value)
    if value is None or isinstance(value, bool):
        return None
    try:
        return from_epoch_ms(float(value))
    except (TypeError, ValueError, OverflowError, OSError):
        return None
