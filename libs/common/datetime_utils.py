"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def from_epoch_ms(value: int | float) -> datetime:
    """Convert a millisecond Unix timestamp (as Bitable stores dates) to UTC."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
