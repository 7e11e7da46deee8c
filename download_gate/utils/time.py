"""UTC time helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def to_epoch_seconds(value: datetime) -> int:
    """Return whole unix seconds for an aware datetime."""
    return int(value.timestamp())
