"""Epoch-millisecond time helpers."""

from __future__ import annotations

import time
from datetime import UTC, datetime, timedelta

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MS = timedelta(milliseconds=1)


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def to_epoch_ms(value: datetime, *, round_up: bool = False) -> int:
    """Epoch milliseconds, floored unless ``round_up``; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    if round_up:
        return -((EPOCH - value) // _ONE_MS)
    return (value - EPOCH) // _ONE_MS


def from_epoch_ms(value: int) -> datetime:
    return EPOCH + timedelta(milliseconds=value)
