"""Market data structures."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


def ms_to_datetime(timestamp: int) -> datetime:
    return datetime.fromtimestamp(timestamp / 1000.0, tz=timezone.utc)


def datetime_to_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(round(value.timestamp() * 1000))


@dataclass(frozen=True)
class Bar:
    symbol: str
    timestamp: int  # ms since epoch
    open: float
    high: float
    low: float
    close: float
    volume: int = 0

    @property
    def time(self) -> datetime:
        return ms_to_datetime(self.timestamp)
