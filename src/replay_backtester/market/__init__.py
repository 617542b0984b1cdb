"""Bar data and local bar sources."""

from replay_backtester.market.loader import CsvBarSource, filter_bars
from replay_backtester.market.models import Bar, datetime_to_ms, ms_to_datetime

__all__ = [
    "Bar",
    "CsvBarSource",
    "datetime_to_ms",
    "filter_bars",
    "ms_to_datetime",
]
