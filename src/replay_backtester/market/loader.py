"""Load bars from per-instrument CSV directories.

Layout::

    <directory>/<instrument>/<contract>.csv

Each file carries ``timestamp,open,high,low,close,volume`` with a header row.
The file stem becomes the bar symbol, so one instrument directory can hold
several contracts.
"""

from __future__ import annotations

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Sequence

from replay_backtester.market.models import Bar, datetime_to_ms

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("timestamp", "open", "high", "low", "close", "volume")


class CsvBarSource:
    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def load_bars(self, instruments: Sequence[str]) -> list[Bar]:
        bars: list[Bar] = []
        for instrument in instruments:
            instrument_dir = self.directory / instrument
            if not instrument_dir.is_dir():
                logger.warning("No data directory found for %s", instrument)
                continue
            files = sorted(instrument_dir.glob("*.csv"))
            logger.info("Found %d contract files for %s", len(files), instrument)
            for path in files:
                bars.extend(_read_csv(path))

        bars.sort(key=lambda bar: bar.timestamp)
        logger.info("Loaded %d total bars across %d instruments", len(bars), len(instruments))
        return bars

    def available_instruments(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(path.name for path in self.directory.iterdir() if path.is_dir())

    def contract_files(self, instrument: str) -> list[str]:
        instrument_dir = self.directory / instrument
        if not instrument_dir.is_dir():
            return []
        return sorted(path.name for path in instrument_dir.glob("*.csv"))


def _read_csv(path: Path) -> list[Bar]:
    symbol = path.stem
    with path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        missing = [column for column in REQUIRED_COLUMNS if column not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"{path}: missing columns {', '.join(missing)}")
        return [
            Bar(
                symbol=symbol,
                timestamp=int(row["timestamp"]),
                open=float(row["open"]),
                high=float(row["high"]),
                low=float(row["low"]),
                close=float(row["close"]),
                volume=int(float(row["volume"])),
            )
            for row in reader
        ]


def filter_bars(bars: Iterable[Bar], start: datetime, end: datetime) -> list[Bar]:
    start_ms = datetime_to_ms(start)
    end_ms = datetime_to_ms(end)
    return [bar for bar in bars if start_ms <= bar.timestamp <= end_ms]
