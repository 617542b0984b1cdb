"""Strategy decision models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SignalType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


@dataclass(frozen=True)
class Signal:
    symbol: str
    timestamp: int
    signal_type: SignalType
    price: float
    quantity: int = 1
    reason: str = ""
