"""Ledger records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from replay_backtester.market.models import ms_to_datetime

# Options quote per share; one contract covers 100 shares.
CONTRACT_MULTIPLIER = 100


class TradeAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


@dataclass
class Position:
    symbol: str
    quantity: int
    entry_price: float
    entry_time: int
    current_price: float

    @property
    def current_value(self) -> float:
        return self.quantity * self.current_price * CONTRACT_MULTIPLIER

    @property
    def unrealized_pnl(self) -> float:
        return (self.current_price - self.entry_price) * self.quantity * CONTRACT_MULTIPLIER


@dataclass(frozen=True)
class Trade:
    timestamp: int
    symbol: str
    action: TradeAction
    price: float
    quantity: int
    fee: float
    pnl: float = 0.0

    @property
    def time(self) -> datetime:
        return ms_to_datetime(self.timestamp)


@dataclass(frozen=True)
class EquityPoint:
    timestamp: int
    equity: float

    @property
    def time(self) -> datetime:
        return ms_to_datetime(self.timestamp)
