"""Strategy base interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from replay_backtester.market.models import Bar
from replay_backtester.strategy.models import Signal


class TradingStrategy(ABC):
    @property
    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def on_bar(self, bar: Bar) -> Optional[Signal]:
        """Consume the next bar and return a BUY/SELL signal, or None to hold."""
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        raise NotImplementedError
