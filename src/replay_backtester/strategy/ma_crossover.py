"""Moving-average crossover strategy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from replay_backtester.market.models import Bar
from replay_backtester.strategy.base import TradingStrategy
from replay_backtester.strategy.indicators import PriceWindow
from replay_backtester.strategy.models import Signal, SignalType


@dataclass(frozen=True)
class MovingAverageCrossoverParams:
    short_period: int = 10
    long_period: int = 30
    quantity: int = 1

    def __post_init__(self) -> None:
        if self.short_period <= 0 or self.long_period <= 0:
            raise ValueError("Moving average periods must be positive")
        if self.quantity <= 0:
            raise ValueError("quantity must be a positive lot count")

    @staticmethod
    def from_dict(data: dict) -> "MovingAverageCrossoverParams":
        return MovingAverageCrossoverParams(
            short_period=int(data.get("short_period", 10)),
            long_period=int(data.get("long_period", 30)),
            quantity=int(data.get("quantity", 1)),
        )


@dataclass
class _InstrumentState:
    prices: PriceWindow
    prev_short: Optional[float] = None
    prev_long: Optional[float] = None
    # Strategy-local view; never reconciled with the ledger.
    holding: bool = False


class MovingAverageCrossoverStrategy(TradingStrategy):
    """BUY when the short SMA crosses above the long SMA, SELL on the cross back.

    A crossover is only detected between two consecutive bars that both have
    defined averages, so the first bar with ``long_period`` samples only seeds
    the previous pair.
    """

    def __init__(self, params: Optional[MovingAverageCrossoverParams] = None) -> None:
        self.params = params or MovingAverageCrossoverParams()
        self._states: dict[str, _InstrumentState] = {}

    @property
    def name(self) -> str:
        return f"MA Crossover ({self.params.short_period}/{self.params.long_period})"

    def reset(self) -> None:
        self._states.clear()

    def is_holding(self, symbol: str) -> bool:
        state = self._states.get(symbol)
        return state.holding if state is not None else False

    def on_bar(self, bar: Bar) -> Optional[Signal]:
        state = self._states.get(bar.symbol)
        if state is None:
            capacity = max(self.params.short_period, self.params.long_period) * 2
            state = _InstrumentState(prices=PriceWindow(capacity))
            self._states[bar.symbol] = state

        state.prices.update(bar.close)
        if len(state.prices) < self.params.long_period:
            return None

        short_ma = state.prices.sma(self.params.short_period)
        long_ma = state.prices.sma(self.params.long_period)
        prev_short, prev_long = state.prev_short, state.prev_long
        state.prev_short, state.prev_long = short_ma, long_ma

        if prev_short is None or prev_long is None:
            return None

        signal_type = self._detect_crossover(prev_short, prev_long, short_ma, long_ma, state.holding)
        if signal_type == SignalType.HOLD:
            return None

        state.holding = signal_type == SignalType.BUY
        return Signal(
            symbol=bar.symbol,
            timestamp=bar.timestamp,
            signal_type=signal_type,
            price=bar.close,
            quantity=self.params.quantity,
            reason=f"MA Crossover: Short={short_ma:.2f}, Long={long_ma:.2f}",
        )

    @staticmethod
    def _detect_crossover(
        prev_short: float,
        prev_long: float,
        short_ma: float,
        long_ma: float,
        holding: bool,
    ) -> SignalType:
        if prev_short <= prev_long and short_ma > long_ma and not holding:
            return SignalType.BUY
        if prev_short >= prev_long and short_ma < long_ma and holding:
            return SignalType.SELL
        return SignalType.HOLD


def build_ma_crossover_from_config(parameters: dict) -> MovingAverageCrossoverStrategy:
    return MovingAverageCrossoverStrategy(MovingAverageCrossoverParams.from_dict(parameters))
