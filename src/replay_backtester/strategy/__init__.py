"""Strategy implementations."""

from replay_backtester.strategy.base import TradingStrategy
from replay_backtester.strategy.indicators import PriceWindow
from replay_backtester.strategy.ma_crossover import (
    MovingAverageCrossoverParams,
    MovingAverageCrossoverStrategy,
    build_ma_crossover_from_config,
)
from replay_backtester.strategy.models import Signal, SignalType
from replay_backtester.strategy.registry import build_strategy

__all__ = [
    "MovingAverageCrossoverParams",
    "MovingAverageCrossoverStrategy",
    "PriceWindow",
    "Signal",
    "SignalType",
    "TradingStrategy",
    "build_ma_crossover_from_config",
    "build_strategy",
]
