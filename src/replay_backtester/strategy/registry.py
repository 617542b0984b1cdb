"""Build strategies by configured name."""

from __future__ import annotations

from replay_backtester.config.models import StrategyConfig
from replay_backtester.strategy.base import TradingStrategy
from replay_backtester.strategy.ma_crossover import build_ma_crossover_from_config


def build_strategy(config: StrategyConfig) -> TradingStrategy:
    name = config.name
    params = config.parameters
    if name in {"ma_crossover", "moving_average_crossover"}:
        return build_ma_crossover_from_config(params)
    raise ValueError(f"Unknown strategy: {name}")
