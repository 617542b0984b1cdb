"""Config loading and freezing."""

from replay_backtester.config.loader import (
    compute_config_hash,
    freeze_config,
    load_config,
    serialize_config,
    verify_config_lock,
)
from replay_backtester.config.models import (
    BacktestConfig,
    DataConfig,
    EngineConfig,
    MonitoringConfig,
    StrategyConfig,
)

__all__ = [
    "BacktestConfig",
    "DataConfig",
    "EngineConfig",
    "MonitoringConfig",
    "StrategyConfig",
    "compute_config_hash",
    "freeze_config",
    "load_config",
    "serialize_config",
    "verify_config_lock",
]
