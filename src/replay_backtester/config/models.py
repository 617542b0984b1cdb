"""Configuration models for reproducible runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class StrategyConfig:
    name: str
    parameters: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EngineConfig:
    initial_capital: float = 100000.0
    fee_per_trade: float = 1.0
    risk_free_rate: float = 0.04
    equity_interval: int = 100
    progress_interval: int = 1000


@dataclass(frozen=True)
class DataConfig:
    directory: str = "data"


@dataclass(frozen=True)
class MonitoringConfig:
    audit_log_path: str = "runtime/audit.log"
    log_level: str = "INFO"


@dataclass(frozen=True)
class BacktestConfig:
    name: str
    version: str
    run_id_prefix: str
    instruments: list[str]
    start: datetime
    end: datetime
    strategy: StrategyConfig
    engine: EngineConfig = EngineConfig()
    data: DataConfig = DataConfig()
    monitoring: MonitoringConfig = MonitoringConfig()
