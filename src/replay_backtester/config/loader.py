"""Load and freeze configuration files."""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml

from replay_backtester.config.models import (
    BacktestConfig,
    DataConfig,
    EngineConfig,
    MonitoringConfig,
    StrategyConfig,
)


def load_config(path: str | Path) -> BacktestConfig:
    path = Path(path)
    data = _load_yaml(path)

    name = str(_require(data, "name"))
    version = str(_require(data, "version"))
    run_id_prefix = str(data.get("run_id_prefix", name))
    instruments = [str(item) for item in _require(data, "instruments")]
    if not instruments:
        raise ValueError("Config must list at least one instrument")

    start = _parse_datetime(_require(data, "start"), "start")
    end = _parse_datetime(_require(data, "end"), "end")
    if end < start:
        raise ValueError("Config end must not precede start")

    return BacktestConfig(
        name=name,
        version=version,
        run_id_prefix=run_id_prefix,
        instruments=instruments,
        start=start,
        end=end,
        strategy=_parse_strategy(_require(data, "strategy")),
        engine=_parse_engine(data.get("engine", {})),
        data=_parse_data(data.get("data", {})),
        monitoring=_parse_monitoring(data.get("monitoring", {})),
    )


def compute_config_hash(path: str | Path) -> str:
    path = Path(path)
    content = path.read_bytes()
    return hashlib.sha256(content).hexdigest()


def freeze_config(path: str | Path, lock_path: Optional[str | Path] = None) -> Path:
    path = Path(path)
    config_hash = compute_config_hash(path)
    if lock_path is None:
        lock_path = path.with_suffix(path.suffix + ".lock.json")
    lock_path = Path(lock_path)

    payload = {
        "config_path": str(path),
        "config_hash": config_hash,
        "frozen_at_utc": datetime.now(timezone.utc).isoformat(),
    }
    lock_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return lock_path


def verify_config_lock(path: str | Path, lock_path: Optional[str | Path] = None) -> bool:
    path = Path(path)
    if lock_path is None:
        lock_path = path.with_suffix(path.suffix + ".lock.json")
    lock_path = Path(lock_path)
    if not lock_path.exists():
        return False
    payload = json.loads(lock_path.read_text(encoding="utf-8"))
    return payload.get("config_hash") == compute_config_hash(path)


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Config must be a mapping")
    return data


def _require(data: dict[str, Any], key: str) -> Any:
    if key not in data:
        raise ValueError(f"Missing required config key: {key}")
    return data[key]


def _parse_datetime(value: Any, key: str) -> datetime:
    # PyYAML already turns unquoted ISO dates into date/datetime objects.
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError as exc:
            raise ValueError(f"Invalid {key}: {value}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_strategy(data: dict[str, Any]) -> StrategyConfig:
    return StrategyConfig(
        name=str(_require(data, "name")),
        parameters=dict(data.get("parameters", {})),
    )


def _parse_engine(data: dict[str, Any]) -> EngineConfig:
    config = EngineConfig(
        initial_capital=float(data.get("initial_capital", 100000.0)),
        fee_per_trade=float(data.get("fee_per_trade", 1.0)),
        risk_free_rate=float(data.get("risk_free_rate", 0.04)),
        equity_interval=int(data.get("equity_interval", 100)),
        progress_interval=int(data.get("progress_interval", 1000)),
    )
    if config.initial_capital <= 0:
        raise ValueError("initial_capital must be positive")
    if config.fee_per_trade < 0:
        raise ValueError("fee_per_trade must not be negative")
    if config.equity_interval <= 0 or config.progress_interval <= 0:
        raise ValueError("Sampling intervals must be positive")
    return config


def _parse_data(data: dict[str, Any]) -> DataConfig:
    return DataConfig(directory=str(data.get("directory", "data")))


def _parse_monitoring(data: dict[str, Any]) -> MonitoringConfig:
    return MonitoringConfig(
        audit_log_path=str(data.get("audit_log_path", "runtime/audit.log")),
        log_level=str(data.get("log_level", "INFO")).upper(),
    )


def serialize_config(config: BacktestConfig) -> dict[str, Any]:
    payload = asdict(config)
    payload["start"] = config.start.isoformat()
    payload["end"] = config.end.isoformat()
    return payload
