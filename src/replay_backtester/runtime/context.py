"""Identity and provenance of a single backtest run."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from replay_backtester.config.loader import compute_config_hash
from replay_backtester.config.models import BacktestConfig


@dataclass(frozen=True)
class RunContext:
    run_id: str
    config_path: Path
    config_hash: str
    strategy: str
    instruments: tuple[str, ...]
    start: datetime
    end: datetime
    created_at: datetime

    def metadata(self) -> dict[str, Any]:
        """Fields recorded alongside audit events and result files."""
        return {
            "run_id": self.run_id,
            "config_path": str(self.config_path),
            "config_hash": self.config_hash,
            "strategy": self.strategy,
            "instruments": list(self.instruments),
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "created_at_utc": self.created_at.isoformat(),
        }


def create_run_context(
    config_path: str | Path,
    config: BacktestConfig,
    run_id: Optional[str] = None,
) -> RunContext:
    path = Path(config_path)
    config_hash = compute_config_hash(path)
    created_at = datetime.now(timezone.utc)
    if run_id is None:
        # <prefix>-<first day>-<last day>-<created>-<config hash prefix>
        run_id = (
            f"{config.run_id_prefix}-{config.start:%Y%m%d}-{config.end:%Y%m%d}"
            f"-{created_at:%Y%m%dT%H%M%SZ}-{config_hash[:8]}"
        )
    return RunContext(
        run_id=run_id,
        config_path=path,
        config_hash=config_hash,
        strategy=config.strategy.name,
        instruments=tuple(config.instruments),
        start=config.start,
        end=config.end,
        created_at=created_at,
    )
