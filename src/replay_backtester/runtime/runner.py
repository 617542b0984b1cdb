"""Guarded backtest runner for service callers."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from replay_backtester.analytics.models import BacktestResult
from replay_backtester.config.models import EngineConfig, StrategyConfig
from replay_backtester.engine.errors import BacktestSetupError
from replay_backtester.engine.events import EngineEvent, EventChannel, EventKind
from replay_backtester.engine.replay import BacktestEngine
from replay_backtester.market.loader import filter_bars
from replay_backtester.market.models import Bar
from replay_backtester.strategy.registry import build_strategy

logger = logging.getLogger(__name__)


class BarSource(Protocol):
    def load_bars(self, instruments: Sequence[str]) -> list[Bar]: ...


@dataclass(frozen=True)
class BacktestRequest:
    instruments: list[str]
    start: datetime
    end: datetime
    short_period: int = 10
    long_period: int = 30
    initial_capital: float = 100000.0
    strategy: Optional[StrategyConfig] = None

    def strategy_config(self) -> StrategyConfig:
        if self.strategy is not None:
            return self.strategy
        return StrategyConfig(
            name="ma_crossover",
            parameters={"short_period": self.short_period, "long_period": self.long_period},
        )


@dataclass(frozen=True)
class BacktestStatus:
    is_running: bool
    progress: int
    message: str = ""


@dataclass
class _RunnerState:
    is_running: bool = False
    progress: int = 0
    message: str = ""
    last_result: Optional[BacktestResult] = field(default=None, repr=False)


class BacktestRunner:
    """Loads data, builds the strategy and runs one backtest at a time.

    A request that arrives while another run is active is answered with an
    error event and ``None``.
    """

    def __init__(
        self,
        bar_source: BarSource,
        engine_config: Optional[EngineConfig] = None,
        channel: Optional[EventChannel] = None,
        audit_log: Optional[object] = None,
    ) -> None:
        self.bar_source = bar_source
        self.engine_config = engine_config or EngineConfig()
        self._audit_log = audit_log
        self.channel = channel if channel is not None else EventChannel(audit_log=audit_log)
        self._lock = threading.Lock()
        self._state = _RunnerState()
        self._progress_subscription = self.channel.subscribe(
            self._on_progress, kinds={EventKind.PROGRESS}, name="runner-progress"
        )

    def _on_progress(self, event: EngineEvent) -> None:
        update = event.payload
        with self._lock:
            if not self._state.is_running:
                return
            self._state.progress = update.percent
            self._state.message = f"Processing bars: {update.current}/{update.total}"

    def _set_status(self, **changes: Any) -> None:
        with self._lock:
            for key, value in changes.items():
                setattr(self._state, key, value)

    def status(self) -> BacktestStatus:
        with self._lock:
            return BacktestStatus(
                is_running=self._state.is_running,
                progress=self._state.progress,
                message=self._state.message,
            )

    @property
    def last_result(self) -> Optional[BacktestResult]:
        return self._state.last_result

    def run(self, request: BacktestRequest) -> Optional[BacktestResult]:
        with self._lock:
            if self._state.is_running:
                busy = True
            else:
                busy = False
                self._state.is_running = True
                self._state.progress = 0
                self._state.message = "Starting backtest..."
        if busy:
            logger.warning("Rejected backtest request; a backtest is already running")
            self.channel.publish(EventKind.ERROR, "A backtest is already running")
            return None

        try:
            try:
                engine, bars = self._prepare(request)
            except Exception as exc:
                logger.exception("Backtest setup failed")
                self._fail(f"Backtest failed: {exc}")
                return None
            if engine is None:
                return None

            try:
                result = engine.run(bars, request.instruments, request.start, request.end)
            except BacktestSetupError as exc:
                self._set_status(message=str(exc))
                return None
            except Exception as exc:
                # The engine has already published the error event.
                self._set_status(message=f"Backtest failed: {exc}")
                return None

            self._progress_subscription.flush()
            self._set_status(progress=100, message="Backtest complete", last_result=result)
            return result
        finally:
            self._set_status(is_running=False)

    def _prepare(self, request: BacktestRequest) -> tuple[Optional[BacktestEngine], list[Bar]]:
        self._set_status(message="Loading data...")
        bars = self.bar_source.load_bars(request.instruments)
        if not bars:
            self._fail("No data found for specified instruments")
            return None, []
        self._set_status(progress=10, message=f"Loaded {len(bars)} bars")

        bars = filter_bars(bars, request.start, request.end)
        self._set_status(progress=15, message=f"Filtered to {len(bars)} bars in date range")

        strategy = build_strategy(request.strategy_config())
        config = EngineConfig(
            initial_capital=request.initial_capital,
            fee_per_trade=self.engine_config.fee_per_trade,
            risk_free_rate=self.engine_config.risk_free_rate,
            equity_interval=self.engine_config.equity_interval,
            progress_interval=self.engine_config.progress_interval,
        )
        engine = BacktestEngine.from_config(strategy, config, channel=self.channel, audit_log=self._audit_log)
        return engine, bars

    def _fail(self, message: str) -> None:
        logger.error(message)
        self._set_status(message=message)
        self.channel.publish(EventKind.ERROR, message)

    async def run_async(self, request: BacktestRequest) -> Optional[BacktestResult]:
        return await asyncio.to_thread(self.run, request)

    def close(self) -> None:
        self.channel.unsubscribe(self._progress_subscription)
