"""Bar replay engine."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Sequence

from replay_backtester.analytics.models import BacktestResult
from replay_backtester.analytics.performance import PerformanceCalculator
from replay_backtester.config.models import EngineConfig
from replay_backtester.engine.errors import BacktestSetupError, NoDataError, RunConflictError
from replay_backtester.engine.events import EventChannel, EventKind, ProgressUpdate
from replay_backtester.execution.executor import OrderExecutor
from replay_backtester.market.models import Bar
from replay_backtester.portfolio.ledger import PortfolioLedger
from replay_backtester.strategy.base import TradingStrategy

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class BacktestEngine:
    """Replays bars through a strategy against a ledger owned by this engine.

    One engine performs one run: IDLE -> RUNNING -> COMPLETED, or FAILED when
    setup is rejected. Starting again while running, or after a terminal
    state, is rejected without touching the ledger.
    """

    def __init__(
        self,
        strategy: TradingStrategy,
        initial_capital: float = 100000.0,
        fee_per_trade: float = 1.0,
        risk_free_rate: float = 0.04,
        equity_interval: int = 100,
        progress_interval: int = 1000,
        channel: Optional[EventChannel] = None,
        audit_log: Optional[object] = None,
    ) -> None:
        if equity_interval <= 0 or progress_interval <= 0:
            raise ValueError("Sampling intervals must be positive")
        if fee_per_trade < 0:
            raise ValueError("fee_per_trade must not be negative")
        self.strategy = strategy
        self.fee_per_trade = fee_per_trade
        self.equity_interval = equity_interval
        self.progress_interval = progress_interval
        self.ledger = PortfolioLedger(initial_capital=initial_capital)
        self.channel = channel if channel is not None else EventChannel(audit_log=audit_log)
        self._calculator = PerformanceCalculator(risk_free_rate)
        self._audit_log = audit_log
        self._state = EngineState.IDLE
        self._state_lock = threading.Lock()
        self.result: Optional[BacktestResult] = None

    @classmethod
    def from_config(
        cls,
        strategy: TradingStrategy,
        config: EngineConfig,
        channel: Optional[EventChannel] = None,
        audit_log: Optional[object] = None,
    ) -> "BacktestEngine":
        return cls(
            strategy,
            initial_capital=config.initial_capital,
            fee_per_trade=config.fee_per_trade,
            risk_free_rate=config.risk_free_rate,
            equity_interval=config.equity_interval,
            progress_interval=config.progress_interval,
            channel=channel,
            audit_log=audit_log,
        )

    @property
    def state(self) -> EngineState:
        return self._state

    def _log(self, event: str, payload: dict) -> None:
        if self._audit_log is None:
            return
        self._audit_log.log(event, payload)

    def _reject(self, exc: BacktestSetupError, fail: bool) -> BacktestSetupError:
        if fail:
            self._state = EngineState.FAILED
        message = str(exc)
        logger.error("Backtest rejected: %s", message)
        self._log("run_rejected", {"reason": message, "state": self._state.value})
        self.channel.publish(EventKind.ERROR, message)
        return exc

    def _begin(self, bars: Sequence[Bar]) -> None:
        with self._state_lock:
            if self._state == EngineState.RUNNING:
                raise self._reject(RunConflictError("A backtest is already running"), fail=False)
            if self._state != EngineState.IDLE:
                raise self._reject(
                    RunConflictError(f"Engine already {self._state.value}; create a new engine per run"),
                    fail=False,
                )
            if not bars:
                raise self._reject(NoDataError("No data for requested instruments"), fail=True)
            for prev, bar in zip(bars, bars[1:]):
                if bar.timestamp < prev.timestamp:
                    raise self._reject(
                        BacktestSetupError(
                            f"Bars out of order at {bar.symbol} {bar.timestamp} (previous {prev.timestamp})"
                        ),
                        fail=True,
                    )
            self._state = EngineState.RUNNING

    def run(
        self,
        bars: Iterable[Bar],
        instruments: Sequence[str],
        start: datetime,
        end: datetime,
    ) -> BacktestResult:
        bars = list(bars)
        self._begin(bars)

        total = len(bars)
        logger.info(
            "Starting backtest: strategy=%s capital=%.2f bars=%d range=%s..%s",
            self.strategy.name,
            self.ledger.initial_capital,
            total,
            f"{start:%Y-%m-%d}",
            f"{end:%Y-%m-%d}",
        )
        self._log(
            "run_started",
            {"strategy": self.strategy.name, "bars": total, "instruments": list(instruments)},
        )

        try:
            result = self._replay(bars, instruments, start, end)
        except Exception as exc:
            self._state = EngineState.FAILED
            logger.exception("Backtest failed")
            self._log("run_failed", {"error": str(exc)})
            self.channel.publish(EventKind.ERROR, f"Backtest failed: {exc}")
            raise

        self.result = result
        self._state = EngineState.COMPLETED
        self._log(
            "run_completed",
            {
                "final_capital": result.final_capital,
                "total_pnl": result.total_pnl,
                "trades": len(result.trades),
            },
        )
        return result

    def _replay(
        self,
        bars: list[Bar],
        instruments: Sequence[str],
        start: datetime,
        end: datetime,
    ) -> BacktestResult:
        self.strategy.reset()
        executor = OrderExecutor(self.ledger, self.fee_per_trade, audit_log=self._audit_log)
        total = len(bars)

        for count, bar in enumerate(bars, start=1):
            executor.mark_to_market(bar)

            signal = self.strategy.on_bar(bar)
            if signal is not None:
                trade = executor.execute_signal(signal)
                if trade is not None:
                    logger.info(
                        "[%s] %s %s @ %.2f | P&L: %.2f | Cash: %.2f",
                        f"{bar.time:%Y-%m-%d %H:%M}",
                        trade.action.value,
                        trade.symbol,
                        trade.price,
                        trade.pnl,
                        self.ledger.cash,
                    )
                    self.channel.publish(EventKind.TRADE, trade)

            last = count == total
            if count % self.equity_interval == 0 or last:
                point = self.ledger.record_equity(bar.timestamp)
                self.channel.publish(EventKind.EQUITY, point)

            if count % self.progress_interval == 0 or last:
                update = ProgressUpdate(current=count, total=total)
                logger.info(
                    "Progress: %d%% (%d/%d) | Equity: %.2f",
                    update.percent,
                    count,
                    total,
                    self.ledger.total_equity,
                )
                self.channel.publish(EventKind.PROGRESS, update)

            self.channel.publish(EventKind.BAR_PROCESSED, bar)

        closing = executor.close_all_positions(bars[-1].timestamp)
        for trade in closing:
            logger.info("Close %s @ %.2f | P&L: %.2f", trade.symbol, trade.price, trade.pnl)
            self.channel.publish(EventKind.TRADE, trade)

        result = self._calculator.calculate(self.ledger, start, end, instruments)
        self.channel.publish(EventKind.COMPLETE, result)
        return result
