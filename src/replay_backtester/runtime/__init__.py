"""Runtime context and runner exports."""

from replay_backtester.runtime.context import RunContext, create_run_context
from replay_backtester.runtime.runner import BacktestRequest, BacktestRunner, BacktestStatus

__all__ = [
    "BacktestRequest",
    "BacktestRunner",
    "BacktestStatus",
    "RunContext",
    "create_run_context",
]
