"""Replay engine and event channel."""

from replay_backtester.engine.errors import (
    BacktestError,
    BacktestSetupError,
    NoDataError,
    RunConflictError,
)
from replay_backtester.engine.events import (
    EngineEvent,
    EventChannel,
    EventKind,
    ProgressUpdate,
    Subscription,
)
from replay_backtester.engine.replay import BacktestEngine, EngineState

__all__ = [
    "BacktestEngine",
    "BacktestError",
    "BacktestSetupError",
    "EngineEvent",
    "EngineState",
    "EventChannel",
    "EventKind",
    "NoDataError",
    "ProgressUpdate",
    "RunConflictError",
    "Subscription",
]
