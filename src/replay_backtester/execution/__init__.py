"""Order execution."""

from replay_backtester.execution.executor import OrderExecutor

__all__ = ["OrderExecutor"]
