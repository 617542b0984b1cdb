"""Performance analytics and reporting."""

from replay_backtester.analytics.models import BacktestResult, DrawdownStats, TradeStatistics
from replay_backtester.analytics.performance import (
    PERIODS_PER_YEAR,
    PerformanceCalculator,
    closed_trades,
    equity_returns,
    max_drawdown,
    sharpe_ratio,
    trade_statistics,
)
from replay_backtester.analytics.report import format_summary, serialize_result, write_result

__all__ = [
    "BacktestResult",
    "DrawdownStats",
    "PERIODS_PER_YEAR",
    "PerformanceCalculator",
    "TradeStatistics",
    "closed_trades",
    "equity_returns",
    "format_summary",
    "max_drawdown",
    "serialize_result",
    "sharpe_ratio",
    "trade_statistics",
    "write_result",
]
