"""Backtest result records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from replay_backtester.portfolio.models import EquityPoint, Trade


@dataclass(frozen=True)
class TradeStatistics:
    number_of_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0
    profit_factor: float = 0.0


@dataclass(frozen=True)
class DrawdownStats:
    max_drawdown_pct: float = 0.0
    max_drawdown_dollar: float = 0.0


@dataclass(frozen=True)
class BacktestResult:
    initial_capital: float
    final_capital: float
    total_pnl: float
    total_pnl_percent: float
    sharpe_ratio: float
    max_drawdown: float
    max_drawdown_dollar: float
    number_of_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    average_win: float
    average_loss: float
    profit_factor: float
    start: datetime
    end: datetime
    instruments: tuple[str, ...]
    equity_curve: tuple[EquityPoint, ...]
    trades: tuple[Trade, ...]
