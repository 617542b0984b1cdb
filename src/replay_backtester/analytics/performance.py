"""Risk/return metrics over a finished ledger."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Iterable, Sequence

from replay_backtester.analytics.models import BacktestResult, DrawdownStats, TradeStatistics
from replay_backtester.portfolio.ledger import PortfolioLedger
from replay_backtester.portfolio.models import EquityPoint, Trade, TradeAction

TRADING_DAYS_PER_YEAR = 252
MINUTES_PER_TRADING_DAY = 390
# Equity samples are treated as minute bars when annualizing.
PERIODS_PER_YEAR = TRADING_DAYS_PER_YEAR * MINUTES_PER_TRADING_DAY


def closed_trades(trades: Iterable[Trade]) -> list[Trade]:
    """SELL trades; each one closes exactly one open lot."""
    return [trade for trade in trades if trade.action == TradeAction.SELL]


def trade_statistics(trades: Iterable[Trade]) -> TradeStatistics:
    closed = closed_trades(trades)
    if not closed:
        return TradeStatistics()

    wins = [trade.pnl for trade in closed if trade.pnl > 0]
    losses = [trade.pnl for trade in closed if trade.pnl < 0]
    winning = len(wins)
    # Break-even trades count as losing for the win rate only.
    losing = sum(1 for trade in closed if trade.pnl <= 0)

    total_wins = sum(wins)
    total_losses = abs(sum(losses))
    return TradeStatistics(
        number_of_trades=len(closed),
        winning_trades=winning,
        losing_trades=losing,
        win_rate=winning / len(closed) * 100.0,
        average_win=total_wins / len(wins) if wins else 0.0,
        average_loss=total_losses / len(losses) if losses else 0.0,
        profit_factor=total_wins / total_losses if total_losses > 0 else 0.0,
    )


def equity_returns(equity: Sequence[float]) -> list[float]:
    returns: list[float] = []
    for prev, current in zip(equity, equity[1:]):
        if prev <= 0:
            continue
        returns.append((current - prev) / prev)
    return returns


def sharpe_ratio(
    equity: Sequence[float],
    risk_free_rate: float = 0.04,
    periods_per_year: int = PERIODS_PER_YEAR,
) -> float:
    returns = equity_returns(equity)
    if not returns:
        return 0.0

    mean = sum(returns) / len(returns)
    variance = sum((value - mean) ** 2 for value in returns) / len(returns)
    annualized_std = math.sqrt(variance) * math.sqrt(periods_per_year)
    if annualized_std == 0:
        return 0.0
    annualized_return = mean * periods_per_year
    return (annualized_return - risk_free_rate) / annualized_std


def max_drawdown(equity: Sequence[float]) -> DrawdownStats:
    """Largest decline from the running peak, in percent and dollars.

    The two maxima are tracked independently and may come from different
    samples.
    """
    if not equity:
        return DrawdownStats()

    peak = equity[0]
    max_pct = 0.0
    max_dollar = 0.0
    for value in equity:
        if value > peak:
            peak = value
        drawdown = peak - value
        drawdown_pct = drawdown / peak * 100.0 if peak > 0 else 0.0
        max_dollar = max(max_dollar, drawdown)
        max_pct = max(max_pct, drawdown_pct)
    return DrawdownStats(max_drawdown_pct=max_pct, max_drawdown_dollar=max_dollar)


class PerformanceCalculator:
    def __init__(self, risk_free_rate: float = 0.04) -> None:
        self.risk_free_rate = risk_free_rate

    def calculate(
        self,
        ledger: PortfolioLedger,
        start: datetime,
        end: datetime,
        instruments: Sequence[str],
    ) -> BacktestResult:
        equity_curve: list[EquityPoint] = list(ledger.equity_history)
        equity = [point.equity for point in equity_curve]
        final_capital = ledger.total_equity
        total_pnl = final_capital - ledger.initial_capital
        total_pnl_percent = total_pnl / ledger.initial_capital * 100.0 if ledger.initial_capital else 0.0

        stats = trade_statistics(ledger.trades)
        drawdown = max_drawdown(equity)

        return BacktestResult(
            initial_capital=ledger.initial_capital,
            final_capital=final_capital,
            total_pnl=total_pnl,
            total_pnl_percent=total_pnl_percent,
            sharpe_ratio=sharpe_ratio(equity, self.risk_free_rate),
            max_drawdown=drawdown.max_drawdown_pct,
            max_drawdown_dollar=drawdown.max_drawdown_dollar,
            number_of_trades=stats.number_of_trades,
            winning_trades=stats.winning_trades,
            losing_trades=stats.losing_trades,
            win_rate=stats.win_rate,
            average_win=stats.average_win,
            average_loss=stats.average_loss,
            profit_factor=stats.profit_factor,
            start=start,
            end=end,
            instruments=tuple(instruments),
            equity_curve=tuple(equity_curve),
            trades=tuple(ledger.trades),
        )
