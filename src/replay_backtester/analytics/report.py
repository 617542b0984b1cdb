"""Result rendering and serialization."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from replay_backtester.analytics.models import BacktestResult


def _money(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_summary(result: BacktestResult, strategy_name: Optional[str] = None) -> str:
    rule = "=" * 60
    lines = [rule, "BACKTEST RESULTS", rule]
    if strategy_name:
        lines.append(f"Strategy: {strategy_name}")
    lines.extend(
        [
            f"Period: {result.start:%Y-%m-%d} to {result.end:%Y-%m-%d}",
            f"Instruments: {', '.join(result.instruments)}",
            "",
            f"Initial Capital:    {_money(result.initial_capital):>15}",
            f"Final Capital:      {_money(result.final_capital):>15}",
            f"Total P&L:          {_money(result.total_pnl):>15} ({result.total_pnl_percent:.2f}%)",
            "",
            f"Sharpe Ratio:       {result.sharpe_ratio:>15.3f}",
            f"Max Drawdown:       {result.max_drawdown:>14.2f}% ({_money(result.max_drawdown_dollar)})",
            "",
            f"Total Trades:       {result.number_of_trades:>15}",
            f"Winning Trades:     {result.winning_trades:>15}",
            f"Losing Trades:      {result.losing_trades:>15}",
            f"Win Rate:           {result.win_rate:>14.2f}%",
            "",
            f"Average Win:        {_money(result.average_win):>15}",
            f"Average Loss:       {_money(result.average_loss):>15}",
            f"Profit Factor:      {result.profit_factor:>15.2f}",
            rule,
        ]
    )
    return "\n".join(lines)


def serialize_result(result: BacktestResult) -> dict[str, Any]:
    return {
        "summary": {
            "initial_capital": result.initial_capital,
            "final_capital": result.final_capital,
            "total_pnl": result.total_pnl,
            "total_pnl_percent": result.total_pnl_percent,
            "sharpe_ratio": result.sharpe_ratio,
            "max_drawdown": result.max_drawdown,
            "max_drawdown_dollar": result.max_drawdown_dollar,
            "number_of_trades": result.number_of_trades,
            "winning_trades": result.winning_trades,
            "losing_trades": result.losing_trades,
            "win_rate": result.win_rate,
            "average_win": result.average_win,
            "average_loss": result.average_loss,
            "profit_factor": result.profit_factor,
        },
        "start": result.start.isoformat(),
        "end": result.end.isoformat(),
        "instruments": list(result.instruments),
        "trades": [
            {
                "timestamp": trade.timestamp,
                "time": trade.time.isoformat(),
                "symbol": trade.symbol,
                "action": trade.action.value,
                "price": trade.price,
                "quantity": trade.quantity,
                "fee": trade.fee,
                "pnl": trade.pnl,
            }
            for trade in result.trades
        ],
        "equity_curve": [
            {"timestamp": point.timestamp, "time": point.time.isoformat(), "equity": point.equity}
            for point in result.equity_curve
        ],
    }


def write_result(path: str | Path, result: BacktestResult, metadata: Optional[dict[str, Any]] = None) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"generated_at_utc": datetime.now(timezone.utc).isoformat()}
    if metadata:
        payload.update(metadata)
    payload.update(serialize_result(result))
    path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
    return path
