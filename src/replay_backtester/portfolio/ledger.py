"""Cash and position ledger for a single backtest run."""

from __future__ import annotations

from dataclasses import dataclass, field

from replay_backtester.portfolio.models import EquityPoint, Position, Trade


@dataclass
class PortfolioLedger:
    """Cash, open positions, trade log and equity samples.

    ``positions`` is keyed by symbol, so a symbol has at most one open lot.
    Only the order executor mutates cash and positions during a run.
    """

    initial_capital: float
    cash: float = field(init=False)
    positions: dict[str, Position] = field(default_factory=dict, init=False)
    trades: list[Trade] = field(default_factory=list, init=False)
    equity_history: list[EquityPoint] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        if self.initial_capital < 0:
            raise ValueError("initial_capital must not be negative")
        self.cash = float(self.initial_capital)

    @property
    def positions_value(self) -> float:
        return sum(position.current_value for position in self.positions.values())

    @property
    def total_equity(self) -> float:
        return self.cash + self.positions_value

    @property
    def unrealized_pnl(self) -> float:
        return sum(position.unrealized_pnl for position in self.positions.values())

    def has_position(self, symbol: str) -> bool:
        return symbol in self.positions

    def record_equity(self, timestamp: int) -> EquityPoint:
        point = EquityPoint(timestamp=timestamp, equity=self.total_equity)
        self.equity_history.append(point)
        return point
