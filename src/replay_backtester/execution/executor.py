"""Signal execution against the portfolio ledger."""

from __future__ import annotations

import logging
from typing import Optional

from replay_backtester.market.models import Bar
from replay_backtester.portfolio.ledger import PortfolioLedger
from replay_backtester.portfolio.models import CONTRACT_MULTIPLIER, Position, Trade, TradeAction
from replay_backtester.strategy.models import Signal, SignalType

logger = logging.getLogger(__name__)


class OrderExecutor:
    """Turns signals into trades, applying fee and cash-sufficiency rules.

    Rejections (duplicate BUY, under-funded BUY, SELL without a position)
    return ``None`` and leave the ledger untouched. There are no partial
    fills.
    """

    def __init__(
        self,
        ledger: PortfolioLedger,
        fee_per_trade: float = 1.0,
        audit_log: Optional[object] = None,
    ) -> None:
        if fee_per_trade < 0:
            raise ValueError("fee_per_trade must not be negative")
        self.ledger = ledger
        self.fee_per_trade = fee_per_trade
        self._audit_log = audit_log

    def _log(self, event: str, payload: dict) -> None:
        if self._audit_log is None:
            return
        self._audit_log.log(event, payload)

    def _reject(self, signal: Signal, reason: str, **extra) -> None:
        logger.debug("Rejected %s %s: %s", signal.signal_type.value, signal.symbol, reason)
        self._log(
            "order_rejected",
            {
                "symbol": signal.symbol,
                "action": signal.signal_type.value,
                "timestamp": signal.timestamp,
                "price": signal.price,
                "quantity": signal.quantity,
                "reason": reason,
                **extra,
            },
        )

    def execute_signal(self, signal: Signal) -> Optional[Trade]:
        if signal.signal_type == SignalType.BUY:
            return self._execute_buy(signal)
        if signal.signal_type == SignalType.SELL:
            return self._execute_sell(signal)
        return None

    def _execute_buy(self, signal: Signal) -> Optional[Trade]:
        if self.ledger.has_position(signal.symbol):
            self._reject(signal, "position_already_open")
            return None

        cost = signal.price * signal.quantity * CONTRACT_MULTIPLIER + self.fee_per_trade
        if cost > self.ledger.cash:
            logger.info(
                "Insufficient cash for %s: need %.2f, have %.2f", signal.symbol, cost, self.ledger.cash
            )
            self._reject(signal, "insufficient_cash", cost=cost, cash=self.ledger.cash)
            return None

        self.ledger.positions[signal.symbol] = Position(
            symbol=signal.symbol,
            quantity=signal.quantity,
            entry_price=signal.price,
            entry_time=signal.timestamp,
            current_price=signal.price,
        )
        self.ledger.cash -= cost

        trade = Trade(
            timestamp=signal.timestamp,
            symbol=signal.symbol,
            action=TradeAction.BUY,
            price=signal.price,
            quantity=signal.quantity,
            fee=self.fee_per_trade,
            pnl=0.0,
        )
        self.ledger.trades.append(trade)
        return trade

    def _execute_sell(self, signal: Signal) -> Optional[Trade]:
        position = self.ledger.positions.get(signal.symbol)
        if position is None:
            self._reject(signal, "no_open_position")
            return None

        proceeds = signal.price * signal.quantity * CONTRACT_MULTIPLIER - self.fee_per_trade
        entry_cost = position.entry_price * position.quantity * CONTRACT_MULTIPLIER
        # Realized P&L covers the round trip: both the exit fee and the entry fee.
        pnl = proceeds - entry_cost - self.fee_per_trade

        self.ledger.cash += proceeds
        del self.ledger.positions[signal.symbol]

        trade = Trade(
            timestamp=signal.timestamp,
            symbol=signal.symbol,
            action=TradeAction.SELL,
            price=signal.price,
            quantity=signal.quantity,
            fee=self.fee_per_trade,
            pnl=pnl,
        )
        self.ledger.trades.append(trade)
        return trade

    def mark_to_market(self, bar: Bar) -> None:
        position = self.ledger.positions.get(bar.symbol)
        if position is not None:
            position.current_price = bar.close

    def close_all_positions(self, timestamp: int) -> list[Trade]:
        trades: list[Trade] = []
        for position in list(self.ledger.positions.values()):
            signal = Signal(
                symbol=position.symbol,
                timestamp=timestamp,
                signal_type=SignalType.SELL,
                price=position.current_price,
                quantity=position.quantity,
                reason="Close all positions at end of backtest",
            )
            trade = self._execute_sell(signal)
            if trade is not None:
                trades.append(trade)
        return trades
