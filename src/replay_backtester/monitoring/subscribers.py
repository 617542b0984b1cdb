"""Event channel subscribers for audit and operator notifications."""

from __future__ import annotations

from dataclasses import dataclass

from replay_backtester.engine.events import EngineEvent, EventKind
from replay_backtester.monitoring.audit import AuditLog
from replay_backtester.monitoring.notifier import Notifier


@dataclass
class AuditSubscriber:
    """Writes trade, equity, progress and terminal events to the audit log."""

    audit_log: AuditLog

    def __call__(self, event: EngineEvent) -> None:
        payload = event.payload
        if event.kind == EventKind.TRADE:
            body = {
                "timestamp": payload.timestamp,
                "symbol": payload.symbol,
                "action": payload.action.value,
                "price": payload.price,
                "quantity": payload.quantity,
                "fee": payload.fee,
                "pnl": payload.pnl,
            }
        elif event.kind == EventKind.EQUITY:
            body = {"timestamp": payload.timestamp, "equity": payload.equity}
        elif event.kind == EventKind.PROGRESS:
            body = {"current": payload.current, "total": payload.total}
        elif event.kind == EventKind.COMPLETE:
            body = {
                "final_capital": payload.final_capital,
                "total_pnl": payload.total_pnl,
                "sharpe_ratio": payload.sharpe_ratio,
                "max_drawdown": payload.max_drawdown,
            }
        elif event.kind == EventKind.ERROR:
            body = {"message": str(payload)}
        else:
            return
        body["sequence"] = event.sequence
        self.audit_log.log(f"engine_{event.kind.value}", body)


@dataclass
class NotifierSubscriber:
    notifier: Notifier

    def __call__(self, event: EngineEvent) -> None:
        if event.kind == EventKind.COMPLETE:
            result = event.payload
            self.notifier.notify(
                "COMPLETE",
                f"final capital {result.final_capital:.2f}, P&L {result.total_pnl:.2f} "
                f"({result.total_pnl_percent:.2f}%)",
            )
        elif event.kind == EventKind.ERROR:
            self.notifier.notify("ERROR", str(event.payload))
