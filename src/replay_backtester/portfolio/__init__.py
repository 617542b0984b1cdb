"""Portfolio ledger and records."""

from replay_backtester.portfolio.ledger import PortfolioLedger
from replay_backtester.portfolio.models import (
    CONTRACT_MULTIPLIER,
    EquityPoint,
    Position,
    Trade,
    TradeAction,
)

__all__ = [
    "CONTRACT_MULTIPLIER",
    "EquityPoint",
    "PortfolioLedger",
    "Position",
    "Trade",
    "TradeAction",
]
