import pytest

from replay_backtester.execution import OrderExecutor
from replay_backtester.market import Bar
from replay_backtester.monitoring import AuditLog
from replay_backtester.portfolio import PortfolioLedger, TradeAction
from replay_backtester.strategy import Signal, SignalType


def _signal(kind, price, symbol="OPT", timestamp=1_000, quantity=1):
    return Signal(symbol=symbol, timestamp=timestamp, signal_type=kind, price=price, quantity=quantity)


def _bar(close, symbol="OPT", timestamp=2_000):
    return Bar(symbol=symbol, timestamp=timestamp, open=close, high=close, low=close, close=close, volume=10)


def test_buy_debits_cost_and_opens_position():
    ledger = PortfolioLedger(initial_capital=10_000)
    executor = OrderExecutor(ledger, fee_per_trade=1.0)

    trade = executor.execute_signal(_signal(SignalType.BUY, 5.0))

    assert trade is not None
    assert trade.action == TradeAction.BUY
    assert trade.pnl == 0.0
    assert trade.fee == 1.0
    assert ledger.cash == pytest.approx(10_000 - (5.0 * 1 * 100 + 1.0))
    position = ledger.positions["OPT"]
    assert position.entry_price == 5.0
    assert position.entry_time == 1_000
    assert position.current_price == 5.0
    assert ledger.trades == [trade]


def test_sell_credits_proceeds_and_reports_round_trip_pnl():
    ledger = PortfolioLedger(initial_capital=10_000)
    executor = OrderExecutor(ledger, fee_per_trade=1.0)
    executor.execute_signal(_signal(SignalType.BUY, 5.0))
    cash_before = ledger.cash

    trade = executor.execute_signal(_signal(SignalType.SELL, 6.0, timestamp=3_000))

    assert trade is not None
    assert ledger.cash == pytest.approx(cash_before + 6.0 * 100 - 1.0)
    assert trade.pnl == pytest.approx(599.0 - 500.0 - 1.0)
    assert ledger.cash - 10_000 == pytest.approx(trade.pnl)
    assert ledger.positions == {}


def test_duplicate_buy_rejected_without_mutation():
    ledger = PortfolioLedger(initial_capital=10_000)
    executor = OrderExecutor(ledger, fee_per_trade=1.0)
    executor.execute_signal(_signal(SignalType.BUY, 5.0))
    cash = ledger.cash

    assert executor.execute_signal(_signal(SignalType.BUY, 4.0)) is None
    assert ledger.cash == cash
    assert ledger.positions["OPT"].entry_price == 5.0
    assert len(ledger.trades) == 1


def test_insufficient_cash_buy_rejected_without_mutation(tmp_path):
    audit = AuditLog(tmp_path / "audit.log")
    ledger = PortfolioLedger(initial_capital=100)
    executor = OrderExecutor(ledger, fee_per_trade=1.0, audit_log=audit)

    assert executor.execute_signal(_signal(SignalType.BUY, 5.0)) is None
    assert ledger.cash == 100
    assert ledger.positions == {}
    assert ledger.trades == []

    events = audit.read_events()
    assert events[-1]["event"] == "order_rejected"
    assert events[-1]["payload"]["reason"] == "insufficient_cash"


def test_buy_with_exact_cash_leaves_zero_balance():
    ledger = PortfolioLedger(initial_capital=501)
    executor = OrderExecutor(ledger, fee_per_trade=1.0)

    assert executor.execute_signal(_signal(SignalType.BUY, 5.0)) is not None
    assert ledger.cash == pytest.approx(0.0)


def test_sell_without_position_rejected_without_mutation():
    ledger = PortfolioLedger(initial_capital=1_000)
    executor = OrderExecutor(ledger, fee_per_trade=1.0)

    assert executor.execute_signal(_signal(SignalType.SELL, 5.0)) is None
    assert ledger.cash == 1_000
    assert ledger.positions == {}
    assert ledger.trades == []


def test_hold_signal_is_ignored():
    ledger = PortfolioLedger(initial_capital=1_000)
    executor = OrderExecutor(ledger)
    assert executor.execute_signal(_signal(SignalType.HOLD, 5.0)) is None
    assert ledger.trades == []


def test_mark_to_market_updates_only_matching_position():
    ledger = PortfolioLedger(initial_capital=10_000)
    executor = OrderExecutor(ledger, fee_per_trade=0.0)
    executor.execute_signal(_signal(SignalType.BUY, 5.0))
    cash = ledger.cash

    executor.mark_to_market(_bar(7.0))
    executor.mark_to_market(_bar(99.0, symbol="OTHER"))

    position = ledger.positions["OPT"]
    assert position.current_price == 7.0
    assert position.current_value == pytest.approx(700.0)
    assert position.unrealized_pnl == pytest.approx(200.0)
    assert ledger.cash == cash
    assert "OTHER" not in ledger.positions
    assert ledger.total_equity == pytest.approx(cash + 700.0)


def test_close_all_positions_sells_at_mark():
    ledger = PortfolioLedger(initial_capital=10_000)
    executor = OrderExecutor(ledger, fee_per_trade=1.0)
    executor.execute_signal(_signal(SignalType.BUY, 5.0, symbol="A"))
    executor.execute_signal(_signal(SignalType.BUY, 2.0, symbol="B"))
    executor.mark_to_market(_bar(6.0, symbol="A"))
    executor.mark_to_market(_bar(1.5, symbol="B"))

    trades = executor.close_all_positions(timestamp=9_000)

    assert {trade.symbol for trade in trades} == {"A", "B"}
    assert all(trade.action == TradeAction.SELL and trade.timestamp == 9_000 for trade in trades)
    prices = {trade.symbol: trade.price for trade in trades}
    assert prices == {"A": 6.0, "B": 1.5}
    assert ledger.positions == {}
    assert ledger.cash - 10_000 == pytest.approx(sum(trade.pnl for trade in trades))


def test_negative_fee_rejected():
    with pytest.raises(ValueError):
        OrderExecutor(PortfolioLedger(initial_capital=10), fee_per_trade=-1.0)
