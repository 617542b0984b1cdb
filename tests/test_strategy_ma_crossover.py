import pytest

from replay_backtester.market import Bar
from replay_backtester.strategy import (
    MovingAverageCrossoverParams,
    MovingAverageCrossoverStrategy,
    PriceWindow,
    SignalType,
    build_strategy,
)
from replay_backtester.config import StrategyConfig

CROSS_PRICES = [10, 10, 10, 10, 20, 20, 20, 20, 10, 10, 10, 10]


def _bars(prices, symbol="OPT", start=1_700_000_000_000):
    return [
        Bar(symbol=symbol, timestamp=start + idx * 60_000, open=p, high=p, low=p, close=p, volume=1)
        for idx, p in enumerate(prices)
    ]


def _strategy(short=2, long=4):
    return MovingAverageCrossoverStrategy(MovingAverageCrossoverParams(short_period=short, long_period=long))


def test_crossover_emits_single_buy_and_single_sell():
    strategy = _strategy()
    signals = [(idx, strategy.on_bar(bar)) for idx, bar in enumerate(_bars(CROSS_PRICES))]
    fired = [(idx, signal) for idx, signal in signals if signal is not None]

    assert [(idx, signal.signal_type) for idx, signal in fired] == [
        (4, SignalType.BUY),
        (8, SignalType.SELL),
    ]
    buy = fired[0][1]
    assert buy.price == 20
    assert buy.quantity == 1
    assert buy.symbol == "OPT"
    assert "Short=15.00" in buy.reason and "Long=12.50" in buy.reason


def test_no_signal_before_long_window_and_on_first_defined_pair():
    strategy = _strategy(short=2, long=4)
    # The jump on the fourth bar defines the first pair but cannot be a crossover yet.
    prices = [10, 10, 10, 40]
    assert all(strategy.on_bar(bar) is None for bar in _bars(prices))


def test_sell_requires_strategy_to_believe_it_is_holding():
    strategy = _strategy()
    prices = [20, 20, 20, 20, 10, 10, 10]
    assert all(strategy.on_bar(bar) is None for bar in _bars(prices))
    assert strategy.is_holding("OPT") is False


def test_instruments_are_tracked_independently():
    strategy = _strategy()
    bars_a = _bars(CROSS_PRICES, symbol="A")
    bars_b = _bars([10] * len(CROSS_PRICES), symbol="B", start=1_700_000_000_001)
    interleaved = [bar for pair in zip(bars_a, bars_b) for bar in pair]

    fired = [signal for signal in map(strategy.on_bar, interleaved) if signal is not None]

    assert {signal.symbol for signal in fired} == {"A"}
    assert len(fired) == 2


def test_reset_clears_state():
    strategy = _strategy()
    for bar in _bars(CROSS_PRICES[:5]):
        strategy.on_bar(bar)
    assert strategy.is_holding("OPT") is True

    strategy.reset()

    assert strategy.is_holding("OPT") is False
    replay = [strategy.on_bar(bar) for bar in _bars(CROSS_PRICES)]
    assert sum(1 for signal in replay if signal is not None) == 2


def test_name_and_buffer_bound():
    strategy = _strategy(short=3, long=5)
    assert strategy.name == "MA Crossover (3/5)"
    for bar in _bars(list(range(1, 40))):
        strategy.on_bar(bar)
    assert len(strategy._states["OPT"].prices) == 10


def test_price_window_sma():
    window = PriceWindow(4)
    for value in [1.0, 2.0, 3.0, 4.0, 5.0]:
        window.update(value)
    assert len(window) == 4
    assert window.sma(2) == pytest.approx(4.5)
    assert window.sma(4) == pytest.approx(3.5)
    assert window.sma(5) is None


def test_params_validation_and_registry():
    with pytest.raises(ValueError):
        MovingAverageCrossoverParams(short_period=0, long_period=4)

    strategy = build_strategy(StrategyConfig(name="ma_crossover", parameters={"short_period": 5, "long_period": 20}))
    assert strategy.name == "MA Crossover (5/20)"

    with pytest.raises(ValueError, match="Unknown strategy"):
        build_strategy(StrategyConfig(name="does_not_exist"))
