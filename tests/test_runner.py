import asyncio
import threading
from datetime import datetime, timezone

from replay_backtester.config import EngineConfig, StrategyConfig
from replay_backtester.engine import EventChannel, EventKind
from replay_backtester.market import Bar, CsvBarSource, datetime_to_ms
from replay_backtester.runtime import BacktestRequest, BacktestRunner

START = datetime(2021, 11, 1, tzinfo=timezone.utc)
END = datetime(2021, 11, 19, tzinfo=timezone.utc)
CROSS_PRICES = [10, 10, 10, 10, 20, 20, 20, 20, 10, 10, 10, 10]


def _bars(prices, symbol="OPT"):
    base = datetime_to_ms(datetime(2021, 11, 2, 14, 30, tzinfo=timezone.utc))
    return [
        Bar(symbol=symbol, timestamp=base + idx * 60_000, open=p, high=p, low=p, close=p, volume=1)
        for idx, p in enumerate(prices)
    ]


class _StaticSource:
    def __init__(self, bars):
        self.bars = bars
        self.requested = []

    def load_bars(self, instruments):
        self.requested.append(list(instruments))
        return list(self.bars)


class _BlockingSource(_StaticSource):
    def __init__(self, bars):
        super().__init__(bars)
        self.entered = threading.Event()
        self.release = threading.Event()

    def load_bars(self, instruments):
        self.entered.set()
        self.release.wait(timeout=5)
        return super().load_bars(instruments)


def _request(**overrides):
    values = {"instruments": ["OPT"], "start": START, "end": END, "short_period": 2, "long_period": 4}
    values.update(overrides)
    return BacktestRequest(**values)


def _errors(channel):
    seen = []
    channel.subscribe(lambda event: seen.append(event.payload), kinds={EventKind.ERROR})
    return seen


def test_run_reports_complete_status():
    source = _StaticSource(_bars(CROSS_PRICES))
    runner = BacktestRunner(source, EngineConfig(progress_interval=3))

    result = runner.run(_request(initial_capital=50_000.0))

    assert result is not None
    assert result.initial_capital == 50_000.0
    assert len(result.trades) == 2
    assert source.requested == [["OPT"]]
    status = runner.status()
    assert status.is_running is False
    assert status.progress == 100
    assert status.message == "Backtest complete"
    assert runner.last_result is result
    runner.close()


def test_explicit_strategy_config_wins():
    runner = BacktestRunner(_StaticSource(_bars(CROSS_PRICES)))
    strategy = StrategyConfig(name="ma_crossover", parameters={"short_period": 3, "long_period": 6})

    result = runner.run(_request(strategy=strategy))

    assert result is not None
    assert result.trades == ()
    runner.close()


def test_no_data_is_reported():
    channel = EventChannel()
    errors = _errors(channel)
    runner = BacktestRunner(_StaticSource([]), channel=channel)

    assert runner.run(_request()) is None
    runner.close()
    channel.close()

    assert runner.status().is_running is False
    assert runner.status().message == "No data found for specified instruments"
    assert errors == ["No data found for specified instruments"]


def test_empty_date_range_is_rejected_by_engine():
    channel = EventChannel()
    errors = _errors(channel)
    runner = BacktestRunner(_StaticSource(_bars(CROSS_PRICES)), channel=channel)
    late = datetime(2022, 1, 1, tzinfo=timezone.utc)

    assert runner.run(_request(start=late, end=late)) is None
    runner.close()
    channel.close()

    assert runner.status().message == "No data for requested instruments"
    assert runner.status().is_running is False
    assert errors == ["No data for requested instruments"]


def test_second_request_rejected_while_running():
    channel = EventChannel()
    errors = _errors(channel)
    source = _BlockingSource(_bars(CROSS_PRICES))
    runner = BacktestRunner(source, channel=channel)
    outcome = {}

    worker = threading.Thread(target=lambda: outcome.setdefault("result", runner.run(_request())))
    worker.start()
    assert source.entered.wait(timeout=5)

    assert runner.status().is_running is True
    assert runner.run(_request()) is None

    source.release.set()
    worker.join(timeout=5)
    runner.close()
    channel.close()

    assert outcome["result"] is not None
    assert errors == ["A backtest is already running"]
    assert len(source.requested) == 1


def test_run_async():
    runner = BacktestRunner(_StaticSource(_bars(CROSS_PRICES)))

    result = asyncio.run(runner.run_async(_request()))

    assert result is not None
    assert runner.status().progress == 100
    runner.close()


def test_malformed_csv_is_reported_as_failure(tmp_path):
    folder = tmp_path / "OPT"
    folder.mkdir()
    (folder / "c.csv").write_text("timestamp,open\n1000,1.0\n", encoding="utf-8")
    channel = EventChannel()
    errors = _errors(channel)
    runner = BacktestRunner(CsvBarSource(tmp_path), channel=channel)

    assert runner.run(_request()) is None
    runner.close()
    channel.close()

    status = runner.status()
    assert status.is_running is False
    assert status.message.startswith("Backtest failed:")
    assert "missing columns" in status.message
    assert len(errors) == 1
    assert errors[0] == status.message


def test_unknown_strategy_is_reported_as_failure():
    channel = EventChannel()
    errors = _errors(channel)
    runner = BacktestRunner(_StaticSource(_bars(CROSS_PRICES)), channel=channel)

    assert runner.run(_request(strategy=StrategyConfig(name="nope"))) is None
    assert runner.status().message == "Backtest failed: Unknown strategy: nope"
    assert runner.status().is_running is False
    assert runner.last_result is None

    assert runner.run(_request()) is not None
    runner.close()
    channel.close()

    assert errors == ["Backtest failed: Unknown strategy: nope"]
