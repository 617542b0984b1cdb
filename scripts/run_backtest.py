from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

from replay_backtester.analytics import format_summary, write_result
from replay_backtester.config import freeze_config, load_config
from replay_backtester.engine import EventChannel, EventKind
from replay_backtester.market import CsvBarSource
from replay_backtester.monitoring import (
    AuditLog,
    AuditSubscriber,
    LogNotifier,
    NotifierSubscriber,
    setup_logging,
)
from replay_backtester.runtime import BacktestRequest, BacktestRunner, create_run_context
from replay_backtester.strategy import build_strategy


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Replay CSV bars through a strategy and report performance.")
    parser.add_argument("--config", required=True)
    parser.add_argument("--output", help="Write the result JSON here")
    parser.add_argument("--data-dir", help="Override data.directory from the config")
    parser.add_argument("--freeze", action="store_true", help="Write a config lock file before running")
    args = parser.parse_args(argv)

    config_path = Path(args.config)
    config = load_config(config_path)
    setup_logging(config.monitoring.log_level)
    if args.freeze:
        freeze_config(config_path)

    context = create_run_context(config_path, config)
    audit = AuditLog(
        Path(config.monitoring.audit_log_path),
        run_id=context.run_id,
        config_hash=context.config_hash,
    )
    audit.log("run_start", context.metadata())

    channel = EventChannel(audit_log=audit)
    channel.subscribe(
        AuditSubscriber(audit),
        kinds={EventKind.TRADE, EventKind.COMPLETE, EventKind.ERROR},
        name="audit",
    )
    channel.subscribe(NotifierSubscriber(LogNotifier()), kinds={EventKind.COMPLETE, EventKind.ERROR}, name="notify")

    runner = BacktestRunner(
        CsvBarSource(args.data_dir or config.data.directory),
        engine_config=config.engine,
        channel=channel,
        audit_log=audit,
    )
    request = BacktestRequest(
        instruments=config.instruments,
        start=config.start,
        end=config.end,
        initial_capital=config.engine.initial_capital,
        strategy=config.strategy,
    )
    try:
        result = runner.run(request)
    finally:
        runner.close()
        channel.close()

    if result is None:
        print(f"Backtest failed: {runner.status().message}")
        return 1

    print(format_summary(result, build_strategy(config.strategy).name))
    if args.output:
        path = write_result(args.output, result, metadata=context.metadata())
        print(f"Wrote {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
