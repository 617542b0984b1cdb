"""Notification backends."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field


class Notifier:
    def notify(self, event: str, message: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError


@dataclass
class LogNotifier(Notifier):
    prefix: str = "[BACKTEST]"
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("replay_backtester.notify"))

    def notify(self, event: str, message: str) -> None:
        self.logger.info("%s %s: %s", self.prefix, event, message)
