"""Console logging setup."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def setup_logging(level: int | str = logging.INFO, name: str = "replay_backtester") -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not any(getattr(handler, "_replay_console", False) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._replay_console = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
