"""Engine error types."""

from __future__ import annotations


class BacktestError(RuntimeError):
    pass


class BacktestSetupError(BacktestError):
    """Raised before any bar is processed; the ledger is left untouched."""


class NoDataError(BacktestSetupError):
    pass


class RunConflictError(BacktestSetupError):
    pass
