"""Indicator helpers for strategies."""

from __future__ import annotations

from collections import deque
from typing import Optional


class PriceWindow:
    """Bounded close-price history for one instrument."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.closes: deque[float] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self.closes)

    def update(self, close: float) -> None:
        self.closes.append(close)

    def sma(self, window: int) -> Optional[float]:
        if window <= 0 or len(self.closes) < window:
            return None
        total = 0.0
        for index in range(len(self.closes) - window, len(self.closes)):
            total += self.closes[index]
        return total / window
