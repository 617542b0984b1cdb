"""Outbound event channel for engine notifications.

The engine publishes; subscribers attach to the channel. Every subscription
owns a FIFO queue drained by its own worker thread, so a subscriber sees
events in emission order and a slow or failing handler never stalls the
replay loop.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Optional

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    BAR_PROCESSED = "bar_processed"
    TRADE = "trade"
    EQUITY = "equity"
    PROGRESS = "progress"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class ProgressUpdate:
    current: int
    total: int

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        return int(self.current / self.total * 100)


@dataclass(frozen=True)
class EngineEvent:
    kind: EventKind
    sequence: int
    payload: Any


Handler = Callable[[EngineEvent], None]

_STOP = object()


class Subscription:
    def __init__(
        self,
        handler: Handler,
        kinds: Optional[Iterable[EventKind]] = None,
        max_pending: int = 0,
        audit_log: Optional[object] = None,
        name: Optional[str] = None,
    ) -> None:
        self.handler = handler
        self.kinds = frozenset(kinds) if kinds is not None else None
        self.name = name or getattr(handler, "__name__", type(handler).__name__)
        self.dropped = 0
        self.failures = 0
        self._audit_log = audit_log
        self._queue: queue.Queue = queue.Queue(maxsize=max_pending)
        self._closed = False
        self._abandoned = False
        self._worker = threading.Thread(target=self._drain, name=f"event-sub-{self.name}", daemon=True)
        self._worker.start()

    def _log(self, event: str, payload: dict) -> None:
        if self._audit_log is None:
            return
        self._audit_log.log(event, payload)

    def wants(self, kind: EventKind) -> bool:
        return self.kinds is None or kind in self.kinds

    def offer(self, event: EngineEvent) -> bool:
        if self._closed:
            return False
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self.dropped += 1
            self._log(
                "subscriber_backlog_drop",
                {"subscriber": self.name, "kind": event.kind.value, "sequence": event.sequence},
            )
            return False
        return True

    def _drain(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                try:
                    self.handler(item)
                except Exception as exc:
                    self.failures += 1
                    logger.exception("Subscriber %s failed on %s", self.name, item.kind.value)
                    self._log(
                        "subscriber_error",
                        {"subscriber": self.name, "kind": item.kind.value, "error": str(exc)},
                    )
            finally:
                self._queue.task_done()
            if self._abandoned:
                return

    def flush(self) -> None:
        """Block until every queued event has been handled."""
        self._queue.join()

    def close(self, timeout: Optional[float] = None) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(_STOP)
        except queue.Full:
            # Full backlog: the worker exits after its current event and the rest are discarded.
            self._abandoned = True
            self.dropped += self._queue.qsize()
            logger.warning("Subscriber %s closed with a full backlog", self.name)
            self._log("subscriber_backlog_abandoned", {"subscriber": self.name, "pending": self._queue.qsize()})
        self._worker.join(timeout)


class EventChannel:
    def __init__(self, audit_log: Optional[object] = None) -> None:
        self._audit_log = audit_log
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()
        self._sequence = 0

    def subscribe(
        self,
        handler: Handler,
        kinds: Optional[Iterable[EventKind]] = None,
        max_pending: int = 0,
        name: Optional[str] = None,
    ) -> Subscription:
        subscription = Subscription(
            handler,
            kinds=kinds,
            max_pending=max_pending,
            audit_log=self._audit_log,
            name=name,
        )
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
        subscription.close()

    def publish(self, kind: EventKind, payload: Any) -> EngineEvent:
        with self._lock:
            self._sequence += 1
            event = EngineEvent(kind=kind, sequence=self._sequence, payload=payload)
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            if subscription.wants(kind):
                subscription.offer(event)
        return event

    def flush(self) -> None:
        with self._lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            subscription.flush()

    def close(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            subscriptions = list(self._subscriptions)
            self._subscriptions.clear()
        for subscription in subscriptions:
            subscription.close(timeout)
